"""Travel plans, plan items and per-user travel statistics."""

from uuid import UUID

from litestar import Controller, Request, delete, get, patch, post
from litestar.exceptions import NotFoundException, PermissionDeniedException
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import auth_guard
from staync.controllers.helpers import iso, require_user_id
from staync.db.models.travel import TravelPlan, TravelPlanItem
from staync.db.services import travel_service
from staync.forms import Form
from staync.schemas import TravelPlanCreate, TravelPlanItemCreate, TravelPlanItemUpdate, TravelPlanUpdate


def item_dict(item: TravelPlanItem) -> dict:
    return {
        "id": str(item.id),
        "travelPlanId": str(item.travel_plan_id),
        "title": item.title,
        "description": item.description,
        "locationName": item.location_name,
        "date": iso(item.date),
        "time": item.time,
        "order": item.order,
        "status": item.status,
    }


def plan_dict(plan: TravelPlan, tweet_count: int = 0) -> dict:
    return {
        "id": str(plan.id),
        "userId": str(plan.user_id),
        "title": plan.title,
        "description": plan.description,
        "startDate": iso(plan.start_date),
        "endDate": iso(plan.end_date),
        "status": plan.status,
        "createdAt": iso(plan.created_at),
        "items": [item_dict(item) for item in plan.items],
        "_count": {"items": len(plan.items), "tweets": tweet_count},
    }


async def _owned_plan(db_session: AsyncSession, plan_id: UUID, user_id: UUID) -> TravelPlan:
    plan = await travel_service.get_plan(db_session, plan_id)
    if plan is None:
        raise NotFoundException("Travel plan not found")
    if plan.user_id != user_id:
        raise PermissionDeniedException("Forbidden")
    return plan


async def _owned_item(db_session: AsyncSession, item_id: UUID, user_id: UUID) -> TravelPlanItem:
    item = await travel_service.get_item(db_session, item_id)
    if item is None:
        raise NotFoundException("Travel plan item not found")
    await _owned_plan(db_session, item.travel_plan_id, user_id)
    return item


class TravelPlanController(Controller):
    path = "/api/travel-plans"
    guards = [auth_guard]

    @get("/")
    async def list_plans(self, request: Request, db_session: AsyncSession, status: str | None = None) -> dict:
        user_id = require_user_id(request)
        plans = await travel_service.list_plans(db_session, user_id, status or None)
        counts = await travel_service.get_plan_tweet_counts(db_session, [p.id for p in plans])
        return {"travelPlans": [plan_dict(p, counts.get(p.id, 0)) for p in plans]}

    @post("/", status_code=201)
    async def create_plan(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(TravelPlanCreate, request).require()
        plan = await travel_service.create_plan(db_session, user_id, data.model_dump())
        return {"success": True, "travelPlan": plan_dict(plan)}

    @get("/{plan_id:uuid}")
    async def get_plan(self, request: Request, db_session: AsyncSession, plan_id: UUID) -> dict:
        plan = await _owned_plan(db_session, plan_id, require_user_id(request))
        counts = await travel_service.get_plan_tweet_counts(db_session, [plan.id])
        return {"travelPlan": plan_dict(plan, counts.get(plan.id, 0))}

    @patch("/{plan_id:uuid}")
    async def update_plan(self, request: Request, db_session: AsyncSession, plan_id: UUID) -> dict:
        plan = await _owned_plan(db_session, plan_id, require_user_id(request))
        data = await Form(TravelPlanUpdate, request).require()

        changes = data.model_dump(exclude_unset=True)
        for required in ("title", "status"):
            if changes.get(required) is None:
                changes.pop(required, None)

        plan = await travel_service.update_plan(db_session, plan, changes)
        return {"success": True, "travelPlan": plan_dict(plan)}

    @delete("/{plan_id:uuid}", status_code=200)
    async def delete_plan(self, request: Request, db_session: AsyncSession, plan_id: UUID) -> dict:
        plan = await _owned_plan(db_session, plan_id, require_user_id(request))
        await travel_service.delete_plan(db_session, plan)
        return {"success": True}


class TravelPlanItemController(Controller):
    path = "/api/travel-plan-items"
    guards = [auth_guard]

    @post("/", status_code=201)
    async def create_item(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(TravelPlanItemCreate, request).require()
        plan = await _owned_plan(db_session, data.travel_plan_id, user_id)

        item = await travel_service.create_item(
            db_session, plan, data.model_dump(exclude={"travel_plan_id"})
        )
        return {"success": True, "item": item_dict(item)}

    @patch("/{item_id:uuid}")
    async def update_item(self, request: Request, db_session: AsyncSession, item_id: UUID) -> dict:
        item = await _owned_item(db_session, item_id, require_user_id(request))
        data = await Form(TravelPlanItemUpdate, request).require()

        changes = data.model_dump(exclude_unset=True)
        for required in ("title", "status", "order"):
            if changes.get(required) is None:
                changes.pop(required, None)

        item = await travel_service.update_item(db_session, item, changes)
        return {"success": True, "item": item_dict(item)}

    @delete("/{item_id:uuid}", status_code=200)
    async def delete_item(self, request: Request, db_session: AsyncSession, item_id: UUID) -> dict:
        item = await _owned_item(db_session, item_id, require_user_id(request))
        await travel_service.delete_item(db_session, item)
        return {"success": True}


class TravelStatsController(Controller):
    path = "/api/travel-stats"

    @get("/{user_id:uuid}")
    async def stats(self, db_session: AsyncSession, user_id: UUID) -> dict:
        stats = await travel_service.get_travel_stats(db_session, user_id)
        return {"stats": stats.to_dict()}
