"""Follow toggling and follow requests."""

from litestar import Controller, Request, get, post
from litestar.exceptions import NotFoundException, ValidationException
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import auth_guard
from staync.controllers.helpers import iso, require_user_id, user_summary
from staync.db.services import follow_service
from staync.db.services.user_service import get_user_by_id
from staync.forms import Form
from staync.schemas import FollowIn

_MESSAGES = {
    follow_service.FOLLOWED: "Followed",
    follow_service.REQUESTED: "Follow request sent",
    follow_service.UNFOLLOWED: "Unfollowed",
    follow_service.CANCELLED: "Follow request cancelled",
}


class FollowController(Controller):
    path = "/api/follows"
    guards = [auth_guard]

    @post("/", status_code=200)
    async def follow(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(FollowIn, request).require()

        if data.target_user_id is None:
            raise ValidationException("Target user ID is required")
        if data.target_user_id == user_id:
            raise ValidationException("You cannot follow yourself")

        target = await get_user_by_id(db_session, data.target_user_id)
        if target is None:
            raise NotFoundException("User not found")

        if data.intent in ("accept", "reject"):
            accept = data.intent == "accept"
            if not await follow_service.respond_to_request(db_session, user_id, target.id, accept):
                raise NotFoundException("Follow request not found")
            return {
                "success": True,
                "message": "Follow request accepted" if accept else "Follow request rejected",
            }

        result = await follow_service.toggle_follow(db_session, user_id, target)
        return {
            "success": True,
            "isFollowing": result.is_following,
            "isPending": result.is_pending,
            "message": _MESSAGES[result.action],
        }

    @get("/requests")
    async def pending_requests(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        follows = await follow_service.get_pending_requests(db_session, user_id)
        return {
            "requests": [
                {"id": str(f.id), "createdAt": iso(f.created_at), "user": user_summary(f.follower)}
                for f in follows
            ]
        }
