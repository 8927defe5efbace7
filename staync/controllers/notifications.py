"""Notification list, mark-as-read and delete endpoints."""

from litestar import Controller, Request, delete, get, post
from litestar.exceptions import ValidationException
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import auth_guard
from staync.controllers.helpers import iso, require_user_id, user_summary
from staync.db.models.notification import Notification
from staync.db.services import notification_service
from staync.forms import Form
from staync.schemas import NotificationAction

SNIPPET_LENGTH = 100


def _notification_dict(notification: Notification) -> dict:
    tweet = notification.tweet
    return {
        "id": str(notification.id),
        "type": notification.type,
        "isRead": notification.is_read,
        "createdAt": iso(notification.created_at),
        "issuer": user_summary(notification.issuer),
        "tweet": (
            {"id": str(tweet.id), "content": (tweet.content or "")[:SNIPPET_LENGTH]}
            if tweet is not None and tweet.deleted_at is None
            else None
        ),
    }


class NotificationController(Controller):
    path = "/api/notifications"
    guards = [auth_guard]

    @get("/")
    async def list_notifications(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        notifications = await notification_service.list_notifications(db_session, user_id)
        return {
            "notifications": [_notification_dict(n) for n in notifications],
            "unreadCount": await notification_service.count_unread(db_session, user_id),
        }

    @post("/", status_code=200)
    async def mark_read(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(NotificationAction, request).require()
        updated = await notification_service.mark_read(db_session, user_id, data.id)
        return {"success": True, "updated": updated}

    @delete("/", status_code=200)
    async def delete_notifications(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(NotificationAction, request).require()

        if data.id is not None:
            deleted = await notification_service.delete_notifications(db_session, user_id, data.id)
        elif data.type == "all":
            deleted = await notification_service.delete_notifications(db_session, user_id)
        else:
            raise ValidationException("Notification ID or type=all is required")
        return {"success": True, "deleted": deleted}
