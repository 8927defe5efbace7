"""User search, profiles and profile editing."""

from uuid import UUID

from litestar import Controller, Request, get, patch
from litestar.exceptions import NotFoundException
from litestar.params import Parameter
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import auth_guard
from staync.controllers.helpers import require_user_id, serialize_tweets, user_profile, user_summary
from staync.db.services import follow_service, tweet_service, user_service
from staync.forms import Form
from staync.schemas import ProfileUpdate


class UserController(Controller):
    path = "/api/users"
    guards = [auth_guard]

    @get("/search")
    async def search(self, request: Request, db_session: AsyncSession, q: str | None = None) -> dict:
        user_id = require_user_id(request)
        results = await user_service.search_users(db_session, user_id, q)
        return {"users": [{**user_summary(user), "followerCount": count} for user, count in results]}

    @get("/{user_id:uuid}")
    async def profile(self, request: Request, db_session: AsyncSession, user_id: UUID) -> dict:
        viewer_id = require_user_id(request)
        user = await user_service.get_user_by_id(db_session, user_id)
        if user is None:
            raise NotFoundException("User not found")

        follow = await follow_service.get_follow(db_session, viewer_id, user.id)
        return {
            "user": {
                **user_profile(user),
                "followerCount": await follow_service.get_follower_count(db_session, user.id),
                "followingCount": await follow_service.get_following_count(db_session, user.id),
                "postCount": await tweet_service.count_user_posts(db_session, user.id),
                "isFollowing": follow is not None and not follow.is_pending,
                "isPending": follow is not None and follow.is_pending,
                "isMe": user.id == viewer_id,
            }
        }

    @get("/{user_id:uuid}/tweets")
    async def tweets(self, request: Request, db_session: AsyncSession, user_id: UUID) -> dict:
        viewer_id = require_user_id(request)
        tweets = await tweet_service.list_user_tweets(db_session, user_id, viewer_id)
        return {"tweets": await serialize_tweets(db_session, tweets, viewer_id)}

    @get("/{user_id:uuid}/followers")
    async def followers(
        self,
        db_session: AsyncSession,
        user_id: UUID,
        limit: int = Parameter(default=50, ge=1, le=100),
        offset: int = Parameter(default=0, ge=0),
    ) -> dict:
        users = await follow_service.get_followers(db_session, user_id, limit=limit, offset=offset)
        return {"users": [user_summary(u) for u in users]}

    @get("/{user_id:uuid}/following")
    async def following(
        self,
        db_session: AsyncSession,
        user_id: UUID,
        limit: int = Parameter(default=50, ge=1, le=100),
        offset: int = Parameter(default=0, ge=0),
    ) -> dict:
        users = await follow_service.get_following(db_session, user_id, limit=limit, offset=offset)
        return {"users": [user_summary(u) for u in users]}

    @patch("/")
    async def update_profile(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(ProfileUpdate, request).require()

        user = await user_service.get_user_by_id(db_session, user_id)
        if user is None:
            raise NotFoundException("User not found")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") is None:
            changes.pop("name", None)
        if changes.get("is_private") is None:
            changes.pop("is_private", None)

        user = await user_service.update_profile(db_session, user, changes)
        return {"success": True, "user": user_profile(user)}
