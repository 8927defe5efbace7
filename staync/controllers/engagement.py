"""Likes, retweets, bookmarks and bookmark collections."""

from typing import Annotated
from uuid import UUID

from litestar import Controller, Request, get, post
from litestar.exceptions import NotFoundException, ValidationException
from litestar.params import Parameter
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import auth_guard
from staync.controllers.helpers import iso, require_user_id, serialize_tweets
from staync.db.models.tweet import Tweet
from staync.db.services import bookmark_service, like_service, retweet_service
from staync.db.services.tweet_service import can_view, get_tweet_by_id
from staync.forms import Form
from staync.schemas import BookmarkIn, CollectionAction, TweetRef


async def _target_tweet(db_session: AsyncSession, tweet_id: UUID | None, user_id: UUID) -> Tweet:
    """The tweet ``user_id`` acts on; tweets they cannot view are reported missing."""
    if tweet_id is None:
        raise ValidationException("Tweet ID is required")
    tweet = await get_tweet_by_id(db_session, tweet_id)
    if tweet is None or not await can_view(db_session, tweet, user_id):
        raise NotFoundException("Tweet not found")
    return tweet


async def _resolve_collection(db_session: AsyncSession, user_id: UUID, raw: str | None) -> UUID | None:
    """The caller's collection id for ``raw``; blank or ``"none"`` means no collection."""
    if raw is None or raw == bookmark_service.UNCATEGORISED:
        return None
    try:
        collection_id = UUID(raw)
    except ValueError:
        raise ValidationException("Invalid collection ID") from None
    collection = await bookmark_service.get_collection(db_session, collection_id)
    if collection is None or collection.user_id != user_id:
        raise NotFoundException("Collection not found")
    return collection_id


class LikeController(Controller):
    path = "/api/likes"
    guards = [auth_guard]

    @post("/", status_code=200)
    async def toggle(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(TweetRef, request).require()
        tweet = await _target_tweet(db_session, data.tweet_id, user_id)

        liked, count = await like_service.toggle_like(db_session, user_id, tweet)
        return {
            "success": True,
            "liked": liked,
            "count": count,
            "message": "Liked" if liked else "Unliked",
        }


class RetweetController(Controller):
    path = "/api/retweets"
    guards = [auth_guard]

    @post("/", status_code=200)
    async def toggle(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(TweetRef, request).require()
        tweet = await _target_tweet(db_session, data.tweet_id, user_id)

        retweeted, count = await retweet_service.toggle_retweet(db_session, user_id, tweet)
        return {
            "success": True,
            "retweeted": retweeted,
            "count": count,
            "message": "Retweeted" if retweeted else "Retweet removed",
        }


class BookmarkController(Controller):
    path = "/api/bookmarks"
    guards = [auth_guard]

    @get("/")
    async def list_bookmarks(
        self,
        request: Request,
        db_session: AsyncSession,
        collection_id: Annotated[str | None, Parameter(query="collectionId")] = None,
    ) -> dict:
        user_id = require_user_id(request)
        collection = None
        if collection_id:
            collection = (
                bookmark_service.UNCATEGORISED
                if collection_id == bookmark_service.UNCATEGORISED
                else await _resolve_collection(db_session, user_id, collection_id)
            )
        tweets = await bookmark_service.list_bookmarked_tweets(db_session, user_id, collection)
        return {"tweets": await serialize_tweets(db_session, tweets, user_id)}

    @post("/", status_code=200)
    async def toggle(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(BookmarkIn, request).require()
        tweet = await _target_tweet(db_session, data.tweet_id, user_id)
        collection_id = await _resolve_collection(db_session, user_id, data.collection_id)

        bookmarked = await bookmark_service.toggle_bookmark(db_session, user_id, tweet.id, collection_id)
        return {
            "success": True,
            "bookmarked": bookmarked,
            "message": "Bookmarked" if bookmarked else "Bookmark removed",
        }

    @get("/collections")
    async def list_collections(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        collections = await bookmark_service.list_collections(db_session, user_id)
        return {
            "collections": [
                {
                    "id": str(collection.id),
                    "name": collection.name,
                    "createdAt": iso(collection.created_at),
                    "bookmarkCount": count,
                }
                for collection, count in collections
            ]
        }

    @post("/collections", status_code=200)
    async def collection_action(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(CollectionAction, request).require()

        if data.action == "create":
            if not data.name:
                raise ValidationException("Collection name is required")
            collection = await bookmark_service.create_collection(db_session, user_id, data.name)
            return {"success": True, "collection": {"id": str(collection.id), "name": collection.name}}

        if data.action == "delete":
            if data.id is None:
                raise ValidationException("Collection ID is required")
            if not await bookmark_service.delete_collection(db_session, user_id, data.id):
                raise NotFoundException("Collection not found")
            return {"success": True}

        tweet = await _target_tweet(db_session, data.tweet_id, user_id)
        collection_id = await _resolve_collection(db_session, user_id, data.collection_id)
        await bookmark_service.move_bookmark(db_session, user_id, tweet.id, collection_id)
        return {"success": True}
