"""Tweet feed, detail, create, edit and soft delete."""

import logging
from uuid import UUID

from litestar import Controller, Request, delete, get, patch, post
from litestar.exceptions import NotFoundException, PermissionDeniedException, ValidationException
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import auth_guard, get_session_user_id
from staync.config import get_settings
from staync.controllers.helpers import (
    get_caption_client,
    get_storage,
    require_user_id,
    serialize_tweet,
    serialize_tweets,
)
from staync.db.models.tweet import MEDIA_IMAGE, Tweet
from staync.db.services import tweet_service
from staync.forms import Form
from staync.lib.uploads import decode_data_url, delete_stored, store_bytes
from staync.schemas import MediaIn, TweetCreate, TweetRef, TweetUpdate

logger = logging.getLogger(__name__)


async def _store_ai_image(request: Request, data_url: str) -> MediaIn | None:
    """Persist a generated image; on failure the tweet is posted without it."""
    try:
        data, content_type = decode_data_url(data_url)
        stored = await store_bytes(get_storage(request), data, content_type, get_settings().upload)
    except Exception:
        logger.warning("Could not store AI image", exc_info=True)
        return None
    return MediaIn(url=stored.url, type=MEDIA_IMAGE, public_id=stored.key)


async def _owned_tweet(db_session: AsyncSession, tweet_id: UUID | None, user_id: UUID) -> Tweet:
    if tweet_id is None:
        raise ValidationException("Tweet ID is required")
    tweet = await tweet_service.get_tweet_by_id(db_session, tweet_id)
    if tweet is None:
        raise NotFoundException("Tweet not found")
    if not tweet_service.check_tweet_ownership(tweet, user_id):
        raise PermissionDeniedException("Forbidden")
    return tweet


class TweetController(Controller):
    path = "/api/tweets"

    @get("/")
    async def list_tweets(self, request: Request, db_session: AsyncSession) -> dict:
        viewer_id = get_session_user_id(request)
        tweets = await tweet_service.list_feed(db_session, viewer_id)
        return {"tweets": await serialize_tweets(db_session, tweets, viewer_id)}

    @get("/{tweet_id:uuid}")
    async def get_tweet(self, request: Request, db_session: AsyncSession, tweet_id: UUID) -> dict:
        viewer_id = get_session_user_id(request)
        tweet = await tweet_service.get_tweet_by_id(db_session, tweet_id)
        if tweet is None or not await tweet_service.can_view(db_session, tweet, viewer_id):
            raise NotFoundException("Tweet not found")

        replies = [
            reply
            for reply in await tweet_service.get_replies(db_session, tweet_id)
            if await tweet_service.can_view(db_session, reply, viewer_id)
        ]
        return {
            "tweet": await serialize_tweet(db_session, tweet, viewer_id),
            "replies": await serialize_tweets(db_session, replies, viewer_id),
        }

    @post("/", guards=[auth_guard], status_code=201)
    async def create_tweet(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(TweetCreate, request).require()

        if not data.content.strip() and not data.media and not data.ai_image:
            raise ValidationException("Content or media is required")

        parent = None
        if data.parent_id is not None:
            parent = await tweet_service.get_tweet_by_id(db_session, data.parent_id)
            if parent is None or not await tweet_service.can_view(db_session, parent, user_id):
                raise NotFoundException("Parent tweet not found")

        leading_media = []
        if data.ai_image:
            ai_media = await _store_ai_image(request, data.ai_image)
            if ai_media is not None:
                leading_media.append(ai_media)

        tweet = await tweet_service.create_tweet(db_session, user_id, data, leading_media, parent=parent)
        await tweet_service.refresh_embedding(db_session, tweet, get_caption_client(request))

        return {"success": True, "tweet": await serialize_tweet(db_session, tweet, user_id)}

    @patch("/", guards=[auth_guard])
    async def update_tweet(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(TweetUpdate, request).require()

        if data.tweet_id is None:
            raise ValidationException("Tweet ID is required")
        if not data.content or not data.content.strip():
            raise ValidationException("Content is required")

        tweet = await _owned_tweet(db_session, data.tweet_id, user_id)
        tweet, removed = await tweet_service.update_tweet(db_session, tweet, data)

        for media in removed:
            if not media.public_id:
                continue
            try:
                await delete_stored(get_storage(request), media.public_id)
            except Exception:
                logger.warning("Could not delete stored media %s", media.public_id, exc_info=True)

        await tweet_service.refresh_embedding(db_session, tweet, get_caption_client(request))
        return {"success": True, "tweet": await serialize_tweet(db_session, tweet, user_id)}

    @delete("/", guards=[auth_guard], status_code=200)
    async def delete_tweet(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(TweetRef, request).require()

        tweet = await _owned_tweet(db_session, data.tweet_id, user_id)
        await tweet_service.soft_delete_tweet(db_session, tweet)
        return {"success": True, "message": "Tweet deleted"}
