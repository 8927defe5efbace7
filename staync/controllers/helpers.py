"""Shared helpers for the API controllers: session identity and JSON shapes."""

from datetime import datetime
from uuid import UUID

from litestar import Request
from litestar.exceptions import NotAuthorizedException
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import get_session_user_id
from staync.db.models.message import DirectMessage
from staync.db.models.tweet import Media, Tweet
from staync.db.models.user import User
from staync.db.services.tweet_service import get_tweet_stats, get_viewer_state
from staync.lib.ai import CaptionClient
from staync.lib.storage import StorageManager


def require_user_id(request: Request) -> UUID:
    user_id = get_session_user_id(request)
    if user_id is None:
        raise NotAuthorizedException("Unauthorized")
    return user_id


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_summary(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "id": str(user.id),
        "name": user.name,
        "username": user.username,
        "image": user.image,
    }


def user_profile(user: User) -> dict:
    return {
        **user_summary(user),
        "email": user.email,
        "bio": user.bio,
        "coverImage": user.cover_image,
        "isPrivate": user.is_private,
        "createdAt": iso(user.created_at),
    }


def media_dict(media: Media) -> dict:
    return {
        "id": str(media.id),
        "type": media.type,
        "url": media.url,
        "thumbnailUrl": media.thumbnail_url,
        "altText": media.alt_text,
        "publicId": media.public_id,
        "order": media.order,
    }


def tweet_dict(tweet: Tweet, stats: dict[str, int], state: dict[str, set[UUID]]) -> dict:
    location = None
    if tweet.location_name or tweet.latitude is not None:
        location = {
            "name": tweet.location_name,
            "latitude": tweet.latitude,
            "longitude": tweet.longitude,
            "address": tweet.address,
            "country": tweet.country,
            "city": tweet.city,
        }
    plan = tweet.travel_plan
    return {
        "id": str(tweet.id),
        "content": tweet.content,
        "createdAt": iso(tweet.created_at),
        "updatedAt": iso(tweet.updated_at),
        "parentId": str(tweet.parent_id) if tweet.parent_id else None,
        "visibility": tweet.visibility,
        "user": user_summary(tweet.user),
        "media": [media_dict(m) for m in tweet.media],
        "stats": stats,
        "isLiked": tweet.id in state["liked"],
        "isRetweeted": tweet.id in state["retweeted"],
        "isBookmarked": tweet.id in state["bookmarked"],
        "location": location,
        "tags": [{"id": str(t.id), "name": t.name, "slug": t.slug} for t in tweet.tags],
        "travelPlan": {"id": str(plan.id), "title": plan.title} if plan else None,
        "travelDate": iso(tweet.travel_date),
    }


async def serialize_tweets(db_session: AsyncSession, tweets: list[Tweet], viewer_id: UUID | None) -> list[dict]:
    """Tweets with their stats and the viewer's like/retweet/bookmark state."""
    ids = [tweet.id for tweet in tweets]
    stats = await get_tweet_stats(db_session, ids)
    state = await get_viewer_state(db_session, viewer_id, ids)
    return [tweet_dict(tweet, stats[tweet.id], state) for tweet in tweets]


async def serialize_tweet(db_session: AsyncSession, tweet: Tweet, viewer_id: UUID | None) -> dict:
    return (await serialize_tweets(db_session, [tweet], viewer_id))[0]


def message_dict(message: DirectMessage) -> dict:
    return {
        "id": str(message.id),
        "conversationId": str(message.conversation_id),
        "content": message.content,
        "isRead": message.is_read,
        "mediaUrl": message.media_url,
        "mediaType": message.media_type,
        "createdAt": iso(message.created_at),
        "sender": user_summary(message.sender),
    }


def get_storage(request: Request) -> StorageManager:
    return request.app.state.storage_manager


def get_caption_client(request: Request) -> CaptionClient | None:
    return request.app.state.get("caption_client")
