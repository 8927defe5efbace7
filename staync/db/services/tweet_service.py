from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.engagement import Like, Retweet
from staync.db.models.notification import NOTIFY_REPLY
from staync.db.models.tweet import (
    VISIBILITY_FOLLOWERS,
    VISIBILITY_PUBLIC,
    Media,
    Tweet,
    TweetEmbedding,
)
from staync.db.services.bookmark_service import get_bookmarked_tweet_ids
from staync.db.services.follow_service import get_following_ids
from staync.db.services.like_service import get_liked_tweet_ids
from staync.db.services.notification_service import add_notification
from staync.db.services.retweet_service import get_retweeted_tweet_ids
from staync.db.services.tag_service import set_tweet_tags
from staync.lib.ai import vector_to_bytes
from staync.lib.hooks import AFTER_TWEET_DELETE, AFTER_TWEET_SAVE, hooks

if TYPE_CHECKING:
    from staync.lib.ai import CaptionClient
    from staync.schemas import LocationIn, MediaIn, TweetCreate, TweetUpdate

logger = logging.getLogger(__name__)

FEED_LIMIT = 20


def _visibility_clause(viewer_id: UUID | None, following_ids: set[UUID]):
    """Tweets a viewer may see: public ones, their own, and followers-only posts of accounts they follow."""
    if viewer_id is None:
        return Tweet.visibility == VISIBILITY_PUBLIC
    clauses = [Tweet.visibility == VISIBILITY_PUBLIC, Tweet.user_id == viewer_id]
    if following_ids:
        clauses.append(and_(Tweet.visibility == VISIBILITY_FOLLOWERS, Tweet.user_id.in_(following_ids)))
    return or_(*clauses)


async def can_view(db_session: AsyncSession, tweet: Tweet, viewer_id: UUID | None) -> bool:
    if tweet.visibility == VISIBILITY_PUBLIC or tweet.user_id == viewer_id:
        return True
    if viewer_id is None or tweet.visibility != VISIBILITY_FOLLOWERS:
        return False
    return tweet.user_id in await get_following_ids(db_session, viewer_id)


async def get_tweet_by_id(db_session: AsyncSession, tweet_id: UUID, include_deleted: bool = False) -> Tweet | None:
    stmt = select(Tweet).where(Tweet.id == tweet_id).execution_options(populate_existing=True)
    if not include_deleted:
        stmt = stmt.where(Tweet.deleted_at.is_(None))
    result = await db_session.execute(stmt)
    return result.scalar_one_or_none()


async def list_feed(db_session: AsyncSession, viewer_id: UUID | None, limit: int = FEED_LIMIT) -> list[Tweet]:
    """Latest visible, non-deleted top-level tweets."""
    following_ids = await get_following_ids(db_session, viewer_id) if viewer_id else set()
    result = await db_session.execute(
        select(Tweet)
        .where(
            and_(
                Tweet.deleted_at.is_(None),
                Tweet.parent_id.is_(None),
                _visibility_clause(viewer_id, following_ids),
            )
        )
        .order_by(Tweet.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_user_tweets(
    db_session: AsyncSession,
    user_id: UUID,
    viewer_id: UUID | None,
    limit: int = FEED_LIMIT,
) -> list[Tweet]:
    following_ids = await get_following_ids(db_session, viewer_id) if viewer_id else set()
    result = await db_session.execute(
        select(Tweet)
        .where(
            and_(
                Tweet.user_id == user_id,
                Tweet.deleted_at.is_(None),
                _visibility_clause(viewer_id, following_ids),
            )
        )
        .order_by(Tweet.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_replies(db_session: AsyncSession, tweet_id: UUID) -> list[Tweet]:
    result = await db_session.execute(
        select(Tweet)
        .where(and_(Tweet.parent_id == tweet_id, Tweet.deleted_at.is_(None)))
        .order_by(Tweet.created_at.asc())
    )
    return list(result.scalars().all())


async def count_user_posts(db_session: AsyncSession, user_id: UUID) -> int:
    result = await db_session.execute(
        select(func.count())
        .select_from(Tweet)
        .where(and_(Tweet.user_id == user_id, Tweet.deleted_at.is_(None), Tweet.parent_id.is_(None)))
    )
    return result.scalar() or 0


def _apply_location(tweet: Tweet, location: LocationIn | None) -> None:
    tweet.location_name = location.name if location else None
    tweet.latitude = location.latitude if location else None
    tweet.longitude = location.longitude if location else None
    tweet.address = location.address if location else None
    tweet.country = location.country if location else None
    tweet.city = location.city if location else None


def _media_row(item: MediaIn, order: int) -> Media:
    return Media(
        type=item.type,
        url=item.url,
        thumbnail_url=item.thumbnail_url,
        public_id=item.public_id,
        alt_text=item.alt_text,
        order=order,
    )


async def create_tweet(
    db_session: AsyncSession,
    user_id: UUID,
    data: TweetCreate,
    leading_media: list[MediaIn] | None = None,
    parent: Tweet | None = None,
) -> Tweet:
    """Create a tweet with its media and tags.

    ``leading_media`` (for instance a stored AI image) is placed before the
    submitted media. Replying to somebody else's tweet notifies its author.
    """
    tweet = Tweet(
        user_id=user_id,
        content=data.content,
        visibility=data.visibility,
        parent_id=parent.id if parent else None,
        travel_plan_id=data.travel_plan_id,
        travel_date=data.travel_date,
        media=[],
    )
    _apply_location(tweet, data.location)
    for order, item in enumerate([*(leading_media or []), *data.media]):
        tweet.media.append(_media_row(item, order))

    db_session.add(tweet)
    await db_session.flush()

    if data.tags:
        await set_tweet_tags(db_session, tweet.id, data.tags)
    if parent is not None:
        add_notification(db_session, parent.user_id, user_id, NOTIFY_REPLY, tweet_id=tweet.id)

    await db_session.commit()
    tweet = await get_tweet_by_id(db_session, tweet.id)

    await hooks.do_action(AFTER_TWEET_SAVE, tweet, is_new=True)
    return tweet


async def update_tweet(db_session: AsyncSession, tweet: Tweet, data: TweetUpdate) -> tuple[Tweet, list[Media]]:
    """Apply an edit. Returns the refreshed tweet and the media rows that were removed.

    Optional fields change only when present in the request; an explicitly
    empty ``travelPlanId`` or ``location`` clears it.
    """
    fields = data.model_fields_set

    if data.content is not None:
        tweet.content = data.content
    if "location" in fields:
        _apply_location(tweet, data.location)
    if "travel_date" in fields:
        tweet.travel_date = data.travel_date
    if data.visibility:
        tweet.visibility = data.visibility
    if "travel_plan_id" in fields:
        tweet.travel_plan_id = data.travel_plan_id

    doomed = set(data.deleted_media_ids)
    removed = [m for m in tweet.media if m.id in doomed]
    for media in removed:
        tweet.media.remove(media)

    next_order = max((m.order for m in tweet.media), default=-1) + 1
    for offset, item in enumerate(data.new_media):
        tweet.media.append(_media_row(item, next_order + offset))

    if data.tags is not None:
        await set_tweet_tags(db_session, tweet.id, data.tags)

    await db_session.commit()
    tweet = await get_tweet_by_id(db_session, tweet.id)

    await hooks.do_action(AFTER_TWEET_SAVE, tweet, is_new=False)
    return tweet, removed


def check_tweet_ownership(tweet: Tweet, user_id: UUID) -> bool:
    return tweet.user_id == user_id


async def soft_delete_tweet(db_session: AsyncSession, tweet: Tweet) -> None:
    tweet.deleted_at = datetime.now(UTC)
    await db_session.commit()
    await hooks.do_action(AFTER_TWEET_DELETE, tweet)


async def get_tweet_stats(db_session: AsyncSession, tweet_ids: list[UUID]) -> dict[UUID, dict[str, int]]:
    """Like, reply (non-deleted) and retweet counts per tweet."""
    stats = {tweet_id: {"likes": 0, "replies": 0, "retweets": 0} for tweet_id in tweet_ids}
    if not tweet_ids:
        return stats

    likes = await db_session.execute(
        select(Like.tweet_id, func.count()).where(Like.tweet_id.in_(tweet_ids)).group_by(Like.tweet_id)
    )
    for tweet_id, count in likes.all():
        stats[tweet_id]["likes"] = count

    retweets = await db_session.execute(
        select(Retweet.tweet_id, func.count()).where(Retweet.tweet_id.in_(tweet_ids)).group_by(Retweet.tweet_id)
    )
    for tweet_id, count in retweets.all():
        stats[tweet_id]["retweets"] = count

    replies = await db_session.execute(
        select(Tweet.parent_id, func.count())
        .where(and_(Tweet.parent_id.in_(tweet_ids), Tweet.deleted_at.is_(None)))
        .group_by(Tweet.parent_id)
    )
    for tweet_id, count in replies.all():
        stats[tweet_id]["replies"] = count

    return stats


async def get_viewer_state(db_session: AsyncSession, viewer_id: UUID | None, tweet_ids: list[UUID]) -> dict[str, set[UUID]]:
    """Which of ``tweet_ids`` the viewer has liked, retweeted and bookmarked."""
    if viewer_id is None or not tweet_ids:
        return {"liked": set(), "retweeted": set(), "bookmarked": set()}
    return {
        "liked": await get_liked_tweet_ids(db_session, viewer_id, tweet_ids),
        "retweeted": await get_retweeted_tweet_ids(db_session, viewer_id, tweet_ids),
        "bookmarked": await get_bookmarked_tweet_ids(db_session, viewer_id, tweet_ids),
    }


def embedding_text(tweet: Tweet) -> str:
    return " ".join([tweet.content or "", *(tag.name for tag in tweet.tags)]).strip()


async def refresh_embedding(db_session: AsyncSession, tweet: Tweet, client: CaptionClient | None) -> bool:
    """Recompute and store the tweet's embedding. Failures are logged, never raised."""
    if client is None or not client.enabled:
        return False
    text = embedding_text(tweet)
    if not text:
        return False

    try:
        vector = await client.embed(text)
        result = await db_session.execute(select(TweetEmbedding).where(TweetEmbedding.tweet_id == tweet.id))
        embedding = result.scalar_one_or_none()
        if embedding is None:
            embedding = TweetEmbedding(tweet_id=tweet.id)
            db_session.add(embedding)
        embedding.vector = vector_to_bytes(vector)
        embedding.dimensions = len(vector)
        embedding.model = client.config.embedding_model
        await db_session.commit()
    except Exception:
        logger.warning("Embedding refresh failed for tweet %s", tweet.id, exc_info=True)
        await db_session.rollback()
        return False
    return True
