from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.engagement import Like
from staync.db.models.notification import NOTIFY_LIKE
from staync.db.models.tweet import Tweet
from staync.db.services.notification_service import add_notification
from staync.lib.hooks import AFTER_TWEET_LIKE, AFTER_TWEET_UNLIKE, hooks


async def toggle_like(db_session: AsyncSession, user_id: UUID, tweet: Tweet) -> tuple[bool, int]:
    """Toggle a like. Returns ``(liked, like_count)`` after the change."""
    existing = await db_session.execute(
        select(Like).where(and_(Like.user_id == user_id, Like.tweet_id == tweet.id))
    )
    like = existing.scalar_one_or_none()

    if like:
        await db_session.execute(
            delete(Like).where(and_(Like.user_id == user_id, Like.tweet_id == tweet.id))
        )
        liked = False
    else:
        db_session.add(Like(user_id=user_id, tweet_id=tweet.id))
        add_notification(db_session, tweet.user_id, user_id, NOTIFY_LIKE, tweet_id=tweet.id)
        liked = True

    await db_session.commit()
    count = await count_likes(db_session, tweet.id)

    await hooks.do_action(AFTER_TWEET_LIKE if liked else AFTER_TWEET_UNLIKE, user_id, tweet.id)
    return liked, count


async def count_likes(db_session: AsyncSession, tweet_id: UUID) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(Like).where(Like.tweet_id == tweet_id)
    )
    return result.scalar() or 0


async def get_liked_tweet_ids(db_session: AsyncSession, user_id: UUID, tweet_ids: list[UUID]) -> set[UUID]:
    if not tweet_ids:
        return set()
    result = await db_session.execute(
        select(Like.tweet_id).where(and_(Like.user_id == user_id, Like.tweet_id.in_(tweet_ids)))
    )
    return set(result.scalars().all())
