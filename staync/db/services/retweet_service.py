from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.engagement import Retweet
from staync.db.models.notification import NOTIFY_RETWEET
from staync.db.models.tweet import Tweet
from staync.db.services.notification_service import add_notification
from staync.lib.hooks import AFTER_TWEET_RETWEET, AFTER_TWEET_UNRETWEET, hooks


async def toggle_retweet(db_session: AsyncSession, user_id: UUID, tweet: Tweet) -> tuple[bool, int]:
    """Toggle a retweet. Returns ``(retweeted, retweet_count)`` after the change."""
    existing = await db_session.execute(
        select(Retweet).where(and_(Retweet.user_id == user_id, Retweet.tweet_id == tweet.id))
    )

    if existing.scalar_one_or_none():
        await db_session.execute(
            delete(Retweet).where(and_(Retweet.user_id == user_id, Retweet.tweet_id == tweet.id))
        )
        retweeted = False
    else:
        db_session.add(Retweet(user_id=user_id, tweet_id=tweet.id))
        add_notification(db_session, tweet.user_id, user_id, NOTIFY_RETWEET, tweet_id=tweet.id)
        retweeted = True

    await db_session.commit()
    count = await count_retweets(db_session, tweet.id)

    await hooks.do_action(AFTER_TWEET_RETWEET if retweeted else AFTER_TWEET_UNRETWEET, user_id, tweet.id)
    return retweeted, count


async def count_retweets(db_session: AsyncSession, tweet_id: UUID) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(Retweet).where(Retweet.tweet_id == tweet_id)
    )
    return result.scalar() or 0


async def get_retweeted_tweet_ids(db_session: AsyncSession, user_id: UUID, tweet_ids: list[UUID]) -> set[UUID]:
    if not tweet_ids:
        return set()
    result = await db_session.execute(
        select(Retweet.tweet_id).where(and_(Retweet.user_id == user_id, Retweet.tweet_id.in_(tweet_ids)))
    )
    return set(result.scalars().all())
