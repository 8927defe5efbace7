from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.notification import Notification

DEFAULT_LIMIT = 20


def add_notification(
    db_session: AsyncSession,
    recipient_id: UUID,
    issuer_id: UUID,
    type: str,
    tweet_id: UUID | None = None,
) -> Notification | None:
    """Stage a notification in the caller's transaction. Self-notifications are skipped."""
    if recipient_id == issuer_id:
        return None
    notification = Notification(
        recipient_id=recipient_id,
        issuer_id=issuer_id,
        type=type,
        tweet_id=tweet_id,
    )
    db_session.add(notification)
    return notification


async def list_notifications(
    db_session: AsyncSession,
    user_id: UUID,
    limit: int = DEFAULT_LIMIT,
) -> list[Notification]:
    result = await db_session.execute(
        select(Notification)
        .where(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_unread(db_session: AsyncSession, user_id: UUID) -> int:
    result = await db_session.execute(
        select(func.count())
        .select_from(Notification)
        .where(and_(Notification.recipient_id == user_id, Notification.is_read.is_(False)))
    )
    return result.scalar() or 0


async def mark_read(db_session: AsyncSession, user_id: UUID, notification_id: UUID | None = None) -> int:
    """Mark one notification (or all of them) read. Only the recipient's rows are touched."""
    stmt = update(Notification).where(
        and_(Notification.recipient_id == user_id, Notification.is_read.is_(False))
    )
    if notification_id is not None:
        stmt = stmt.where(Notification.id == notification_id)
    result = await db_session.execute(stmt.values(is_read=True))
    await db_session.commit()
    return result.rowcount or 0


async def delete_notifications(
    db_session: AsyncSession,
    user_id: UUID,
    notification_id: UUID | None = None,
) -> int:
    stmt = delete(Notification).where(Notification.recipient_id == user_id)
    if notification_id is not None:
        stmt = stmt.where(Notification.id == notification_id)
    result = await db_session.execute(stmt)
    await db_session.commit()
    return result.rowcount or 0
