from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.follow import FOLLOW_ACCEPTED, FOLLOW_PENDING, Follow
from staync.db.models.notification import NOTIFY_FOLLOW, NOTIFY_FOLLOW_ACCEPTED, NOTIFY_FOLLOW_REQUEST
from staync.db.models.user import User
from staync.db.services.notification_service import add_notification
from staync.lib.hooks import AFTER_FOLLOW, AFTER_FOLLOW_ACCEPTED, AFTER_UNFOLLOW, hooks

FOLLOWED = "followed"
REQUESTED = "requested"
UNFOLLOWED = "unfollowed"
CANCELLED = "cancelled"


@dataclass
class FollowResult:
    is_following: bool
    is_pending: bool
    action: str


async def get_follow(db_session: AsyncSession, follower_id: UUID, following_id: UUID) -> Follow | None:
    result = await db_session.execute(
        select(Follow).where(and_(Follow.follower_id == follower_id, Follow.following_id == following_id))
    )
    return result.scalar_one_or_none()


async def toggle_follow(db_session: AsyncSession, follower_id: UUID, target: User) -> FollowResult:
    """Follow or unfollow ``target``.

    Removing an existing edge unfollows (or withdraws a pending request).
    A new edge into a private account starts PENDING and sends a
    FOLLOW_REQUEST notification; otherwise it is ACCEPTED with a FOLLOW one.
    """
    existing = await get_follow(db_session, follower_id, target.id)

    if existing:
        was_pending = existing.is_pending
        await db_session.execute(
            delete(Follow).where(and_(Follow.follower_id == follower_id, Follow.following_id == target.id))
        )
        await db_session.commit()
        await hooks.do_action(AFTER_UNFOLLOW, follower_id, target.id)
        return FollowResult(is_following=False, is_pending=False, action=CANCELLED if was_pending else UNFOLLOWED)

    if target.is_private:
        db_session.add(Follow(follower_id=follower_id, following_id=target.id, status=FOLLOW_PENDING))
        add_notification(db_session, target.id, follower_id, NOTIFY_FOLLOW_REQUEST)
        await db_session.commit()
        return FollowResult(is_following=False, is_pending=True, action=REQUESTED)

    db_session.add(Follow(follower_id=follower_id, following_id=target.id, status=FOLLOW_ACCEPTED))
    add_notification(db_session, target.id, follower_id, NOTIFY_FOLLOW)
    await db_session.commit()
    await hooks.do_action(AFTER_FOLLOW, follower_id, target.id)
    return FollowResult(is_following=True, is_pending=False, action=FOLLOWED)


async def respond_to_request(db_session: AsyncSession, user_id: UUID, requester_id: UUID, accept: bool) -> bool:
    """Accept or reject ``requester_id``'s pending request to follow ``user_id``.

    Returns False when there is no such request.
    """
    follow = await get_follow(db_session, requester_id, user_id)
    if follow is None or not follow.is_pending:
        return False

    if accept:
        follow.status = FOLLOW_ACCEPTED
        add_notification(db_session, requester_id, user_id, NOTIFY_FOLLOW_ACCEPTED)
    else:
        await db_session.execute(delete(Follow).where(Follow.id == follow.id))
    await db_session.commit()

    if accept:
        await hooks.do_action(AFTER_FOLLOW_ACCEPTED, requester_id, user_id)
    return True


async def get_following_ids(db_session: AsyncSession, user_id: UUID) -> set[UUID]:
    """Ids of accounts ``user_id`` follows with an accepted edge."""
    result = await db_session.execute(
        select(Follow.following_id).where(and_(Follow.follower_id == user_id, Follow.status == FOLLOW_ACCEPTED))
    )
    return set(result.scalars().all())


async def get_follower_count(db_session: AsyncSession, user_id: UUID) -> int:
    result = await db_session.execute(
        select(func.count())
        .select_from(Follow)
        .where(and_(Follow.following_id == user_id, Follow.status == FOLLOW_ACCEPTED))
    )
    return result.scalar() or 0


async def get_following_count(db_session: AsyncSession, user_id: UUID) -> int:
    result = await db_session.execute(
        select(func.count())
        .select_from(Follow)
        .where(and_(Follow.follower_id == user_id, Follow.status == FOLLOW_ACCEPTED))
    )
    return result.scalar() or 0


async def get_followers(db_session: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0) -> list[User]:
    result = await db_session.execute(
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(and_(Follow.following_id == user_id, Follow.status == FOLLOW_ACCEPTED))
        .order_by(Follow.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_following(db_session: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0) -> list[User]:
    result = await db_session.execute(
        select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(and_(Follow.follower_id == user_id, Follow.status == FOLLOW_ACCEPTED))
        .order_by(Follow.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_pending_requests(db_session: AsyncSession, user_id: UUID) -> list[Follow]:
    """Pending requests addressed to ``user_id``, newest first."""
    result = await db_session.execute(
        select(Follow)
        .where(and_(Follow.following_id == user_id, Follow.status == FOLLOW_PENDING))
        .order_by(Follow.created_at.desc())
    )
    return list(result.scalars().all())
