from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.passwords import DUMMY_HASH, get_password_hash, verify_password
from staync.db.models.follow import FOLLOW_ACCEPTED, Follow
from staync.db.models.user import User
from staync.db.services.follow_service import get_following

SEARCH_LIMIT = 20


async def get_user_by_id(db_session: AsyncSession, user_id: UUID) -> User | None:
    result = await db_session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db_session: AsyncSession, email: str) -> User | None:
    result = await db_session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def create_password_user(db_session: AsyncSession, email: str, password: str, name: str | None = None) -> User:
    user = User(
        email=email,
        name=name or email.split("@", 1)[0],
        password_hash=get_password_hash(password),
        last_login_at=datetime.now(UTC),
    )
    db_session.add(user)
    await db_session.commit()
    return user


async def authenticate(db_session: AsyncSession, email: str, password: str) -> User | None:
    """Check an email/password pair. Outdated hashes are upgraded on success."""
    user = await get_user_by_email(db_session, email)
    if user is None or not user.password_hash:
        # Keep timing comparable to a real check
        verify_password(password, DUMMY_HASH)
        return None

    verified, updated_hash = verify_password(password, user.password_hash)
    if not verified:
        return None

    if updated_hash:
        user.password_hash = updated_hash
    user.last_login_at = datetime.now(UTC)
    await db_session.commit()
    return user


async def update_profile(db_session: AsyncSession, user: User, changes: dict) -> User:
    """Apply profile changes. Keys absent from ``changes`` are left alone."""
    for field in ("name", "bio", "image", "cover_image", "is_private"):
        if field in changes:
            setattr(user, field, changes[field])
    await db_session.commit()
    return user


async def search_users(
    db_session: AsyncSession,
    viewer_id: UUID,
    query: str | None,
    limit: int = SEARCH_LIMIT,
) -> list[tuple[User, int]]:
    """Users matching ``query`` by name or email with their follower counts.

    Without a query the viewer's followees are returned instead.
    """
    query = (query or "").strip()
    if not query:
        users = await get_following(db_session, viewer_id, limit=limit)
    else:
        pattern = f"%{query}%"
        result = await db_session.execute(
            select(User)
            .where(and_(User.id != viewer_id, or_(User.name.ilike(pattern), User.email.ilike(pattern))))
            .order_by(User.name)
            .limit(limit)
        )
        users = list(result.scalars().all())

    counts = await get_follower_counts(db_session, [user.id for user in users])
    return [(user, counts.get(user.id, 0)) for user in users]


async def get_follower_counts(db_session: AsyncSession, user_ids: list[UUID]) -> dict[UUID, int]:
    if not user_ids:
        return {}
    result = await db_session.execute(
        select(Follow.following_id, func.count())
        .where(and_(Follow.following_id.in_(user_ids), Follow.status == FOLLOW_ACCEPTED))
        .group_by(Follow.following_id)
    )
    return {user_id: count for user_id, count in result.all()}
