"""Find-or-create for users arriving through an OAuth provider."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staync.auth.providers import NormalizedUserData
from staync.db.models.oauth_account import OAuthAccount
from staync.db.models.user import User


@dataclass
class LoginResult:
    user: User
    oauth_account: OAuthAccount
    is_new_user: bool


def _refresh_profile(user: User, user_data: NormalizedUserData) -> None:
    # Profile edits made in the app win over the provider's values
    if user_data.name and not user.name:
        user.name = user_data.name
    if user_data.picture_url and not user.image:
        user.image = user_data.picture_url
    user.last_login_at = datetime.now(UTC)


async def find_or_create_oauth_user(
    db_session: AsyncSession,
    provider: str,
    user_data: NormalizedUserData,
    raw_user_info: dict,
) -> LoginResult:
    """Resolve the user for a provider identity.

    Lookup order: the linked OAuth account, then an existing user with the
    same email (the identity is linked to it), then a brand new user.
    """
    result = await db_session.execute(
        select(OAuthAccount)
        .options(selectinload(OAuthAccount.user))
        .where(
            OAuthAccount.provider == provider,
            OAuthAccount.provider_account_id == user_data.oauth_id,
        )
    )
    oauth_account = result.scalar_one_or_none()

    if oauth_account:
        _refresh_profile(oauth_account.user, user_data)
        if user_data.email:
            oauth_account.provider_email = user_data.email
        oauth_account.provider_metadata = raw_user_info
        return LoginResult(user=oauth_account.user, oauth_account=oauth_account, is_new_user=False)

    user = None
    if user_data.email:
        result = await db_session.execute(select(User).where(User.email == user_data.email))
        user = result.scalar_one_or_none()

    is_new_user = user is None
    if user is None:
        user = User(
            email=user_data.email,
            name=user_data.name,
            image=user_data.picture_url,
            last_login_at=datetime.now(UTC),
        )
        db_session.add(user)
        await db_session.flush()
    else:
        _refresh_profile(user, user_data)

    oauth_account = OAuthAccount(
        provider=provider,
        provider_account_id=user_data.oauth_id,
        provider_email=user_data.email,
        provider_metadata=raw_user_info,
        user_id=user.id,
    )
    db_session.add(oauth_account)
    return LoginResult(user=user, oauth_account=oauth_account, is_new_user=is_new_user)
