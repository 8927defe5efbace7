"""Authentication controller.

OAuth login through Google or Kakao, email/password signup and login, and
a development-only "dummy" login that skips the provider round trip.
"""

import fnmatch
import hashlib
import logging
import secrets
from typing import Annotated
from urllib.parse import urlencode, urlparse

import httpx
from litestar import Controller, Request, get, post
from litestar.exceptions import HTTPException, NotAuthorizedException, NotFoundException, ValidationException
from litestar.params import Parameter
from litestar.response import Redirect, Response
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import get_session_user_id
from staync.auth.oauth_account_service import find_or_create_oauth_user
from staync.auth.providers import DUMMY_PROVIDER_KEY, NormalizedUserData, get_oauth_provider, get_provider_info
from staync.auth.session_keys import (
    SESSION_AUTH_NEXT,
    SESSION_OAUTH_PROVIDER,
    SESSION_OAUTH_STATE,
    SESSION_USER_EMAIL,
    SESSION_USER_ID,
    SESSION_USER_IMAGE,
    SESSION_USER_NAME,
)
from staync.config import get_settings
from staync.controllers.helpers import user_profile, user_summary
from staync.db.models.user import User
from staync.db.services.user_service import authenticate, create_password_user, get_user_by_email, get_user_by_id
from staync.forms import Form
from staync.lib.hooks import AFTER_USER_LOGIN, hooks
from staync.schemas import DummyLoginIn, LoginIn, SignupIn

logger = logging.getLogger(__name__)


def _is_safe_redirect_url(url: str, allowed_domains: list[str]) -> bool:
    """Check if URL is safe to redirect to.

    Relative paths are always allowed. Absolute http(s) URLs must match an
    allowed domain; "*.example.com" style patterns use fnmatch, and a plain
    "example.com" also matches its subdomains.
    """
    if url.startswith("/") and not url.startswith("//"):
        return True

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False

    host = parsed.netloc.lower().split(":")[0]
    for pattern in allowed_domains:
        pattern = pattern.lower()
        if "*" in pattern or "?" in pattern:
            if fnmatch.fnmatch(host, pattern):
                return True
        elif host == pattern or host.endswith(f".{pattern}"):
            return True

    return False


def _get_safe_redirect_url(request: Request, allowed_domains: list[str], default: str = "/") -> str:
    next_url = request.session.pop(SESSION_AUTH_NEXT, None)
    if next_url and _is_safe_redirect_url(next_url, allowed_domains):
        return next_url
    return default


async def _exchange_and_fetch(provider_key: str, settings, code: str) -> tuple[NormalizedUserData, dict]:
    """Trade the authorization code for a token and fetch the provider's profile."""
    provider = get_oauth_provider(provider_key)
    provider_config = settings.auth.providers[provider_key]
    redirect_uri = settings.auth.get_redirect_uri(provider_key)

    token_data = provider.build_token_data(
        provider_config.client_id, provider_config.client_secret, code, redirect_uri
    )
    async with httpx.AsyncClient() as client:
        response = await client.post(
            provider.provider_info.token_url, data=token_data, headers=provider.build_token_headers()
        )
        if response.status_code != 200:
            logger.warning("Token exchange with %s failed: %s", provider_key, response.text)
            raise HTTPException(status_code=400, detail="Failed to exchange code for tokens")
        tokens = response.json()

    access_token = tokens.get("access_token")
    if not access_token:
        raise HTTPException(status_code=400, detail="No access token received")

    user_info = await provider.fetch_user_info(access_token)
    user_data = provider.extract_user_data(user_info)
    if not user_data.oauth_id:
        raise HTTPException(status_code=400, detail="Could not determine user ID")

    return user_data, user_info


async def _set_login_session(request: Request, user: User) -> None:
    """Rotate the session and populate it with the user's identity."""
    next_url = request.session.get(SESSION_AUTH_NEXT)
    request.session.clear()

    request.session[SESSION_USER_ID] = str(user.id)
    request.session[SESSION_USER_NAME] = user.name
    request.session[SESSION_USER_EMAIL] = user.email
    request.session[SESSION_USER_IMAGE] = user.image
    if next_url is not None:
        request.session[SESSION_AUTH_NEXT] = next_url

    await hooks.do_action(AFTER_USER_LOGIN, user)


class AuthController(Controller):
    path = "/auth"

    @get("/{provider:str}/login")
    async def oauth_login(
        self,
        request: Request,
        provider: str,
        next_url: Annotated[str | None, Parameter(query="next")] = None,
    ) -> Redirect:
        """Redirect to the provider's consent screen."""
        settings = get_settings()
        provider_info = get_provider_info(provider)

        if not provider_info:
            raise NotFoundException(f"Unknown provider: {provider}")
        if provider not in settings.auth.providers:
            raise NotFoundException(f"Provider {provider} not configured")

        if next_url and _is_safe_redirect_url(next_url, settings.auth.allowed_redirect_domains):
            request.session[SESSION_AUTH_NEXT] = next_url

        state = secrets.token_urlsafe(32)
        request.session[SESSION_OAUTH_STATE] = state
        request.session[SESSION_OAUTH_PROVIDER] = provider

        provider_config = settings.auth.providers[provider]
        params = get_oauth_provider(provider).build_auth_params(
            client_id=provider_config.client_id,
            redirect_uri=settings.auth.get_redirect_uri(provider),
            scopes=provider_config.scopes or provider_info.scopes,
            state=state,
        )
        return Redirect(path=f"{provider_info.auth_url}?{urlencode(params)}")

    @get("/{provider:str}/callback")
    async def oauth_callback(
        self,
        request: Request,
        db_session: AsyncSession,
        provider: str,
        code: str | None = None,
        oauth_state: Annotated[str | None, Parameter(query="state")] = None,
        error: str | None = None,
    ) -> Redirect:
        settings = get_settings()

        if not get_provider_info(provider) or provider not in settings.auth.providers:
            raise NotFoundException(f"Unknown provider: {provider}")

        if error:
            raise HTTPException(status_code=400, detail=f"OAuth error: {error}")

        stored_state = request.session.pop(SESSION_OAUTH_STATE, None)
        request.session.pop(SESSION_OAUTH_PROVIDER, None)
        if not oauth_state or oauth_state != stored_state:
            raise HTTPException(status_code=400, detail="Invalid OAuth state")

        if not code:
            raise HTTPException(status_code=400, detail="Missing authorization code")

        user_data, user_info = await _exchange_and_fetch(provider, settings, code)

        login_result = await find_or_create_oauth_user(db_session, provider, user_data, user_info)
        await db_session.commit()
        if login_result.is_new_user:
            logger.info("Created user %s via %s", login_result.user.id, provider)

        await _set_login_session(request, login_result.user)
        return Redirect(path=_get_safe_redirect_url(request, settings.auth.allowed_redirect_domains))

    @post("/signup", status_code=201)
    async def signup(self, request: Request, db_session: AsyncSession) -> dict:
        settings = get_settings()
        if not settings.auth.password_signup:
            raise NotFoundException("Password signup is disabled")

        data = await Form(SignupIn, request).require()
        if len(data.password) < settings.auth.password_min_length:
            raise ValidationException(
                f"Password must be at least {settings.auth.password_min_length} characters"
            )
        if await get_user_by_email(db_session, data.email):
            raise ValidationException("Email is already registered")

        user = await create_password_user(db_session, data.email, data.password, data.name)
        await _set_login_session(request, user)
        return {"success": True, "user": user_profile(user)}

    @post("/login", status_code=200)
    async def login(self, request: Request, db_session: AsyncSession) -> dict:
        data = await Form(LoginIn, request).require()
        user = await authenticate(db_session, data.email, data.password)
        if user is None:
            raise NotAuthorizedException("Invalid email or password")

        await _set_login_session(request, user)
        return {"success": True, "user": user_profile(user)}

    @post("/dummy-login", status_code=200)
    async def dummy_login(self, request: Request, db_session: AsyncSession) -> dict:
        """Log in as any email address. Development only."""
        settings = get_settings()
        if DUMMY_PROVIDER_KEY not in settings.auth.providers:
            raise NotFoundException("Dummy provider not configured")

        data = await Form(DummyLoginIn, request).require()
        name = (data.name or "").strip() or data.email.split("@")[0]

        oauth_id = f"dummy_{hashlib.sha256(data.email.encode()).hexdigest()[:16]}"
        user_data = NormalizedUserData(oauth_id=oauth_id, email=data.email, name=name, picture_url=None)

        login_result = await find_or_create_oauth_user(
            db_session, DUMMY_PROVIDER_KEY, user_data, {"id": oauth_id, "email": data.email, "name": name}
        )
        await db_session.commit()

        await _set_login_session(request, login_result.user)
        return {"success": True, "user": user_profile(login_result.user)}

    @post("/logout", status_code=200)
    async def logout(self, request: Request) -> dict:
        request.session.clear()
        return {"success": True}

    @get("/session")
    async def session(self, request: Request, db_session: AsyncSession) -> Response:
        user_id = get_session_user_id(request)
        user = await get_user_by_id(db_session, user_id) if user_id else None
        return Response(content={"user": user_summary(user)})
