"""OAuth provider strategies: endpoints plus response normalisation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx
from litestar.exceptions import HTTPException

DUMMY_PROVIDER_KEY = "dummy"


@dataclass(frozen=True)
class OAuthProviderInfo:
    name: str
    auth_url: str
    token_url: str
    userinfo_url: str
    scopes: list[str] = field(default_factory=list)


OAUTH_PROVIDERS: dict[str, OAuthProviderInfo] = {
    "google": OAuthProviderInfo(
        name="Google",
        auth_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://www.googleapis.com/oauth2/v2/userinfo",
        scopes=["openid", "email", "profile"],
    ),
    "kakao": OAuthProviderInfo(
        name="Kakao",
        auth_url="https://kauth.kakao.com/oauth/authorize",
        token_url="https://kauth.kakao.com/oauth/token",
        userinfo_url="https://kapi.kakao.com/v2/user/me",
        scopes=["profile_nickname", "profile_image", "account_email"],
    ),
}


def get_provider_info(provider: str) -> OAuthProviderInfo | None:
    return OAUTH_PROVIDERS.get(provider)


@dataclass
class NormalizedUserData:
    oauth_id: str | None
    email: str | None
    name: str | None
    picture_url: str | None


class OAuthProvider(ABC):
    def __init__(self, provider_key: str, provider_info: OAuthProviderInfo):
        self.provider_key = provider_key
        self.provider_info = provider_info

    def build_auth_params(self, client_id: str, redirect_uri: str, scopes: list[str], state: str) -> dict:
        return {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(scopes),
            "state": state,
        }

    def build_token_data(self, client_id: str, client_secret: str, code: str, redirect_uri: str) -> dict:
        return {
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
        }

    def build_token_headers(self) -> dict:
        return {"Accept": "application/json"}

    async def fetch_user_info(self, access_token: str) -> dict:
        headers = {"Authorization": f"Bearer {access_token}"}
        async with httpx.AsyncClient() as client:
            response = await client.get(self.provider_info.userinfo_url, headers=headers)
            if response.status_code != 200:
                raise HTTPException(status_code=400, detail="Failed to fetch user info")
            return response.json()

    @abstractmethod
    def extract_user_data(self, user_info: dict) -> NormalizedUserData: ...


class GoogleProvider(OAuthProvider):
    def build_auth_params(self, client_id, redirect_uri, scopes, state):
        params = super().build_auth_params(client_id, redirect_uri, scopes, state)
        params["access_type"] = "offline"
        params["prompt"] = "select_account"
        return params

    def extract_user_data(self, user_info: dict) -> NormalizedUserData:
        return NormalizedUserData(
            oauth_id=user_info.get("id"),
            email=user_info.get("email"),
            name=user_info.get("name"),
            picture_url=user_info.get("picture"),
        )


class KakaoProvider(OAuthProvider):
    """Kakao nests the profile under ``kakao_account`` and uses numeric ids."""

    def build_auth_params(self, client_id, redirect_uri, scopes, state):
        params = super().build_auth_params(client_id, redirect_uri, scopes, state)
        # Kakao expects comma-separated scopes
        params["scope"] = ",".join(scopes)
        return params

    def extract_user_data(self, user_info: dict) -> NormalizedUserData:
        account = user_info.get("kakao_account") or {}
        profile = account.get("profile") or {}
        properties = user_info.get("properties") or {}
        user_id = user_info.get("id")
        return NormalizedUserData(
            oauth_id=str(user_id) if user_id is not None else None,
            email=account.get("email"),
            name=profile.get("nickname") or properties.get("nickname"),
            picture_url=profile.get("profile_image_url") or properties.get("profile_image"),
        )


_PROVIDER_CLASSES: dict[str, type[OAuthProvider]] = {
    "google": GoogleProvider,
    "kakao": KakaoProvider,
}


def get_oauth_provider(provider_key: str) -> OAuthProvider:
    provider_info = get_provider_info(provider_key)
    cls = _PROVIDER_CLASSES.get(provider_key)
    if provider_info is None or cls is None:
        raise ValueError(f"Unknown OAuth provider: {provider_key}")
    return cls(provider_key, provider_info)


def validate_no_dummy_auth_in_production(settings) -> None:
    """Refuse to start with the dummy provider configured outside debug mode."""
    if DUMMY_PROVIDER_KEY in settings.auth.providers and not settings.debug:
        raise SystemExit(
            "The 'dummy' auth provider is for development only. "
            "Remove it from auth.providers or enable debug mode."
        )
