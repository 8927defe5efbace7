"""Tests for the authentication controller."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlparse
from uuid import uuid4

import pytest
from litestar.exceptions import HTTPException

from staync.auth.oauth_account_service import LoginResult
from staync.auth.providers import NormalizedUserData
from staync.auth.session_keys import SESSION_AUTH_NEXT, SESSION_USER_ID, SESSION_USER_NAME
from staync.config import AuthConfig, OAuthProviderConfig
from staync.controllers.auth import (
    AuthController,
    _exchange_and_fetch,
    _get_safe_redirect_url,
    _is_safe_redirect_url,
    _set_login_session,
)
from staync.db.models.user import User
from staync.lib.hooks import AFTER_USER_LOGIN


def _settings(**auth):
    auth.setdefault(
        "providers",
        {"google": OAuthProviderConfig(client_id="cid", client_secret="secret")},
    )
    return SimpleNamespace(auth=AuthConfig(**auth), debug=True)


def _user(**fields):
    fields.setdefault("email", "ana@example.com")
    fields.setdefault("name", "Ana")
    return User(id=uuid4(), **fields)


class TestIsSafeRedirectUrl:
    def test_relative_path_is_safe(self):
        assert _is_safe_redirect_url("/trips", []) is True

    def test_protocol_relative_is_unsafe(self):
        assert _is_safe_redirect_url("//evil.com", []) is False

    def test_allowed_domain_and_subdomain(self):
        assert _is_safe_redirect_url("https://example.com/page", ["example.com"]) is True
        assert _is_safe_redirect_url("https://app.example.com", ["example.com"]) is True

    def test_suffix_lookalike_is_unsafe(self):
        assert _is_safe_redirect_url("https://evilexample.com", ["example.com"]) is False

    def test_wildcard_pattern(self):
        assert _is_safe_redirect_url("https://a.staync.app:8443/x", ["*.staync.app"]) is True

    def test_other_schemes_are_unsafe(self):
        assert _is_safe_redirect_url("javascript:alert(1)", ["example.com"]) is False

    def test_get_safe_redirect_pops_next(self):
        request = MagicMock()
        request.session = {SESSION_AUTH_NEXT: "https://evil.com"}
        assert _get_safe_redirect_url(request, ["example.com"]) == "/"
        assert SESSION_AUTH_NEXT not in request.session


class TestSetLoginSession:
    async def test_rotates_session_and_keeps_next(self, mock_request_factory, clean_hooks):
        user = _user()
        request = mock_request_factory(session={"stale": "value", SESSION_AUTH_NEXT: "/trips"})
        logged_in = []
        clean_hooks.add_action(AFTER_USER_LOGIN, logged_in.append)

        await _set_login_session(request, user)

        assert request.session[SESSION_USER_ID] == str(user.id)
        assert request.session[SESSION_USER_NAME] == "Ana"
        assert request.session[SESSION_AUTH_NEXT] == "/trips"
        assert "stale" not in request.session
        assert logged_in == [user]


class TestExchangeAndFetch:
    def _client(self, response):
        mock_client = AsyncMock()
        mock_client.post.return_value = response
        return mock_client

    async def test_success(self):
        mock_response = MagicMock(status_code=200)
        mock_response.json.return_value = {"access_token": "token123"}
        provider = MagicMock()
        provider.provider_info.token_url = "https://token.url"
        provider.fetch_user_info = AsyncMock(return_value={"id": "123"})
        provider.extract_user_data.return_value = NormalizedUserData("123", "a@b.c", "A", None)

        with patch("staync.controllers.auth.get_oauth_provider", return_value=provider), \
             patch("staync.controllers.auth.httpx.AsyncClient") as MockClient:
            mock_client = self._client(mock_response)
            MockClient.return_value.__aenter__ = AsyncMock(return_value=mock_client)
            MockClient.return_value.__aexit__ = AsyncMock(return_value=None)

            user_data, user_info = await _exchange_and_fetch("google", _settings(), "code123")

        assert user_data.oauth_id == "123"
        assert user_info == {"id": "123"}
        provider.fetch_user_info.assert_awaited_once_with("token123")
        provider.build_token_data.assert_called_once_with(
            "cid", "secret", "code123", "http://localhost:8080/auth/google/callback"
        )

    async def test_token_failure(self):
        mock_response = MagicMock(status_code=400, text="bad code")

        with patch("staync.controllers.auth.httpx.AsyncClient") as MockClient:
            mock_client = self._client(mock_response)
            MockClient.return_value.__aenter__ = AsyncMock(return_value=mock_client)
            MockClient.return_value.__aexit__ = AsyncMock(return_value=None)

            with pytest.raises(HTTPException, match="Failed to exchange"):
                await _exchange_and_fetch("google", _settings(), "code123")

    async def test_missing_access_token(self):
        mock_response = MagicMock(status_code=200)
        mock_response.json.return_value = {}

        with patch("staync.controllers.auth.httpx.AsyncClient") as MockClient:
            mock_client = self._client(mock_response)
            MockClient.return_value.__aenter__ = AsyncMock(return_value=mock_client)
            MockClient.return_value.__aexit__ = AsyncMock(return_value=None)

            with pytest.raises(HTTPException, match="No access token"):
                await _exchange_and_fetch("google", _settings(), "code123")


class TestOAuthRoutes:
    def test_login_redirects_to_provider(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             make_client(AuthController) as client:
            response = client.get("/auth/google/login", params={"next": "/trips"}, follow_redirects=False)

        assert response.status_code in (302, 303, 307)
        location = urlparse(response.headers["location"])
        assert location.netloc == "accounts.google.com"
        query = parse_qs(location.query)
        assert query["client_id"] == ["cid"]
        assert query["redirect_uri"] == ["http://localhost:8080/auth/google/callback"]

    def test_unknown_provider(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             make_client(AuthController) as client:
            response = client.get("/auth/myspace/login", follow_redirects=False)

        assert response.status_code == 404

    def test_unconfigured_provider(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             make_client(AuthController) as client:
            response = client.get("/auth/kakao/login", follow_redirects=False)

        assert response.status_code == 404

    def test_callback_rejects_state_mismatch(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             make_client(AuthController) as client:
            response = client.get(
                "/auth/google/callback", params={"code": "abc", "state": "forged"}, follow_redirects=False
            )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid OAuth state"}

    def test_callback_surfaces_provider_error(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             make_client(AuthController) as client:
            response = client.get("/auth/google/callback", params={"error": "access_denied"}, follow_redirects=False)

        assert response.status_code == 400


class TestPasswordRoutes:
    def test_signup(self, make_client, db_session):
        user = _user()
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             patch("staync.controllers.auth.get_user_by_email", AsyncMock(return_value=None)), \
             patch("staync.controllers.auth.create_password_user", AsyncMock(return_value=user)) as create, \
             make_client(AuthController) as client:
            response = client.post(
                "/auth/signup", json={"email": "Ana@Example.com", "password": "long-enough", "name": "Ana"}
            )

        assert response.status_code == 201
        assert response.json()["user"]["email"] == "ana@example.com"
        create.assert_awaited_once_with(db_session, "ana@example.com", "long-enough", "Ana")

    def test_signup_short_password(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             make_client(AuthController) as client:
            response = client.post("/auth/signup", json={"email": "ana@example.com", "password": "short"})

        assert response.status_code == 400
        assert response.json()["error"] == "Password must be at least 8 characters"

    def test_signup_duplicate_email(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             patch("staync.controllers.auth.get_user_by_email", AsyncMock(return_value=_user())), \
             make_client(AuthController) as client:
            response = client.post("/auth/signup", json={"email": "ana@example.com", "password": "long-enough"})

        assert response.status_code == 400
        assert response.json()["error"] == "Email is already registered"

    def test_signup_disabled(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings(password_signup=False)), \
             make_client(AuthController) as client:
            response = client.post("/auth/signup", json={"email": "ana@example.com", "password": "long-enough"})

        assert response.status_code == 404

    def test_login_failure(self, make_client):
        with patch("staync.controllers.auth.authenticate", AsyncMock(return_value=None)), \
             make_client(AuthController) as client:
            response = client.post("/auth/login", json={"email": "ana@example.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid email or password"}

    def test_login_then_session_then_logout(self, make_client):
        user = _user()
        with patch("staync.controllers.auth.authenticate", AsyncMock(return_value=user)), \
             patch("staync.controllers.auth.get_user_by_id", AsyncMock(return_value=user)), \
             make_client(AuthController) as client:
            assert client.post("/auth/login", json={"email": "ana@example.com", "password": "pw"}).status_code == 200
            assert client.get("/auth/session").json()["user"]["id"] == str(user.id)

            assert client.post("/auth/logout").json() == {"success": True}
            assert client.get("/auth/session").json() == {"user": None}

    def test_session_for_deleted_user(self, make_client, login, user_id):
        with patch("staync.controllers.auth.get_user_by_id", AsyncMock(return_value=None)), \
             make_client(AuthController) as client:
            login(client, user_id)
            assert client.get("/auth/session").json() == {"user": None}


class TestDummyLogin:
    def test_not_configured(self, make_client):
        with patch("staync.controllers.auth.get_settings", return_value=_settings()), \
             make_client(AuthController) as client:
            response = client.post("/auth/dummy-login", json={"email": "dev@example.com"})

        assert response.status_code == 404

    def test_logs_in_with_stable_identity(self, make_client, db_session):
        user = _user(email="dev@example.com", name="dev")
        oauth_user = AsyncMock(return_value=LoginResult(user=user, oauth_account=MagicMock(), is_new_user=True))
        settings = _settings(providers={"dummy": OAuthProviderConfig()})

        with patch("staync.controllers.auth.get_settings", return_value=settings), \
             patch("staync.controllers.auth.find_or_create_oauth_user", oauth_user), \
             make_client(AuthController) as client:
            first = client.post("/auth/dummy-login", json={"email": "dev@example.com"})
            second = client.post("/auth/dummy-login", json={"email": "dev@example.com"})

        assert first.status_code == 200
        assert second.json()["user"]["id"] == str(user.id)
        first_data = oauth_user.await_args_list[0].args[2]
        second_data = oauth_user.await_args_list[1].args[2]
        assert first_data.oauth_id == second_data.oauth_id
        assert first_data.oauth_id.startswith("dummy_")
        assert first_data.name == "dev"
        db_session.commit.assert_awaited()
