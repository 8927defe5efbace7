"""Tests for the encrypted cookie session built by ``create_session_config``.

A cookie that can no longer be decrypted (rotated secret key, or a
host-scoped cookie shadowing the domain cookie) starts an empty session
and, when a cookie domain is configured, is expired on the exact host.
"""

import hashlib
import time
from base64 import b64encode
from os import urandom
from unittest.mock import MagicMock

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from litestar import Litestar, Request, get, post
from litestar.middleware.session.client_side import AAD, NONCE_SIZE
from litestar.serialization import encode_json
from litestar.testing import TestClient

from staync.app_factory import _STALE_SESSION_KEY, _SessionBackend, create_session_config
from staync.config import SessionConfig


def _seal(secret_key: str, data: dict) -> str:
    """Encrypt ``data`` the way the client-side session backend does."""
    aesgcm = AESGCM(hashlib.sha256(secret_key.encode()).digest())
    nonce = urandom(NONCE_SIZE)
    aad = encode_json({"expires_at": round(time.time()) + 3600})
    sealed = aesgcm.encrypt(nonce, encode_json(data), associated_data=aad)
    return b64encode(nonce + sealed + AAD + aad).decode("utf-8")


def _set_cookies(message: dict) -> list[str]:
    return [value.decode() for key, value in message["headers"] if key.lower() == b"set-cookie"]


@get("/whoami")
async def whoami(request: Request) -> dict:
    return {"userId": request.session.get("user_id")}


@post("/login", status_code=200)
async def login(request: Request) -> dict:
    request.session["user_id"] = "traveler"
    return {}


def _app(session: SessionConfig) -> Litestar:
    return Litestar(
        route_handlers=[whoami, login],
        middleware=[create_session_config("secret-key", session).middleware],
    )


class TestCreateSessionConfig:
    def test_cookie_settings(self):
        config = create_session_config(
            "secret-key", SessionConfig(cookie_name="staync", max_age=60, cookie_domain=".staync.app", secure=True)
        )

        assert config.key == "staync"
        assert config.max_age == 60
        assert config.domain == ".staync.app"
        assert config.secure is True
        assert config.httponly is True
        assert config.samesite == "lax"
        assert config.secret == hashlib.sha256(b"secret-key").digest()

    def test_uses_stale_cookie_backend(self):
        config = create_session_config("secret-key", SessionConfig())
        assert isinstance(config.middleware.kwargs["backend"], _SessionBackend)

    def test_session_round_trip(self):
        with TestClient(_app(SessionConfig())) as client:
            client.post("/login")
            assert client.get("/whoami").json() == {"userId": "traveler"}

    def test_cookie_from_rotated_key_starts_empty_session(self):
        with TestClient(_app(SessionConfig())) as client:
            client.cookies.set("session", _seal("old-secret", {"user_id": "traveler"}))
            assert client.get("/whoami").json() == {"userId": None}

    def test_cookie_sealed_with_current_key_is_read(self):
        with TestClient(_app(SessionConfig())) as client:
            client.cookies.set("session", _seal("secret-key", {"user_id": "traveler"}))
            assert client.get("/whoami").json() == {"userId": "traveler"}


def _connection(cookies: dict, scope: dict | None = None):
    connection = MagicMock()
    connection.cookies = cookies
    connection.scope = scope if scope is not None else {}
    return connection


class TestSessionBackend:
    @pytest.fixture
    def backend(self):
        return _SessionBackend(create_session_config("secret-key", SessionConfig(cookie_domain=".staync.app")))

    async def test_undecryptable_cookie_is_flagged(self, backend):
        connection = _connection({"session": _seal("other-key", {"user_id": "x"})})

        assert await backend.load_from_connection(connection) == {}
        assert connection.scope[_STALE_SESSION_KEY] is True

    async def test_garbage_cookie_is_flagged(self, backend):
        connection = _connection({"session": "not-base64!!"})

        assert await backend.load_from_connection(connection) == {}
        assert connection.scope[_STALE_SESSION_KEY] is True

    async def test_missing_cookie_is_not_flagged(self, backend):
        connection = _connection({})

        assert await backend.load_from_connection(connection) == {}
        assert _STALE_SESSION_KEY not in connection.scope

    async def test_stale_cookie_is_expired_on_the_host(self, backend):
        message = {"type": "http.response.start", "headers": []}
        connection = _connection({"session": "stale"}, {_STALE_SESSION_KEY: True})

        await backend.store_in_message({}, message, connection)

        host_clears = [c for c in _set_cookies(message) if "domain=" not in c.lower()]
        assert host_clears
        assert all("session=null" in c for c in host_clears)
        assert _STALE_SESSION_KEY not in connection.scope

    async def test_valid_session_gets_no_host_clear(self, backend):
        message = {"type": "http.response.start", "headers": []}
        connection = _connection({"session": _seal("secret-key", {"user_id": "x"})})

        await backend.store_in_message({"user_id": "x"}, message, connection)

        assert all("domain=" in c.lower() for c in _set_cookies(message))

    async def test_no_domain_means_no_extra_clear(self):
        backend = _SessionBackend(create_session_config("secret-key", SessionConfig()))
        message = {"type": "http.response.start", "headers": []}
        connection = _connection({"session": "stale"}, {_STALE_SESSION_KEY: True})

        await backend.store_in_message({}, message, connection)

        assert len([c for c in _set_cookies(message) if "null" in c]) <= 1
