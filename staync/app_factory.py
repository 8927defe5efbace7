"""Configuration helpers used by ``create_app()``: exception handlers and cookie sessions."""

from __future__ import annotations

import binascii
import hashlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cryptography.exceptions import InvalidTag
from litestar.datastructures import MutableScopeHeaders
from litestar.datastructures.cookie import Cookie
from litestar.exceptions import HTTPException
from litestar.middleware.session.client_side import ClientSideSessionBackend, CookieBackendConfig

from staync.lib.exceptions import http_exception_handler, internal_server_error_handler

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection
    from litestar.types import Message, ScopeSession

    from staync.config import SessionConfig

EXCEPTION_HANDLERS: dict[type[Exception], Any] = {
    HTTPException: http_exception_handler,
    Exception: internal_server_error_handler,
}

# Scope key set when the session cookie could not be decrypted
_STALE_SESSION_KEY = "_staync_stale_session_cookie"


class _SessionBackend(ClientSideSessionBackend):
    """Session backend that expires stale hostname-scoped session cookies.

    With ``cookie_domain`` set (``.example.com``), a cookie issued earlier
    without a domain is scoped to the exact host and is sent first, shadowing
    the domain cookie. It can no longer be decrypted, so every request would
    start an empty session. On a decryption failure the response carries a
    ``Set-Cookie`` without ``Domain`` that removes the host-scoped cookie.
    """

    async def load_from_connection(self, connection: ASGIConnection) -> dict[str, Any]:
        if cookie_keys := self.get_cookie_keys(connection):
            data = [connection.cookies[key].encode("utf-8") for key in cookie_keys]
            try:
                return self.load_data(data)
            except (InvalidTag, binascii.Error):
                connection.scope[_STALE_SESSION_KEY] = True
        return {}

    async def store_in_message(
        self,
        scope_session: ScopeSession,
        message: Message,
        connection: ASGIConnection,
    ) -> None:
        await super().store_in_message(scope_session, message, connection)

        if not connection.scope.pop(_STALE_SESSION_KEY, False) or not self.config.domain:
            return

        headers = MutableScopeHeaders.from_message(message)
        clear_params = {k: v for k, v in self._clear_cookie_params.items() if k != "domain"}
        for key in self.get_cookie_key_set(connection):
            headers.add(
                "Set-Cookie",
                Cookie(value="null", key=key, expires=0, **clear_params).to_header(header=""),
            )


@dataclass
class _SessionConfig(CookieBackendConfig):
    _backend_class = _SessionBackend  # type: ignore[assignment]


def create_session_config(secret_key: str, session: SessionConfig) -> CookieBackendConfig:
    """Encrypted cookie session keyed by a SHA-256 digest of ``secret_key``."""
    return _SessionConfig(
        secret=hashlib.sha256(secret_key.encode()).digest(),
        key=session.cookie_name,
        max_age=session.max_age,
        httponly=True,
        secure=session.secure,
        samesite="lax",
        domain=session.cookie_domain,
    )
