"""Serves uploads kept in local stores at ``/storage/<store>/<key>``."""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING

from staync.lib.storage import LocalStorageBackend

if TYPE_CHECKING:
    from litestar.types import ASGIApp, Receive, Scope, Send

    from staync.config import StorageConfig

PREFIX = "/storage/"
# Keys are content hashes: a URL's bytes never change
CACHE_CONTROL = b"public, max-age=31536000, immutable"
NOT_FOUND_BODY = b'{"success":false,"error":"Not Found"}'


class StorageFilesMiddleware:
    """ASGI wrapper that answers ``/storage/`` requests for local stores.

    Everything else, including paths of stores kept elsewhere (S3 hands out
    its own URLs), goes to the wrapped app. The key doubles as the ETag, so
    a matching ``If-None-Match`` gets a 304.
    """

    def __init__(self, app: ASGIApp, storage_config: StorageConfig) -> None:
        self.app = app
        self.storage_config = storage_config

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not scope["path"].startswith(PREFIX):
            await self.app(scope, receive, send)
            return

        path = self._resolve(scope["path"][len(PREFIX):])
        if path is None:
            await self._respond(send, 404, [(b"content-type", b"application/json")], NOT_FOUND_BODY)
            return

        etag = f'"{path.name}"'.encode()
        if dict(scope.get("headers") or ()).get(b"if-none-match") == etag:
            await self._respond(send, 304, [(b"etag", etag), (b"cache-control", CACHE_CONTROL)])
            return

        content = await asyncio.to_thread(path.read_bytes)
        media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        headers = [
            (b"content-type", media_type.encode()),
            (b"content-length", str(len(content)).encode()),
            (b"cache-control", CACHE_CONTROL),
            (b"etag", etag),
        ]
        await self._respond(send, 200, headers, content)

    def _resolve(self, rest: str) -> Path | None:
        """The file for ``<store>/<key>``, or None when it is not servable."""
        store_name, _, key = rest.partition("/")
        store = self.storage_config.stores.get(store_name)
        if store is None or store.backend != "local" or not key or "\x00" in key:
            return None

        base_path = Path(store.local_path).resolve()
        try:
            path = LocalStorageBackend(base_path, store_name).path_for(key).resolve()
        except (OSError, ValueError):
            return None
        if not path.is_relative_to(base_path) or not path.is_file():
            return None
        return path

    @staticmethod
    async def _respond(send: Send, status: int, headers: list[tuple[bytes, bytes]], body: bytes = b"") -> None:
        await send({"type": "http.response.start", "status": status, "headers": headers})
        await send({"type": "http.response.body", "body": body})
