from __future__ import annotations

import asyncio
import hashlib
from collections.abc import AsyncIterator
from pathlib import Path

from staync.lib.storage.base import StoredFile


class LocalStorageBackend:
    """Files on disk under ``base_path``, fanned out by the first four key characters.

    URLs point at ``/storage/<store>/<key>``, which the storage middleware serves.
    """

    def __init__(self, base_path: Path, store_name: str = "uploads") -> None:
        self._base_path = base_path
        self._store_name = store_name

    @property
    def base_path(self) -> Path:
        return self._base_path

    async def put(self, key: str, data: bytes, content_type: str) -> StoredFile:
        await asyncio.to_thread(self._write_file, self.path_for(key), data)
        return StoredFile(
            key=key,
            url=self._build_url(key),
            content_type=content_type,
            size=len(data),
            content_hash=hashlib.sha256(data).hexdigest(),
        )

    async def get(self, key: str) -> bytes:
        return await asyncio.to_thread(self.path_for(key).read_bytes)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self.path_for(key).unlink, missing_ok=True)

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self.path_for(key).is_file)

    async def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        for path in await asyncio.to_thread(self._walk, self._base_path):
            if path.name.startswith(prefix):
                yield path.name

    async def get_url(self, key: str) -> str:
        return self._build_url(key)

    def path_for(self, key: str) -> Path:
        if "/" in key or "\\" in key or key in ("", ".", ".."):
            raise ValueError(f"Invalid storage key {key!r}")
        if len(key) >= 4:
            return self._base_path / key[:2] / key[2:4] / key
        return self._base_path / key

    def _build_url(self, key: str) -> str:
        return f"/storage/{self._store_name}/{key}"

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    @staticmethod
    def _walk(base: Path) -> list[Path]:
        if not base.exists():
            return []
        return [p for p in base.rglob("*") if p.is_file()]
