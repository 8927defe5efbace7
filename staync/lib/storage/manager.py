from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from staync.lib.storage.local import LocalStorageBackend

if TYPE_CHECKING:
    from staync.config import StorageConfig, StoreConfig
    from staync.lib.storage.base import StorageBackend


def create_storage_backend(config: StoreConfig, store_name: str = "uploads") -> StorageBackend:
    """Build the backend for one store: ``local`` (the default) or ``s3``."""
    match config.backend:
        case "local":
            return LocalStorageBackend(base_path=Path(config.local_path), store_name=store_name)
        case "s3":
            # aioboto3 is only required when an S3 store is configured
            from staync.lib.storage.s3 import S3StorageBackend

            return S3StorageBackend(config.s3)
        case other:
            raise ValueError(f"Unknown storage backend {other!r} for store {store_name!r}; use 'local' or 's3'")


class StorageManager:
    """Hands out one backend per named store, built on first use."""

    def __init__(self, config: StorageConfig) -> None:
        self.config = config
        self._open: dict[str, StorageBackend] = {}

    async def get(self, name: str | None = None) -> StorageBackend:
        name = name or self.config.default
        backend = self._open.get(name)
        if backend is None:
            backend = self._open[name] = create_storage_backend(self.config.get_store(name), store_name=name)
        return backend

    async def close(self) -> None:
        backends, self._open = list(self._open.values()), {}
        for backend in backends:
            if hasattr(backend, "close"):
                await backend.close()
