"""Named blob stores for uploaded media."""

from staync.lib.storage.base import StorageBackend, StoredFile
from staync.lib.storage.local import LocalStorageBackend
from staync.lib.storage.manager import StorageManager, create_storage_backend

__all__ = ["LocalStorageBackend", "StorageBackend", "StorageManager", "StoredFile", "create_storage_backend"]
