"""Tests for the local store, storage manager and the /storage/ middleware."""

from unittest.mock import AsyncMock

import pytest

from staync.config import StorageConfig, StoreConfig
from staync.lib.storage import LocalStorageBackend, StorageBackend, StorageManager, create_storage_backend
from staync.middleware.storage import StorageFilesMiddleware


class TestLocalStorageBackend:
    async def test_put_get_delete(self, tmp_path):
        backend = LocalStorageBackend(tmp_path, "uploads")

        stored = await backend.put("abcdef.png", b"png-bytes", "image/png")

        assert stored.url == "/storage/uploads/abcdef.png"
        assert stored.size == 9
        assert (tmp_path / "ab" / "cd" / "abcdef.png").read_bytes() == b"png-bytes"
        assert await backend.exists("abcdef.png")
        assert await backend.get("abcdef.png") == b"png-bytes"

        await backend.delete("abcdef.png")
        assert not await backend.exists("abcdef.png")

    async def test_delete_missing_is_noop(self, tmp_path):
        await LocalStorageBackend(tmp_path).delete("nothing.png")

    async def test_list_keys_by_prefix(self, tmp_path):
        backend = LocalStorageBackend(tmp_path)
        await backend.put("aaaa1.png", b"1", "image/png")
        await backend.put("bbbb2.png", b"2", "image/png")

        keys = [key async for key in backend.list_keys("aa")]

        assert keys == ["aaaa1.png"]

    @pytest.mark.parametrize("key", ["../etc/passwd", "a/b", "..", "", "a\\b"])
    def test_rejects_path_like_keys(self, tmp_path, key):
        with pytest.raises(ValueError):
            LocalStorageBackend(tmp_path).path_for(key)

    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(LocalStorageBackend(tmp_path), StorageBackend)


class TestStorageManager:
    async def test_caches_backend_per_store(self, tmp_path):
        manager = StorageManager(StorageConfig(stores={"uploads": StoreConfig(local_path=str(tmp_path))}))

        first = await manager.get()
        second = await manager.get("uploads")

        assert first is second
        assert first.base_path == tmp_path

    async def test_close_calls_backend_close(self, tmp_path):
        manager = StorageManager(StorageConfig(stores={"uploads": StoreConfig(local_path=str(tmp_path))}))
        backend = await manager.get()
        backend.close = AsyncMock()

        await manager.close()

        backend.close.assert_awaited_once()

    def test_unknown_backend_type(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage_backend(StoreConfig(backend="ftp"))


async def _call(app, path, headers=()):
    messages = []

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    async def send(message):
        messages.append(message)

    await app({"type": "http", "path": path, "method": "GET", "headers": list(headers)}, receive, send)
    return messages


@pytest.fixture
def storage_app(tmp_path):
    inner = AsyncMock()
    config = StorageConfig(stores={
        "uploads": StoreConfig(local_path=str(tmp_path / "uploads")),
        "remote": StoreConfig(backend="s3"),
    })
    return StorageFilesMiddleware(inner, storage_config=config), inner, tmp_path / "uploads"


class TestStorageFilesMiddleware:
    async def test_serves_stored_file(self, storage_app):
        app, inner, base = storage_app
        await LocalStorageBackend(base, "uploads").put("abcd1234.png", b"img", "image/png")

        messages = await _call(app, "/storage/uploads/abcd1234.png")

        start, body = messages
        assert start["status"] == 200
        assert (b"content-type", b"image/png") in start["headers"]
        assert (b"cache-control", b"public, max-age=31536000, immutable") in start["headers"]
        assert body["body"] == b"img"
        inner.assert_not_awaited()

    async def test_passes_through_other_paths(self, storage_app):
        app, inner, _ = storage_app
        await _call(app, "/api/tweets")
        inner.assert_awaited_once()

    @pytest.mark.parametrize("path", [
        "/storage/uploads/missing.png",
        "/storage/uploads/../../secret",
        "/storage/uploads/",
        "/storage/unknown/abcd.png",
        "/storage/remote/abcd.png",
        "/storage/uploads/ab\x00cd.png",
    ])
    async def test_not_found(self, storage_app, path):
        app, inner, _ = storage_app

        messages = await _call(app, path)

        assert messages[0]["status"] == 404
        inner.assert_not_awaited()

    async def test_etag_revalidation(self, storage_app):
        app, _, base = storage_app
        await LocalStorageBackend(base, "uploads").put("abcd1234.png", b"img", "image/png")

        first = await _call(app, "/storage/uploads/abcd1234.png")
        etag = dict(first[0]["headers"])[b"etag"]
        second = await _call(app, "/storage/uploads/abcd1234.png", headers=[(b"if-none-match", etag)])

        assert etag == b'"abcd1234.png"'
        assert second[0]["status"] == 304
        assert second[1]["body"] == b""
