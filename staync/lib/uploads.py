"""Validation and storage of user-supplied media."""

from __future__ import annotations

import base64
import binascii
import hashlib
import mimetypes
import re
from typing import TYPE_CHECKING
from urllib.parse import unquote_to_bytes

from litestar.exceptions import ValidationException

if TYPE_CHECKING:
    from staync.config import UploadConfig
    from staync.lib.storage import StorageManager, StoredFile

DATA_URL_PATTERN = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

# Room for multipart framing and the rest of a JSON body
_BODY_OVERHEAD = 1024 * 1024

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
}


def request_body_limit(max_upload_bytes: int) -> int:
    """Largest request body: an upload sent base64 encoded (``aiImage``) plus overhead."""
    return (max_upload_bytes + 2) // 3 * 4 + _BODY_OVERHEAD


def media_kind(content_type: str) -> str:
    """``image`` or ``video`` for an allowed content type."""
    return "video" if content_type.startswith("video/") else "image"


def validate_upload(content_type: str | None, size: int, config: UploadConfig) -> str:
    """Check an upload against the size and type limits; returns the normalised content type."""
    if size > config.max_bytes:
        raise ValidationException(f"File too large (Max {config.max_bytes // (1024 * 1024)}MB)")
    content_type = (content_type or "").split(";", 1)[0].strip().lower()
    if content_type not in config.allowed_types:
        raise ValidationException("Unsupported file type")
    return content_type


def content_key(data: bytes, content_type: str) -> str:
    """Content-addressed storage key: sha256 hex digest plus a file extension."""
    ext = _EXTENSIONS.get(content_type) or mimetypes.guess_extension(content_type) or ""
    return hashlib.sha256(data).hexdigest() + ext


def decode_data_url(value: str) -> tuple[bytes, str]:
    """Split a ``data:`` URL into its bytes and content type."""
    match = DATA_URL_PATTERN.match(value.strip())
    if not match:
        raise ValidationException("Invalid data URL")
    content_type = match.group("type") or "application/octet-stream"
    payload = match.group("data")
    if match.group("b64"):
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationException("Invalid data URL") from exc
    else:
        data = unquote_to_bytes(payload)
    return data, content_type.lower()


async def store_bytes(
    storage: StorageManager,
    data: bytes,
    content_type: str,
    config: UploadConfig,
) -> StoredFile:
    """Validate and write ``data`` to the default store under its content key."""
    content_type = validate_upload(content_type, len(data), config)
    backend = await storage.get()
    return await backend.put(content_key(data, content_type), data, content_type)


async def delete_stored(storage: StorageManager, key: str) -> None:
    backend = await storage.get()
    await backend.delete(key)
