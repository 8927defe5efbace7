"""Media upload endpoint."""

import logging

from litestar import Controller, Request, post
from litestar.datastructures import UploadFile
from litestar.exceptions import ValidationException

from staync.auth.guards import auth_guard
from staync.config import get_settings
from staync.controllers.helpers import get_storage
from staync.lib.uploads import media_kind, store_bytes, validate_upload

logger = logging.getLogger(__name__)


class UploadController(Controller):
    path = "/api/upload"
    guards = [auth_guard]

    @post("/", status_code=200)
    async def upload(self, request: Request) -> dict:
        """Store a multipart ``file`` under its content hash in the default store."""
        config = get_settings().upload
        form_data = await request.form()
        upload = form_data.get("file")
        if not isinstance(upload, UploadFile):
            raise ValidationException("No file uploaded")

        content = await upload.read()
        content_type = validate_upload(upload.content_type, len(content), config)
        stored = await store_bytes(get_storage(request), content, content_type, config)
        logger.info("Stored upload %s (%d bytes)", stored.key, stored.size)

        return {
            "success": True,
            "media": {"url": stored.url, "publicId": stored.key, "type": media_kind(content_type)},
        }
