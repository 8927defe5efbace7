"""AI travel-log caption generation."""

import logging

from litestar import Controller, Request, post
from litestar.exceptions import HTTPException, NotFoundException, ValidationException

from staync.auth.guards import auth_guard
from staync.controllers.helpers import get_caption_client
from staync.forms import Form
from staync.lib.ai import CaptionError, CaptionModelUnavailable
from staync.schemas import TravelLogRequest

logger = logging.getLogger(__name__)

GENERATION_FAILED = "Failed to generate the travel log."


class AIController(Controller):
    path = "/api/ai-travel-log"
    guards = [auth_guard]

    @post("/", status_code=200)
    async def travel_log(self, request: Request) -> dict:
        """Write a caption for a photo from the user's spoken impressions.

        A whitespace-only ``voiceText`` lets the model pick the theme.
        """
        data = await Form(TravelLogRequest, request).require()
        if not data.image or not data.voice_text:
            raise ValidationException("Missing required fields")

        client = get_caption_client(request)
        if client is None or not client.enabled:
            raise HTTPException(status_code=503, detail="AI captioning is not configured")

        try:
            content = await client.generate_travel_log(data.image, data.voice_text, data.style, data.location)
        except CaptionModelUnavailable:
            logger.warning("Caption model %s is unavailable", client.config.model, exc_info=True)
            raise NotFoundException("AI model is unavailable. Check the API key permissions.") from None
        except CaptionError:
            logger.exception("Travel log generation failed")
            raise HTTPException(status_code=500, detail=GENERATION_FAILED) from None

        return {"success": True, "content": content, "image": data.image}
