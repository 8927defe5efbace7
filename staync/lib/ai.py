"""Travel-log caption generation and tweet embeddings.

Both go through an OpenAI-compatible endpoint, by default Gemini's, so any
provider speaking the OpenAI API can be swapped in through ``ai.base_url``.
"""

from __future__ import annotations

from array import array
from typing import TYPE_CHECKING

import openai
from openai import AsyncOpenAI

from staync.lib import observability

if TYPE_CHECKING:
    from staync.config import AIConfig


STYLE_EMOTIONAL = "emotional"
STYLE_INFORMATION = "information"
STYLE_WITTY = "witty"
STYLE_AUTO = "auto"

STYLE_PROMPTS = {
    STYLE_EMOTIONAL: (
        "Write it in a warm, emotional tone with rich expression, about 100 characters long. "
        "It should read like a monologue that leaves a lingering feeling."
    ),
    STYLE_INFORMATION: (
        "Write it clearly in about 100 characters, including what makes the place special "
        "and useful facts. It should be practical for other travelers."
    ),
    STYLE_WITTY: (
        "Write it with a witty, humorous eye in about 100 characters. "
        "It should be playful enough to make the reader smile."
    ),
    STYLE_AUTO: (
        "Analyse the expressions, composition and background of the people in the photo yourself "
        "and freely write the impression that fits best in about 100 characters. "
        "If it is a group photo, emphasise the joy of being together."
    ),
}


class CaptionError(Exception):
    pass


class CaptionModelUnavailable(CaptionError):
    """The provider does not know the configured model or the key cannot use it."""


def build_travel_log_prompt(voice_text: str, style: str, location: str, language: str) -> str:
    target_style = STYLE_PROMPTS.get(style, STYLE_PROMPTS[STYLE_EMOTIONAL])
    location = location or "unknown"

    if style == STYLE_AUTO or not voice_text.strip():
        guidance = (
            f"1. Situation: the traveler gave no description, so choose the most fitting subject "
            f"yourself from what is visible in the photo and the location ({location}).\n"
            f"2. People: if several people appear, describe their relationship or mood warmly."
        )
    else:
        guidance = (
            f'1. Subject: make the topic of the traveler\'s spoken note ("{voice_text.strip()}") '
            f"the protagonist of the text.\n"
            f"2. Support: use the photo and the location ({location}) only as background."
        )

    return (
        "You are a writer who turns travel photos into beautiful travel log entries.\n\n"
        "[Guidelines]\n"
        f"{guidance}\n"
        f"3. Style and length: {target_style}\n\n"
        f"Reply with the finished text only, written in {language}."
    )


class CaptionClient:
    def __init__(self, config: AIConfig, client: AsyncOpenAI | None = None) -> None:
        self.config = config
        self.client = client or AsyncOpenAI(
            api_key=config.api_key or "missing-api-key",
            base_url=config.base_url,
            timeout=config.timeout,
        )
        observability.instrument_openai(self.client)

    @property
    def enabled(self) -> bool:
        return bool(self.config.api_key)

    async def generate_travel_log(
        self,
        image_data_url: str,
        voice_text: str,
        style: str,
        location: str = "",
    ) -> str:
        """Write a short travel-log caption for a photo."""
        prompt = build_travel_log_prompt(voice_text, style, location, self.config.language)
        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": image_data_url}},
                        ],
                    }
                ],
            )
        except openai.NotFoundError as exc:
            raise CaptionModelUnavailable(str(exc)) from exc
        except openai.OpenAIError as exc:
            raise CaptionError(str(exc)) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise CaptionError("Empty response from caption model")
        return content.strip()

    async def embed(self, text: str) -> list[float]:
        response = await self.client.embeddings.create(model=self.config.embedding_model, input=text)
        return list(response.data[0].embedding)


def vector_to_bytes(vector: list[float]) -> bytes:
    """Pack a vector as native float32 bytes."""
    return array("f", vector).tobytes()


def bytes_to_vector(data: bytes) -> list[float]:
    values = array("f")
    values.frombytes(data)
    return values.tolist()
