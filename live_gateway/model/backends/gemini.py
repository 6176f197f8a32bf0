"""Google Gemini backend implementation."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from google import genai
from google.genai import types as genai_types

from live_gateway.backend.application.types import ModelReply, Part, Turn
from live_gateway.errors import UpstreamModelError, UpstreamNotConfigured
from live_gateway.model.backends.base import ModelBackend
from live_gateway.utils.logger import LOGGER

if TYPE_CHECKING:
    from live_gateway.backend.runtime.config import ModelRuntimeConfig


def _to_genai_part(part: Part) -> genai_types.Part:
    if part.inline_data is not None:
        return genai_types.Part.from_bytes(
            data=part.inline_data.data, mime_type=part.inline_data.mime_type
        )
    return genai_types.Part(text=part.text or "")


def to_genai_contents(history: Sequence[Turn]) -> List[genai_types.Content]:
    """Render conversation history as Gemini ``contents``."""
    return [
        genai_types.Content(
            role=turn.role, parts=[_to_genai_part(part) for part in turn.parts]
        )
        for turn in history
    ]


class GeminiBackend(ModelBackend):
    """Backend wrapper for the google-genai async client."""

    def __init__(
        self,
        api_key: str,
        timeout_sec: Optional[float] = None,
        generation_options: Optional[Dict[str, Any]] = None,
        client: Optional[genai.Client] = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise UpstreamNotConfigured(
                    detail="GOOGLE_API_KEY is not set; cannot create Gemini client"
                )
            http_options = None
            if timeout_sec and timeout_sec > 0:
                http_options = genai_types.HttpOptions(timeout=int(timeout_sec * 1000))
            client = genai.Client(api_key=api_key, http_options=http_options)
        self._client = client
        self._generation_options = dict(generation_options or {})

    @classmethod
    def from_config(cls, config: "ModelRuntimeConfig") -> "GeminiBackend":
        return cls(
            api_key=config.api_key,
            timeout_sec=config.request_timeout_sec,
            generation_options=config.generation_options,
        )

    async def generate(self, model: str, history: Sequence[Turn]) -> ModelReply:
        config = None
        if self._generation_options:
            config = genai_types.GenerateContentConfig(**self._generation_options)
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=to_genai_contents(history),
                config=config,
            )
        except Exception as exc:
            LOGGER.error("Gemini request failed (model=%s): %s", model, exc)
            raise UpstreamModelError(detail=f"Gemini request failed: {exc}") from exc
        text = response.text
        if not text:
            raise UpstreamModelError(detail="Gemini returned no text in its reply")
        return ModelReply(text=text, model=model)

    async def aclose(self) -> None:
        await self._client.aio.aclose()
