"""Offline backend that echoes the latest user turn."""

from typing import TYPE_CHECKING, Sequence

from live_gateway.backend.application.types import USER_ROLE, ModelReply, Turn
from live_gateway.errors import UpstreamModelError
from live_gateway.model.backends.base import ModelBackend

if TYPE_CHECKING:
    from live_gateway.backend.runtime.config import ModelRuntimeConfig


class EchoBackend(ModelBackend):
    """Deterministic backend for local development and smoke tests."""

    def __init__(self, prefix: str = "echo: ") -> None:
        self._prefix = prefix

    @classmethod
    def from_config(cls, config: "ModelRuntimeConfig") -> "EchoBackend":
        return cls()

    async def generate(self, model: str, history: Sequence[Turn]) -> ModelReply:
        if not history or history[-1].role != USER_ROLE:
            raise UpstreamModelError(detail="history must end with a user turn")
        last = history[-1]
        texts = [part.text for part in last.parts if part.text]
        audio_parts = sum(1 for part in last.parts if part.inline_data is not None)
        reply = " ".join(texts)
        if audio_parts:
            suffix = f"[{audio_parts} audio part(s)]"
            reply = f"{reply} {suffix}" if reply else suffix
        return ModelReply(text=f"{self._prefix}{reply}", model=model)

    async def aclose(self) -> None:
        return None
