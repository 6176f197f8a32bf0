"""Backend interface for generative model implementations."""

from typing import TYPE_CHECKING, Protocol, Sequence

from live_gateway.backend.application.types import ModelReply, Turn

if TYPE_CHECKING:
    from live_gateway.backend.runtime.config import ModelRuntimeConfig


class ModelBackend(Protocol):
    """Backend interface for model implementations.

    The backend is stateless between calls: every request carries the full
    conversation history, ending with the pending ``user`` turn.
    """

    @classmethod
    def from_config(cls, config: "ModelRuntimeConfig") -> "ModelBackend":
        """Build the backend from model runtime configuration."""
        raise NotImplementedError

    async def generate(self, model: str, history: Sequence[Turn]) -> ModelReply:
        """Return a single reply turn for the given history."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release client resources held by the backend."""
        raise NotImplementedError
