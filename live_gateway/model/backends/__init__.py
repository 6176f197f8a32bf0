"""Backend registry for model implementations."""

from typing import Type

from live_gateway.model.backends.base import ModelBackend
from live_gateway.model.backends.echo import EchoBackend


def get_backend(name: str) -> Type[ModelBackend]:
    """Resolve a backend implementation by name."""
    normalized = (name or "gemini").lower()
    if normalized in {"gemini", "google", "google_genai", "google-genai"}:
        from live_gateway.model.backends.gemini import GeminiBackend

        return GeminiBackend
    if normalized in {"echo", "offline", "fake"}:
        return EchoBackend
    raise ValueError(f"Unknown model backend: {name}")


__all__ = ["ModelBackend", "get_backend"]
