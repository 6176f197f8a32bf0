"""Accumulates client text/audio fragments between processed turns."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from live_gateway.backend.application.session_manager import (
    SessionRegistry,
    SessionState,
)
from live_gateway.backend.application.types import AudioChunk
from live_gateway.errors import BufferLimitExceeded, InvalidPayload
from live_gateway.utils.logger import LOGGER

if TYPE_CHECKING:
    from live_gateway.backend.runtime.metrics import Metrics


@dataclass(frozen=True)
class BufferLimits:
    """Per-session caps on pending input. Values <= 0 disable a cap."""

    max_pending_texts: int = 256
    max_pending_text_chars: int = 64 * 1024
    max_pending_audio_bytes: int = 16 * 1024 * 1024


class TurnBuffer:
    """Buffers fragments into session state; rejects once a cap is hit."""

    def __init__(
        self,
        registry: SessionRegistry,
        limits: BufferLimits | None = None,
        metrics: Optional["Metrics"] = None,
    ) -> None:
        self._registry = registry
        self._limits = limits or BufferLimits()
        self._metrics = metrics

    @property
    def limits(self) -> BufferLimits:
        return self._limits

    def buffer_text(
        self, session_id: str, text: str, owner: Optional[str] = None
    ) -> SessionState:
        """Append a text fragment to the session's pending turn."""
        state = self._registry.get_session(session_id, owner=owner)
        limits = self._limits
        with state.buffer_lock:
            if (
                limits.max_pending_texts > 0
                and len(state.pending_texts) >= limits.max_pending_texts
            ):
                self._reject(
                    session_id,
                    f"at most {limits.max_pending_texts} text fragments per turn",
                )
            if (
                limits.max_pending_text_chars > 0
                and state.pending_text_chars + len(text)
                > limits.max_pending_text_chars
            ):
                self._reject(
                    session_id,
                    f"pending text exceeds {limits.max_pending_text_chars} characters",
                )
            state.pending_texts.append(text)
            pending = len(state.pending_texts)
        if self._metrics:
            self._metrics.record_fragment("text")
        LOGGER.debug(
            "Text buffered for session %s (%d fragments pending)",
            session_id,
            pending,
        )
        LOGGER.trace("Buffered text for session %s: %r", session_id, text)  # type: ignore[attr-defined]
        return state

    def buffer_audio(
        self,
        session_id: str,
        payload: bytes,
        mime_type: str,
        owner: Optional[str] = None,
    ) -> SessionState:
        """Append an audio chunk with its own MIME type."""
        state = self._registry.get_session(session_id, owner=owner)
        limits = self._limits
        with state.buffer_lock:
            if (
                limits.max_pending_audio_bytes > 0
                and state.pending_audio_bytes + len(payload)
                > limits.max_pending_audio_bytes
            ):
                self._reject(
                    session_id,
                    f"pending audio exceeds {limits.max_pending_audio_bytes} bytes",
                )
            state.pending_audio.append(
                AudioChunk(data=bytes(payload), mime_type=mime_type)
            )
            state.pending_audio_bytes += len(payload)
        if self._metrics:
            self._metrics.record_fragment("audio")
        LOGGER.debug(
            "Audio chunk buffered for session %s: %d bytes, type %s",
            session_id,
            len(payload),
            mime_type,
        )
        return state

    def buffer_audio_base64(
        self,
        session_id: str,
        audio_b64: str,
        mime_type: str,
        owner: Optional[str] = None,
    ) -> SessionState:
        """Decode a base64 audio chunk and buffer it."""
        try:
            payload = base64.b64decode(audio_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidPayload(detail=f"audioChunk is not valid base64: {exc}") from exc
        return self.buffer_audio(session_id, payload, mime_type, owner=owner)

    def _reject(self, session_id: str, detail: str) -> None:
        if self._metrics:
            self._metrics.record_buffer_rejection()
        LOGGER.warning("Rejected fragment for session %s: %s", session_id, detail)
        raise BufferLimitExceeded(detail=detail)


__all__ = ["BufferLimits", "TurnBuffer"]
