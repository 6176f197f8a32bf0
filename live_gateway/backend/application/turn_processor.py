"""Drains a session's turn buffer and exchanges it with the model."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, List, Optional, Sequence

from live_gateway.backend.application.session_manager import (
    SessionRegistry,
    SessionState,
)
from live_gateway.backend.application.types import (
    MODEL_ROLE,
    USER_ROLE,
    AudioChunk,
    LiveMessage,
    Part,
    Turn,
    TurnResult,
)
from live_gateway.errors import SessionNotFound, UpstreamModelError
from live_gateway.utils.audio import parse_pcm_mime, pcm16_to_wav
from live_gateway.utils.logger import LOGGER

if TYPE_CHECKING:
    from live_gateway.backend.runtime.metrics import Metrics
    from live_gateway.model.backends.base import ModelBackend


def coalesce_texts(texts: Sequence[str]) -> str:
    """Join buffered fragments in order into a single text."""
    return " ".join(text for text in texts if text).strip()


def audio_parts_from_chunks(chunks: Sequence[AudioChunk]) -> List[Part]:
    """Turn buffered audio into inline parts.

    Runs of raw PCM chunks sharing a sample rate are concatenated into one
    WAV part. Any other MIME type is passed through chunk by chunk.
    """
    parts: List[Part] = []
    pcm_run: List[bytes] = []
    pcm_rate: Optional[int] = None

    def flush_pcm() -> None:
        nonlocal pcm_rate
        if pcm_run and pcm_rate is not None:
            wav_bytes = pcm16_to_wav(b"".join(pcm_run), pcm_rate)
            parts.append(Part.from_bytes(wav_bytes, "audio/wav"))
        pcm_run.clear()
        pcm_rate = None

    for chunk in chunks:
        rate = parse_pcm_mime(chunk.mime_type)
        if rate is None:
            flush_pcm()
            parts.append(Part.from_bytes(chunk.data, chunk.mime_type))
            continue
        if pcm_rate is not None and rate != pcm_rate:
            flush_pcm()
        pcm_rate = rate
        pcm_run.append(chunk.data)
    flush_pcm()
    return parts


class TurnProcessor:
    """Runs one model exchange per explicit process-turn signal.

    Turns for the same session are serialized on the session's lock: a
    second caller waits for the first to finish and then processes whatever
    was buffered in the meantime. A turn with nothing buffered returns an
    empty, completed result without contacting the model.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        backend: "ModelBackend",
        metrics: Optional["Metrics"] = None,
    ) -> None:
        self._registry = registry
        self._backend = backend
        self._metrics = metrics

    async def process_turn(
        self, session_id: str, owner: Optional[str] = None
    ) -> TurnResult:
        state = self._registry.get_session(session_id, owner=owner)
        async with state.turn_lock:
            if not self._registry.is_active(state):
                raise SessionNotFound(session_id)
            return await self._process_locked(state)

    async def _process_locked(self, state: SessionState) -> TurnResult:
        session_id = state.session_id
        if not state.has_pending_input:
            LOGGER.info("No input to process for session %s", session_id)
            if self._metrics:
                self._metrics.record_turn("skipped")
            return TurnResult(messages=[], turn_complete=True, skipped=True)

        texts, audio = state.take_pending()
        text = coalesce_texts(texts)
        parts = audio_parts_from_chunks(audio)
        if text:
            parts.append(Part.from_text(text))
        if not parts:
            LOGGER.info("Buffered input for session %s was empty", session_id)
            if self._metrics:
                self._metrics.record_turn("skipped")
            return TurnResult(messages=[], turn_complete=True, skipped=True)

        self._append_user_parts(state, parts)
        LOGGER.info(
            "Sending turn %d to model %s for session %s",
            len(state.history),
            state.model,
            session_id,
        )

        started = time.perf_counter()
        try:
            reply = await self._backend.generate(state.model, list(state.history))
        except UpstreamModelError:
            self._record_failure()
            raise
        except Exception as exc:
            self._record_failure()
            LOGGER.exception("Model backend raised for session %s", session_id)
            raise UpstreamModelError(detail=str(exc) or type(exc).__name__) from exc
        latency = time.perf_counter() - started

        if not self._registry.is_active(state):
            LOGGER.warning(
                "Session %s ended while its turn was in flight; discarding reply",
                session_id,
            )
            raise SessionNotFound(session_id)

        state.history.append(Turn(role=MODEL_ROLE, parts=[Part.from_text(reply.text)]))
        if self._metrics:
            self._metrics.record_turn("processed")
            self._metrics.record_model_latency(latency)
        LOGGER.info(
            "Turn complete for session %s in %.3fs (%d chars)",
            session_id,
            latency,
            len(reply.text),
        )
        return TurnResult(
            messages=[
                LiveMessage(text=reply.text, turn_complete=False),
                LiveMessage(text="", turn_complete=True),
            ],
            turn_complete=True,
        )

    def _append_user_parts(self, state: SessionState, parts: List[Part]) -> None:
        history = state.history
        if history and history[-1].role == USER_ROLE:
            # A previous model call failed after its user turn was recorded.
            history[-1].parts.extend(parts)
            return
        history.append(Turn(role=USER_ROLE, parts=parts))

    def _record_failure(self) -> None:
        if self._metrics:
            self._metrics.record_turn("failed")


__all__ = ["TurnProcessor", "audio_parts_from_chunks", "coalesce_texts"]
