"""Application wiring for the live gateway."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

from live_gateway.backend.application.session_manager import (
    SessionRegistry,
    SessionRegistryHooks,
    SessionState,
)
from live_gateway.backend.application.turn_buffer import BufferLimits, TurnBuffer
from live_gateway.backend.application.turn_processor import TurnProcessor
from live_gateway.backend.application.types import TurnResult
from live_gateway.backend.runtime.config import GatewayConfig, ModelRuntimeConfig
from live_gateway.backend.runtime.metrics import Metrics
from live_gateway.model.backends import ModelBackend, get_backend
from live_gateway.utils.logger import LOGGER, clear_session_id, set_session_id


def build_backend(config: ModelRuntimeConfig) -> ModelBackend:
    """Instantiate the configured model backend."""
    return get_backend(config.backend).from_config(config)


class ApplicationRuntime:
    """Builds and owns application-layer dependencies."""

    def __init__(
        self,
        config: GatewayConfig,
        backend: Optional[ModelBackend] = None,
    ) -> None:
        self.config = config
        self.metrics = Metrics()
        session_config = config.session
        hooks = SessionRegistryHooks(
            on_create=self._on_session_created,
            on_remove=self._on_session_removed,
        )
        self.session_registry = SessionRegistry(
            default_model=config.model.model,
            hooks=hooks,
            max_sessions=session_config.max_sessions,
        )
        self.turn_buffer = TurnBuffer(
            self.session_registry,
            BufferLimits(
                max_pending_texts=session_config.max_pending_texts,
                max_pending_text_chars=session_config.max_pending_text_chars,
                max_pending_audio_bytes=session_config.max_pending_audio_bytes,
            ),
            metrics=self.metrics,
        )
        self.backend = backend if backend is not None else build_backend(config.model)
        self.turn_processor = TurnProcessor(
            self.session_registry, self.backend, metrics=self.metrics
        )
        self._reaper_task: Optional[asyncio.Task[None]] = None

    def _on_session_created(self, _state: SessionState) -> None:
        self.metrics.increase_active_sessions()

    def _on_session_removed(self, _state: SessionState) -> None:
        self.metrics.decrease_active_sessions()

    # -- operations used by transports ------------------------------------

    def start_session(
        self,
        model: Optional[str] = None,
        initial_text: Optional[str] = None,
        owner: str = "",
    ) -> SessionState:
        """Create a session; initial text is buffered, not processed."""
        state = self.session_registry.create_session(model=model, owner=owner)
        if initial_text:
            self.turn_buffer.buffer_text(state.session_id, initial_text)
        return state

    def buffer_text(
        self, session_id: str, text: str, owner: Optional[str] = None
    ) -> None:
        set_session_id(session_id)
        try:
            self.turn_buffer.buffer_text(session_id, text, owner=owner)
        finally:
            clear_session_id()

    def buffer_audio(
        self,
        session_id: str,
        audio_b64: str,
        mime_type: str,
        owner: Optional[str] = None,
    ) -> None:
        set_session_id(session_id)
        try:
            self.turn_buffer.buffer_audio_base64(
                session_id, audio_b64, mime_type, owner=owner
            )
        finally:
            clear_session_id()

    async def process_turn(
        self, session_id: str, owner: Optional[str] = None
    ) -> TurnResult:
        set_session_id(session_id)
        try:
            return await self.turn_processor.process_turn(session_id, owner=owner)
        finally:
            clear_session_id()

    def end_session(
        self, session_id: str, reason: str = "", owner: Optional[str] = None
    ) -> bool:
        return self.session_registry.destroy_session(
            session_id, reason=reason, owner=owner
        )

    def end_sessions_for(self, owner: str, reason: str = "disconnect") -> int:
        """Destroy every session created by a transport connection."""
        ended = 0
        for session_id in self.session_registry.sessions_owned_by(owner):
            if self.session_registry.destroy_session(session_id, reason=reason):
                ended += 1
        return ended

    # -- idle eviction ----------------------------------------------------

    def evict_idle_sessions(self, now: Optional[float] = None) -> int:
        """Destroy sessions idle beyond the configured timeout."""
        timeout = self.config.session.session_timeout_sec
        evicted = 0
        for session_id in self.session_registry.idle_sessions(timeout, now=now):
            LOGGER.warning("Cleaning up inactive session: %s", session_id)
            if self.session_registry.destroy_session(session_id, reason="idle"):
                self.metrics.record_eviction()
                evicted += 1
        return evicted

    async def _reaper_loop(self, interval_sec: float) -> None:
        while True:
            await asyncio.sleep(interval_sec)
            try:
                self.evict_idle_sessions()
            except Exception:  # pragma: no cover - keep the reaper alive
                LOGGER.exception("Idle session cleanup failed")

    def start_reaper(self) -> None:
        """Start the idle-session reaper on the running event loop."""
        interval = self.config.session.reaper_interval_sec
        if self._reaper_task is not None or interval <= 0:
            return
        if self.config.session.session_timeout_sec <= 0:
            return
        self._reaper_task = asyncio.get_running_loop().create_task(
            self._reaper_loop(interval)
        )
        LOGGER.info("Started inactive session cleanup (every %.1fs)", interval)

    async def shutdown(self) -> None:
        """Stop the reaper, end all sessions and close the backend."""
        if self._reaper_task is not None:
            self._reaper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reaper_task
            self._reaper_task = None
            LOGGER.info("Stopped inactive session cleanup")
        ended = self.session_registry.destroy_all(reason="shutdown")
        if ended:
            LOGGER.info("Ended %d live session(s) on shutdown", ended)
        await self.backend.aclose()

    def health_snapshot(self) -> dict:
        return {
            "status": "ok",
            "active_sessions": self.session_registry.active_count(),
            "backend": self.config.model.backend,
            "model": self.config.model.model,
        }


__all__ = ["ApplicationRuntime", "build_backend"]
