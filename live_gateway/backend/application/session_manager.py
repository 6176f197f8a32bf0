"""Session registration and lifecycle management."""

from __future__ import annotations

import asyncio
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from live_gateway.backend.application.types import AudioChunk, Turn
from live_gateway.errors import SessionLimitExceeded, SessionNotFound
from live_gateway.utils.logger import LOGGER


@dataclass
class SessionState:
    """Mutable per-session conversation state and turn buffers."""

    session_id: str
    model: str
    owner: str = ""
    history: List[Turn] = field(default_factory=list)
    pending_texts: List[str] = field(default_factory=list)
    pending_audio: List[AudioChunk] = field(default_factory=list)
    pending_audio_bytes: int = 0
    created_at: float = 0.0
    last_interaction: float = 0.0
    turn_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    buffer_lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    @property
    def has_pending_input(self) -> bool:
        return bool(self.pending_texts or self.pending_audio)

    @property
    def pending_text_chars(self) -> int:
        return sum(len(text) for text in self.pending_texts)

    @property
    def turn_in_flight(self) -> bool:
        return self.turn_lock.locked()

    def owned_by(self, owner: Optional[str]) -> bool:
        """Sessions without an owner, or checks without one, always match."""
        return owner is None or not self.owner or self.owner == owner

    def take_pending(self) -> Tuple[List[str], List[AudioChunk]]:
        """Atomically drain both buffers and return what they held."""
        with self.buffer_lock:
            texts = list(self.pending_texts)
            audio = list(self.pending_audio)
            self._reset_pending()
        return texts, audio

    def clear_pending(self) -> None:
        with self.buffer_lock:
            self._reset_pending()

    def _reset_pending(self) -> None:
        self.pending_texts.clear()
        self.pending_audio.clear()
        self.pending_audio_bytes = 0


def _noop_session_hook(_: "SessionState") -> None:
    return None


@dataclass(frozen=True)
class SessionRegistryHooks:
    """Callbacks invoked on session create/remove."""

    on_create: Callable[["SessionState"], None] = _noop_session_hook
    on_remove: Callable[["SessionState"], None] = _noop_session_hook


class SessionRegistry:
    """Thread-safe registry for active live sessions."""

    def __init__(
        self,
        default_model: str,
        hooks: SessionRegistryHooks | None = None,
        max_sessions: int = 0,
        time_fn: Callable[[], float] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._default_model = default_model
        self._hooks = hooks or SessionRegistryHooks()
        self._max_sessions = max(0, int(max_sessions))
        self._time_fn = time_fn or time.monotonic
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._lock = threading.Lock()
        self._sessions: Dict[str, SessionState] = {}

    def create_session(
        self, model: Optional[str] = None, owner: str = ""
    ) -> SessionState:
        """Allocate a session with empty history and buffers."""
        now = self._time_fn()
        with self._lock:
            if self._max_sessions and len(self._sessions) >= self._max_sessions:
                raise SessionLimitExceeded(
                    detail=f"maximum of {self._max_sessions} live sessions reached"
                )
            session_id = self._id_factory()
            while session_id in self._sessions:
                session_id = self._id_factory()
            state = SessionState(
                session_id=session_id,
                model=model or self._default_model,
                owner=owner,
                created_at=now,
                last_interaction=now,
            )
            self._sessions[session_id] = state
        self._hooks.on_create(state)
        LOGGER.info("Session %s started (model=%s)", session_id, state.model)
        return state

    def get_session(
        self, session_id: str, owner: Optional[str] = None
    ) -> SessionState:
        """Return the session and refresh its activity timestamp.

        Raises SessionNotFound if the id is unknown, already destroyed, or
        belongs to a connection other than ``owner``.
        """
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None or not state.owned_by(owner):
                raise SessionNotFound(session_id)
            state.last_interaction = self._time_fn()
            return state

    def find_session(self, session_id: str) -> Optional[SessionState]:
        """Return the session if it is active, without touching it."""
        with self._lock:
            return self._sessions.get(session_id)

    def is_active(self, state: SessionState) -> bool:
        """True while this exact state object is still registered."""
        with self._lock:
            return self._sessions.get(state.session_id) is state

    def destroy_session(
        self, session_id: str, reason: str = "", owner: Optional[str] = None
    ) -> bool:
        """Remove a session. Unknown, foreign or already-destroyed ids are a no-op."""
        with self._lock:
            state = self._sessions.get(session_id)
            if state is not None and state.owned_by(owner):
                del self._sessions[session_id]
            else:
                state = None
        if state is None:
            LOGGER.debug("Ignoring end for unknown or foreign session %s", session_id)
            return False
        state.clear_pending()
        self._hooks.on_remove(state)
        if reason:
            LOGGER.info("Session %s ended (%s)", session_id, reason)
        else:
            LOGGER.info("Session %s ended", session_id)
        return True

    def destroy_all(self, reason: str = "shutdown") -> int:
        """Destroy every active session and return how many were removed."""
        with self._lock:
            session_ids = list(self._sessions)
        return sum(
            1 for session_id in session_ids if self.destroy_session(session_id, reason)
        )

    def sessions_owned_by(self, owner: str) -> List[str]:
        """Return ids of sessions created by the given connection."""
        if not owner:
            return []
        with self._lock:
            return [
                session_id
                for session_id, state in self._sessions.items()
                if state.owner == owner
            ]

    def idle_sessions(
        self, timeout_sec: float, now: Optional[float] = None
    ) -> List[str]:
        """Return ids idle for longer than timeout_sec with no turn running."""
        if timeout_sec <= 0:
            return []
        current = self._time_fn() if now is None else now
        with self._lock:
            return [
                session_id
                for session_id, state in self._sessions.items()
                if current - state.last_interaction > timeout_sec
                and not state.turn_in_flight
            ]

    def active_count(self) -> int:
        """Return the current number of active sessions."""
        with self._lock:
            return len(self._sessions)


__all__ = ["SessionRegistry", "SessionRegistryHooks", "SessionState"]
