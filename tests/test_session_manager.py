import asyncio
from unittest.mock import MagicMock

import pytest

from live_gateway.backend.application.session_manager import (
    SessionRegistry,
    SessionRegistryHooks,
)
from live_gateway.backend.application.types import AudioChunk
from live_gateway.errors import ErrorCode, SessionLimitExceeded, SessionNotFound


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return SessionRegistry(default_model="test-model", time_fn=clock)


def test_create_session_starts_empty_with_default_model(registry):
    state = registry.create_session()

    assert state.model == "test-model"
    assert state.history == []
    assert state.pending_texts == []
    assert state.pending_audio == []
    assert registry.get_session(state.session_id) is state


def test_create_session_uses_requested_model(registry):
    state = registry.create_session(model="gemini-pro")
    assert state.model == "gemini-pro"


def test_session_ids_are_unique(registry):
    ids = {registry.create_session().session_id for _ in range(50)}
    assert len(ids) == 50


def test_id_collision_draws_a_new_id(clock):
    ids = iter(["a", "a", "b"])
    registry = SessionRegistry(
        default_model="m", time_fn=clock, id_factory=lambda: next(ids)
    )

    first = registry.create_session()
    second = registry.create_session()

    assert first.session_id == "a"
    assert second.session_id == "b"


def test_get_unknown_session_raises_err1001(registry):
    with pytest.raises(SessionNotFound) as exc_info:
        registry.get_session("missing")
    assert exc_info.value.code == ErrorCode.SESSION_NOT_FOUND
    assert exc_info.value.session_id == "missing"


def test_get_session_refreshes_last_interaction(registry, clock):
    state = registry.create_session()
    clock.now += 42
    registry.get_session(state.session_id)
    assert state.last_interaction == clock.now


def test_find_session_does_not_refresh(registry, clock):
    state = registry.create_session()
    created = state.last_interaction
    clock.now += 10
    assert registry.find_session(state.session_id) is state
    assert state.last_interaction == created
    assert registry.find_session("missing") is None


def test_destroy_session_is_idempotent(clock):
    on_create = MagicMock()
    on_remove = MagicMock()
    registry = SessionRegistry(
        default_model="m",
        hooks=SessionRegistryHooks(on_create=on_create, on_remove=on_remove),
        time_fn=clock,
    )
    state = registry.create_session()

    assert registry.destroy_session(state.session_id) is True
    assert registry.destroy_session(state.session_id) is False
    assert registry.destroy_session("never-existed") is False

    on_create.assert_called_once_with(state)
    on_remove.assert_called_once_with(state)
    with pytest.raises(SessionNotFound):
        registry.get_session(state.session_id)


def test_destroy_session_discards_buffers(registry):
    state = registry.create_session()
    state.pending_texts.append("hello")
    state.pending_audio.append(AudioChunk(data=b"\x00\x00", mime_type="audio/pcm"))
    state.pending_audio_bytes = 2

    registry.destroy_session(state.session_id)

    assert not state.has_pending_input
    assert state.pending_audio_bytes == 0
    assert not registry.is_active(state)


def test_max_sessions_rejects_new_sessions(clock):
    registry = SessionRegistry(default_model="m", max_sessions=2, time_fn=clock)
    first = registry.create_session()
    registry.create_session()

    with pytest.raises(SessionLimitExceeded):
        registry.create_session()

    registry.destroy_session(first.session_id)
    registry.create_session()
    assert registry.active_count() == 2


def test_sessions_owned_by_filters_by_connection(registry):
    mine = registry.create_session(owner="conn-1")
    registry.create_session(owner="conn-2")
    registry.create_session()

    assert registry.sessions_owned_by("conn-1") == [mine.session_id]
    assert registry.sessions_owned_by("") == []


def test_idle_sessions_respects_timeout_and_in_flight_turns(registry, clock):
    stale = registry.create_session()
    busy = registry.create_session()
    clock.now += 200
    fresh = registry.create_session()
    clock.now += 200

    asyncio.run(busy.turn_lock.acquire())
    try:
        idle = registry.idle_sessions(300)
    finally:
        busy.turn_lock.release()

    assert idle == [stale.session_id]
    assert fresh.session_id not in registry.idle_sessions(300)
    assert registry.idle_sessions(0) == []


def test_destroy_all_empties_registry(registry):
    for _ in range(3):
        registry.create_session()
    assert registry.destroy_all() == 3
    assert registry.active_count() == 0


def test_owned_sessions_are_hidden_from_other_connections(registry):
    state = registry.create_session(owner="conn-1")
    shared = registry.create_session()

    assert registry.get_session(state.session_id, owner="conn-1") is state
    with pytest.raises(SessionNotFound):
        registry.get_session(state.session_id, owner="conn-2")
    assert registry.destroy_session(state.session_id, owner="conn-2") is False
    assert registry.is_active(state)

    assert registry.get_session(shared.session_id, owner="conn-2") is shared
    assert registry.destroy_session(state.session_id, owner="conn-1") is True


def test_take_pending_drains_both_buffers(registry):
    state = registry.create_session()
    state.pending_texts.extend(["a", "b"])
    chunk = AudioChunk(data=b"\x00\x00", mime_type="audio/pcm")
    state.pending_audio.append(chunk)
    state.pending_audio_bytes = 2

    texts, audio = state.take_pending()

    assert texts == ["a", "b"]
    assert audio == [chunk]
    assert not state.has_pending_input
    assert state.pending_audio_bytes == 0
