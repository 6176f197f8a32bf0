import base64

import pytest

from live_gateway.backend.application.session_manager import SessionRegistry
from live_gateway.backend.application.turn_buffer import BufferLimits, TurnBuffer
from live_gateway.backend.runtime.metrics import Metrics
from live_gateway.errors import BufferLimitExceeded, InvalidPayload, SessionNotFound


@pytest.fixture
def registry():
    return SessionRegistry(default_model="test-model")


def _buffer(registry, **limits):
    metrics = Metrics()
    return TurnBuffer(registry, BufferLimits(**limits), metrics=metrics), metrics


def test_text_fragments_keep_arrival_order(registry):
    buffer, metrics = _buffer(registry)
    state = registry.create_session()

    for text in ("one", "two", "three"):
        buffer.buffer_text(state.session_id, text)

    assert state.pending_texts == ["one", "two", "three"]
    assert metrics.render()["fragments_total"] == {"text": 3}


def test_buffering_for_unknown_session_raises(registry):
    buffer, _ = _buffer(registry)
    with pytest.raises(SessionNotFound):
        buffer.buffer_text("nope", "hello")
    with pytest.raises(SessionNotFound):
        buffer.buffer_audio("nope", b"\x00\x00", "audio/pcm")


def test_text_fragment_cap_rejects_without_mutating(registry):
    buffer, metrics = _buffer(registry, max_pending_texts=2)
    state = registry.create_session()
    buffer.buffer_text(state.session_id, "a")
    buffer.buffer_text(state.session_id, "b")

    with pytest.raises(BufferLimitExceeded):
        buffer.buffer_text(state.session_id, "c")

    assert state.pending_texts == ["a", "b"]
    assert metrics.render()["buffer_rejections_total"] == 1


def test_text_character_cap(registry):
    buffer, _ = _buffer(registry, max_pending_text_chars=5)
    state = registry.create_session()
    buffer.buffer_text(state.session_id, "abc")

    with pytest.raises(BufferLimitExceeded):
        buffer.buffer_text(state.session_id, "def")
    buffer.buffer_text(state.session_id, "de")
    assert state.pending_text_chars == 5


def test_audio_byte_cap(registry):
    buffer, _ = _buffer(registry, max_pending_audio_bytes=4)
    state = registry.create_session()
    buffer.buffer_audio(state.session_id, b"\x01\x02", "audio/pcm")

    with pytest.raises(BufferLimitExceeded):
        buffer.buffer_audio(state.session_id, b"\x03\x04\x05", "audio/pcm")

    assert state.pending_audio_bytes == 2
    assert len(state.pending_audio) == 1


def test_zero_limits_disable_caps(registry):
    buffer, _ = _buffer(
        registry, max_pending_texts=0, max_pending_text_chars=0, max_pending_audio_bytes=0
    )
    state = registry.create_session()
    for _ in range(500):
        buffer.buffer_text(state.session_id, "x")
    assert len(state.pending_texts) == 500


def test_audio_chunks_keep_their_mime_type(registry):
    buffer, _ = _buffer(registry)
    state = registry.create_session()
    encoded = base64.b64encode(b"\x10\x20").decode("ascii")

    buffer.buffer_audio_base64(state.session_id, encoded, "audio/pcm;rate=24000")
    buffer.buffer_audio(state.session_id, b"webm", "audio/webm")

    assert [chunk.mime_type for chunk in state.pending_audio] == [
        "audio/pcm;rate=24000",
        "audio/webm",
    ]
    assert state.pending_audio[0].data == b"\x10\x20"
    assert state.pending_audio_bytes == 6


def test_invalid_base64_audio_is_rejected(registry):
    buffer, _ = _buffer(registry)
    state = registry.create_session()

    with pytest.raises(InvalidPayload):
        buffer.buffer_audio_base64(state.session_id, "not base64!!", "audio/pcm")
    assert state.pending_audio == []
