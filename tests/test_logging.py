import logging
from pathlib import Path

from live_gateway.backend.runtime import ApplicationRuntime, GatewayConfig, ModelRuntimeConfig
from live_gateway.model.backends.echo import EchoBackend
from live_gateway.utils.logger import (
    LOGGER,
    TRACE_LEVEL_NUM,
    clear_session_id,
    configure_logging,
    set_session_id,
    stop_logging,
)


def test_logging_includes_session_id(tmp_path: Path) -> None:
    """Test logging includes session id."""
    log_path = tmp_path / "session.log"
    configure_logging("INFO", str(log_path))
    try:
        set_session_id("session-123")
        LOGGER.info("log-test")
    finally:
        clear_session_id()
        stop_logging()

    content = log_path.read_text(encoding="utf-8")
    assert "session_id=session-123" in content
    assert "log-test" in content


def test_records_outside_a_session_use_placeholder(tmp_path: Path) -> None:
    log_path = tmp_path / "server.log"
    configure_logging("INFO", str(log_path))
    try:
        LOGGER.info("no-session")
    finally:
        stop_logging()

    assert "session_id=-: no-session" in log_path.read_text(encoding="utf-8")


def test_runtime_operations_tag_records_with_session(tmp_path: Path) -> None:
    log_path = tmp_path / "runtime.log"
    configure_logging("DEBUG", str(log_path))
    try:
        runtime = ApplicationRuntime(
            GatewayConfig(model=ModelRuntimeConfig(backend="echo")),
            backend=EchoBackend(),
        )
        state = runtime.start_session()
        runtime.buffer_text(state.session_id, "hello")
    finally:
        stop_logging()

    content = log_path.read_text(encoding="utf-8")
    assert f"session_id={state.session_id}: Text buffered" in content


def test_trace_level_is_supported(tmp_path: Path) -> None:
    log_path = tmp_path / "trace.log"
    configure_logging("TRACE", str(log_path))
    try:
        assert logging.getLogger().level == TRACE_LEVEL_NUM
        LOGGER.trace("trace-line")  # type: ignore[attr-defined]
    finally:
        stop_logging()

    content = log_path.read_text(encoding="utf-8")
    assert "[TRACE]" in content
    assert "trace-line" in content
