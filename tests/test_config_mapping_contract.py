"""Config mapping contract tests for YAML/CLI -> ServerConfig."""

from dataclasses import fields

import yaml

from live_gateway.config import DEFAULT_CONFIG_PATH, resolve_api_key
from live_gateway.config.default import MODEL_SECTION_MAP, SERVER_SECTION_MAP
from live_gateway.config.loader import ServerConfig, load_config
from live_gateway.main import configure_from_args, parse_args
from live_gateway.utils.logger import stop_logging


def test_section_maps_target_valid_server_config_fields() -> None:
    """All section-map targets must resolve to real ServerConfig fields."""
    field_names = {f.name for f in fields(ServerConfig)}

    for _section, mapping in SERVER_SECTION_MAP.items():
        for _yaml_key, target_field in mapping.items():
            assert target_field in field_names

    for _yaml_key, target_field in MODEL_SECTION_MAP.items():
        assert target_field in field_names


def test_bundled_config_matches_defaults() -> None:
    """The shipped config/server.yaml should load without surprises."""
    assert DEFAULT_CONFIG_PATH.exists()
    loaded = load_config(DEFAULT_CONFIG_PATH)
    assert loaded.port == 3000
    assert loaded.model == "gemini-1.5-flash-latest"
    assert loaded.session_timeout_sec == 300
    assert loaded.reaper_interval_sec == 30


def test_missing_config_file_falls_back_to_defaults(tmp_path) -> None:
    loaded = load_config(tmp_path / "absent.yaml")
    assert loaded == ServerConfig()


def test_yaml_and_cli_overrides_map_into_server_config(tmp_path) -> None:
    """YAML values should load, and CLI flags should override selected fields."""
    server_yaml = tmp_path / "server.yaml"
    server_yaml.write_text(
        yaml.safe_dump(
            {
                "server": {"port": 4100, "cors_origins": "http://a.test, http://b.test"},
                "model": {
                    "backend": "echo",
                    "name": "gemini-2.0-flash",
                    "request_timeout_sec": 15,
                    "generation": {"temperature": 0.2},
                },
                "session": {"timeout_sec": 120, "max_sessions": 4},
                "buffer": {"max_pending_texts": 16},
                "logging": {"level": "WARNING"},
            }
        ),
        encoding="utf-8",
    )

    loaded = load_config(server_yaml)
    assert loaded.port == 4100
    assert loaded.cors_origins == ["http://a.test", "http://b.test"]
    assert loaded.backend == "echo"
    assert loaded.model == "gemini-2.0-flash"
    assert loaded.request_timeout_sec == 15
    assert loaded.generation_options == {"temperature": 0.2}
    assert loaded.session_timeout_sec == 120
    assert loaded.max_sessions == 4
    assert loaded.max_pending_texts == 16
    assert loaded.log_level == "WARNING"

    args = parse_args(
        [
            "--config",
            str(server_yaml),
            "--port",
            "5200",
            "--model",
            "gemini-1.5-pro",
            "--session-timeout",
            "30",
            "--max-sessions",
            "9",
            "--log-level",
            "ERROR",
        ]
    )
    try:
        configured = configure_from_args(args)
    finally:
        stop_logging()

    assert configured.port == 5200
    assert configured.model == "gemini-1.5-pro"
    assert configured.session_timeout_sec == 30
    assert configured.max_sessions == 9
    assert configured.log_level == "ERROR"

    # Non-overridden YAML fields should remain intact.
    assert configured.backend == "echo"
    assert configured.max_pending_texts == 16
    assert configured.cors_origins == ["http://a.test", "http://b.test"]


def test_to_gateway_config_splits_runtime_sections(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    cfg = ServerConfig(backend="echo", max_sessions=5, max_pending_audio_bytes=1024)

    gateway = cfg.to_gateway_config()

    assert gateway.model.backend == "echo"
    assert gateway.model.api_key == "from-env"
    assert gateway.session.max_sessions == 5
    assert gateway.session.max_pending_audio_bytes == 1024
    assert cfg.to_gateway_config(api_key="explicit").model.api_key == "explicit"


def test_resolve_api_key_prefers_google_api_key(monkeypatch) -> None:
    monkeypatch.setenv("GOOGLE_API_KEY", " primary ")
    monkeypatch.setenv("GEMINI_API_KEY", "secondary")
    assert resolve_api_key() == "primary"

    monkeypatch.delenv("GOOGLE_API_KEY")
    monkeypatch.delenv("GEMINI_API_KEY")
    assert resolve_api_key() == ""
