import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from live_gateway import PROJECT_ROOT
from live_gateway.backend.runtime.config import (
    GatewayConfig,
    ModelRuntimeConfig,
    SessionRuntimeConfig,
)
from live_gateway.config.default import (
    API_KEY_ENV_VARS,
    DEFAULT_BACKEND,
    DEFAULT_CORS_ORIGINS,
    DEFAULT_HOST,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_PENDING_AUDIO_BYTES,
    DEFAULT_MAX_PENDING_TEXT_CHARS,
    DEFAULT_MAX_PENDING_TEXTS,
    DEFAULT_MAX_SESSIONS,
    DEFAULT_MODEL_NAME,
    DEFAULT_PORT,
    DEFAULT_REAPER_INTERVAL_SEC,
    DEFAULT_REQUEST_TIMEOUT_SEC,
    DEFAULT_SESSION_TIMEOUT_SEC,
    MODEL_SECTION_MAP,
    SERVER_SECTION_MAP,
)


@dataclass
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    backend: str = DEFAULT_BACKEND
    model: str = DEFAULT_MODEL_NAME
    request_timeout_sec: Optional[float] = DEFAULT_REQUEST_TIMEOUT_SEC
    generation_options: Dict[str, Any] = field(default_factory=dict)
    session_timeout_sec: float = DEFAULT_SESSION_TIMEOUT_SEC
    reaper_interval_sec: float = DEFAULT_REAPER_INTERVAL_SEC
    max_sessions: int = DEFAULT_MAX_SESSIONS
    max_pending_texts: int = DEFAULT_MAX_PENDING_TEXTS
    max_pending_text_chars: int = DEFAULT_MAX_PENDING_TEXT_CHARS
    max_pending_audio_bytes: int = DEFAULT_MAX_PENDING_AUDIO_BYTES
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = DEFAULT_LOG_FILE

    def to_gateway_config(self, api_key: Optional[str] = None) -> GatewayConfig:
        """Split into the runtime config consumed by ApplicationRuntime."""
        return GatewayConfig(
            model=ModelRuntimeConfig(
                backend=self.backend,
                model=self.model,
                api_key=resolve_api_key() if api_key is None else api_key,
                request_timeout_sec=self.request_timeout_sec,
                generation_options=dict(self.generation_options),
            ),
            session=SessionRuntimeConfig(
                session_timeout_sec=float(self.session_timeout_sec),
                reaper_interval_sec=float(self.reaper_interval_sec),
                max_sessions=int(self.max_sessions),
                max_pending_texts=int(self.max_pending_texts),
                max_pending_text_chars=int(self.max_pending_text_chars),
                max_pending_audio_bytes=int(self.max_pending_audio_bytes),
            ),
        )


DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "server.yaml"

SECTION_MAP: Dict[str, Dict[str, str]] = {"model": MODEL_SECTION_MAP}
SECTION_MAP.update(SERVER_SECTION_MAP)


def resolve_api_key() -> str:
    """Return the first model API key found in the environment."""
    for name in API_KEY_ENV_VARS:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


def load_config(config_path: Optional[Path] = None) -> ServerConfig:
    """Load server + model configuration from YAML, falling back to defaults."""
    cfg = ServerConfig()
    data = _read_yaml(config_path or DEFAULT_CONFIG_PATH)
    if data:
        _apply_sections(cfg, data)
    return cfg


def _read_yaml(path: Optional[Path]) -> Optional[Dict[str, Any]]:
    if not path or not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if isinstance(data, dict):
        return data
    return None


def _apply_sections(cfg: ServerConfig, raw: Dict[str, Any]) -> None:
    field_names = {f.name for f in fields(ServerConfig)}
    for section, mapping in SECTION_MAP.items():
        data = raw.get(section)
        if not isinstance(data, dict):
            continue
        for key, attr in mapping.items():
            if key in data and data[key] is not None:
                setattr(cfg, attr, data[key])
        if section == "model":
            _apply_generation_options(cfg, data.get("generation"))
        if section == "server" and isinstance(data.get("cors_origins"), str):
            cfg.cors_origins = _split_origins(data["cors_origins"])

    for key, value in raw.items():
        if key in SECTION_MAP:
            continue
        if key in field_names and value is not None:
            setattr(cfg, key, value)


def _apply_generation_options(cfg: ServerConfig, options: Any) -> None:
    if isinstance(options, dict) and options:
        cfg.generation_options = dict(options)


def _split_origins(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


__all__ = [
    "ServerConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "resolve_api_key",
]
