"""Runtime configuration models for the live gateway application layer."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ModelRuntimeConfig:
    """Model backend configuration."""

    backend: str = "gemini"
    model: str = "gemini-1.5-flash-latest"
    api_key: str = ""
    request_timeout_sec: Optional[float] = 60.0
    generation_options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SessionRuntimeConfig:
    """Session lifecycle and buffering configuration."""

    session_timeout_sec: float = 300.0
    reaper_interval_sec: float = 30.0
    max_sessions: int = 0
    max_pending_texts: int = 256
    max_pending_text_chars: int = 64 * 1024
    max_pending_audio_bytes: int = 16 * 1024 * 1024


@dataclass
class GatewayConfig:
    """Top-level configuration for the application runtime."""

    model: ModelRuntimeConfig = field(default_factory=ModelRuntimeConfig)
    session: SessionRuntimeConfig = field(default_factory=SessionRuntimeConfig)
