"""Default values for server/runtime configuration."""

from typing import Dict, List

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_CORS_ORIGINS: List[str] = ["http://localhost:5173"]
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = None
DEFAULT_SESSION_TIMEOUT_SEC = 5 * 60.0
DEFAULT_REAPER_INTERVAL_SEC = 30.0
DEFAULT_MAX_SESSIONS = 0
DEFAULT_MAX_PENDING_TEXTS = 256
DEFAULT_MAX_PENDING_TEXT_CHARS = 64 * 1024
DEFAULT_MAX_PENDING_AUDIO_BYTES = 16 * 1024 * 1024

SERVER_SECTION_MAP: Dict[str, Dict[str, str]] = {
    "server": {
        "host": "host",
        "port": "port",
        "cors_origins": "cors_origins",
    },
    "session": {
        "timeout_sec": "session_timeout_sec",
        "reaper_interval_sec": "reaper_interval_sec",
        "max_sessions": "max_sessions",
    },
    "buffer": {
        "max_pending_texts": "max_pending_texts",
        "max_pending_text_chars": "max_pending_text_chars",
        "max_pending_audio_bytes": "max_pending_audio_bytes",
    },
    "logging": {
        "level": "log_level",
        "file": "log_file",
    },
}

__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_CORS_ORIGINS",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_LOG_FILE",
    "DEFAULT_SESSION_TIMEOUT_SEC",
    "DEFAULT_REAPER_INTERVAL_SEC",
    "DEFAULT_MAX_SESSIONS",
    "DEFAULT_MAX_PENDING_TEXTS",
    "DEFAULT_MAX_PENDING_TEXT_CHARS",
    "DEFAULT_MAX_PENDING_AUDIO_BYTES",
    "SERVER_SECTION_MAP",
]
