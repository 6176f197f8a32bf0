"""Built-in configuration defaults."""

from .model import (
    API_KEY_ENV_VARS,
    DEFAULT_BACKEND,
    DEFAULT_MODEL_NAME,
    DEFAULT_REQUEST_TIMEOUT_SEC,
    MODEL_SECTION_MAP,
)
from .server import (
    DEFAULT_CORS_ORIGINS,
    DEFAULT_HOST,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_PENDING_AUDIO_BYTES,
    DEFAULT_MAX_PENDING_TEXT_CHARS,
    DEFAULT_MAX_PENDING_TEXTS,
    DEFAULT_MAX_SESSIONS,
    DEFAULT_PORT,
    DEFAULT_REAPER_INTERVAL_SEC,
    DEFAULT_SESSION_TIMEOUT_SEC,
    SERVER_SECTION_MAP,
)

__all__ = [
    "API_KEY_ENV_VARS",
    "DEFAULT_BACKEND",
    "DEFAULT_CORS_ORIGINS",
    "DEFAULT_HOST",
    "DEFAULT_LOG_FILE",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MAX_PENDING_AUDIO_BYTES",
    "DEFAULT_MAX_PENDING_TEXT_CHARS",
    "DEFAULT_MAX_PENDING_TEXTS",
    "DEFAULT_MAX_SESSIONS",
    "DEFAULT_MODEL_NAME",
    "DEFAULT_PORT",
    "DEFAULT_REAPER_INTERVAL_SEC",
    "DEFAULT_REQUEST_TIMEOUT_SEC",
    "DEFAULT_SESSION_TIMEOUT_SEC",
    "MODEL_SECTION_MAP",
    "SERVER_SECTION_MAP",
]
