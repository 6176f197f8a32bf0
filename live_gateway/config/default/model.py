"""Default values for model-related configuration."""

from typing import Dict, Tuple

DEFAULT_BACKEND = "gemini"
DEFAULT_MODEL_NAME = "gemini-1.5-flash-latest"
DEFAULT_REQUEST_TIMEOUT_SEC = 60.0
API_KEY_ENV_VARS: Tuple[str, ...] = ("GOOGLE_API_KEY", "GEMINI_API_KEY")

MODEL_SECTION_MAP: Dict[str, str] = {
    "backend": "backend",
    "name": "model",
    "request_timeout_sec": "request_timeout_sec",
}

__all__ = [
    "API_KEY_ENV_VARS",
    "DEFAULT_BACKEND",
    "DEFAULT_MODEL_NAME",
    "DEFAULT_REQUEST_TIMEOUT_SEC",
    "MODEL_SECTION_MAP",
]
