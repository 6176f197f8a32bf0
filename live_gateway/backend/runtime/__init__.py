"""Runtime wiring and configuration for the live gateway."""

from .config import GatewayConfig, ModelRuntimeConfig, SessionRuntimeConfig
from .runtime import ApplicationRuntime

__all__ = [
    "ApplicationRuntime",
    "GatewayConfig",
    "ModelRuntimeConfig",
    "SessionRuntimeConfig",
]
