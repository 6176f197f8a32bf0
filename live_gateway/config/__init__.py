"""Configuration loader utilities."""

from .loader import DEFAULT_CONFIG_PATH, ServerConfig, load_config, resolve_api_key

__all__ = [
    "ServerConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "resolve_api_key",
]
