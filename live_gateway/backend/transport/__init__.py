"""Transport layer for the live gateway."""

from .http_server import build_http_app, serve_http
from .ws_server import WS_PATH, LiveConnection, build_ws_app

__all__ = [
    "LiveConnection",
    "WS_PATH",
    "build_http_app",
    "build_ws_app",
    "serve_http",
]
