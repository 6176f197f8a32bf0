"""HTTP endpoints for live sessions, metrics and health."""

import logging
from contextlib import asynccontextmanager
from copy import deepcopy
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import uvicorn
from fastapi import Body, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from uvicorn.config import LOGGING_CONFIG

from live_gateway.backend.runtime import ApplicationRuntime
from live_gateway.backend.transport.schemas import (
    AudioInputPayload,
    SessionPayload,
    StartSessionPayload,
    TextInputPayload,
    parse_payload,
)
from live_gateway.backend.transport.ws_server import build_ws_app
from live_gateway.errors import LiveGatewayError, http_payload_for, http_status_for
from live_gateway.utils.logger import LOGGER as ROOT_LOGGER

_ACCESS_LOG_IGNORED_PATHS = frozenset({"/metrics", "/metrics.json", "/health"})
LOGGER = ROOT_LOGGER.getChild("http_server")


class _AccessLogPathFilter(logging.Filter):
    """Filter out noisy access logs for internal endpoints."""

    def __init__(self, ignored_paths: Tuple[str, ...]) -> None:
        super().__init__()
        self._ignored_paths = set(ignored_paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, tuple) and len(record.args) >= 3:
            path = record.args[2]
            if path in self._ignored_paths:
                return False
        return True


def _build_uvicorn_log_config() -> Dict[str, Any]:
    log_config = deepcopy(LOGGING_CONFIG)
    log_config.setdefault("filters", {})
    log_config["filters"]["ignore_internal_endpoints"] = {
        "()": _AccessLogPathFilter,
        "ignored_paths": tuple(sorted(_ACCESS_LOG_IGNORED_PATHS)),
    }
    access_handler = log_config["handlers"].get("access", {})
    access_filters = access_handler.get("filters", [])
    access_handler["filters"] = [*access_filters, "ignore_internal_endpoints"]
    log_config["handlers"]["access"] = access_handler
    return log_config


def _sanitize_metric_name(value: str) -> str:
    sanitized = []
    for idx, ch in enumerate(value):
        if ch.isalnum() or ch == "_":
            sanitized.append(ch)
        else:
            sanitized.append("_")
        if idx == 0 and sanitized[-1].isdigit():
            sanitized.insert(0, "m")
    return "".join(sanitized) or "metric"


def _flatten_metrics(payload: Dict[str, Any]) -> Dict[str, float]:
    flat: Dict[str, float] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (int, float, bool)):
            flat[_sanitize_metric_name(key)] = float(value)
        elif isinstance(value, dict):
            for sub_key, sub_val in value.items():
                if isinstance(sub_val, (int, float, bool)):
                    metric_key = _sanitize_metric_name(f"{key}_{sub_key}")
                    flat[metric_key] = float(sub_val)
    return flat


def _prometheus_text(payload: Dict[str, Any]) -> str:
    flat = _flatten_metrics(payload)
    lines: List[str] = []
    for key in sorted(flat.keys()):
        metric_name = f"live_gateway_{key}"
        lines.append(f"# HELP {metric_name} Server metric '{key}' exposed as a gauge.")
        lines.append(f"# TYPE {metric_name} gauge")
        lines.append(f"{metric_name} {flat[key]}")
    return "\n".join(lines) + "\n"


def build_http_app(
    runtime: ApplicationRuntime, cors_origins: Optional[List[str]] = None
) -> FastAPI:
    """Create the FastAPI app serving both the REST and WebSocket surfaces."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        runtime.start_reaper()
        try:
            yield
        finally:
            await runtime.shutdown()

    app = FastAPI(title="live-gateway", lifespan=lifespan)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    metrics = runtime.metrics

    @app.exception_handler(LiveGatewayError)
    async def gateway_error_handler(
        _request: Request, exc: LiveGatewayError
    ) -> JSONResponse:
        metrics.record_error(exc.code.value)
        return JSONResponse(
            http_payload_for(exc.code, exc.detail),
            status_code=http_status_for(exc.code),
        )

    @app.get("/metrics")
    def metrics_endpoint() -> Response:
        text = _prometheus_text(metrics.render())
        return Response(content=text, media_type="text/plain; version=0.0.4")

    @app.get("/metrics.json")
    def metrics_json_endpoint() -> JSONResponse:
        return JSONResponse(metrics.render(), status_code=200)

    @app.get("/health")
    def health_endpoint() -> JSONResponse:
        return JSONResponse(runtime.health_snapshot(), status_code=200)

    @app.post("/live/connect")
    async def connect_endpoint(
        body: Optional[Dict[str, Any]] = Body(default=None),
    ) -> JSONResponse:
        payload = parse_payload(StartSessionPayload, body or {})
        model = payload.config.model if payload.config else None
        state = runtime.start_session(model=model, initial_text=payload.initial_text)
        return JSONResponse({"sessionId": state.session_id})

    @app.post("/live/send-text")
    async def send_text_endpoint(body: Dict[str, Any] = Body(...)) -> JSONResponse:
        payload = parse_payload(TextInputPayload, body)
        runtime.buffer_text(payload.session_id, payload.text)
        return JSONResponse(
            {"sessionId": payload.session_id, "success": True, "message": "Text buffered."}
        )

    @app.post("/live/send-audio")
    async def send_audio_endpoint(body: Dict[str, Any] = Body(...)) -> JSONResponse:
        payload = parse_payload(AudioInputPayload, body)
        runtime.buffer_audio(payload.session_id, payload.audio_chunk, payload.mime_type)
        return JSONResponse(
            {
                "sessionId": payload.session_id,
                "success": True,
                "message": "Audio chunk buffered.",
            }
        )

    @app.post("/live/process-turn")
    async def process_turn_endpoint(body: Dict[str, Any] = Body(...)) -> JSONResponse:
        payload = parse_payload(SessionPayload, body)
        result = await runtime.process_turn(payload.session_id)
        return JSONResponse({"sessionId": payload.session_id, **result.to_payload()})

    @app.post("/live/close")
    async def close_endpoint(body: Dict[str, Any] = Body(...)) -> JSONResponse:
        payload = parse_payload(SessionPayload, body)
        ended = runtime.end_session(payload.session_id, reason="client request")
        return JSONResponse(
            {
                "sessionId": payload.session_id,
                "success": True,
                "ended": ended,
                "message": "Session closed." if ended else "Session already closed.",
            }
        )

    build_ws_app(runtime, app)
    return app


def serve_http(
    runtime: ApplicationRuntime,
    host: str,
    port: int,
    cors_origins: Optional[List[str]] = None,
) -> None:
    """Run the gateway app in the foreground until interrupted."""
    app = build_http_app(runtime, cors_origins=cors_origins)
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="info",
        log_config=_build_uvicorn_log_config(),
    )
    server = uvicorn.Server(config)
    LOGGER.info("WebSocket gateway listening on ws://%s:%s/ws/live", host, port)
    server.run()


__all__ = ["build_http_app", "serve_http"]
