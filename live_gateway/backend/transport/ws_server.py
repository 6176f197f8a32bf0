"""WebSocket gateway for live session clients."""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from live_gateway.backend.runtime import ApplicationRuntime
from live_gateway.backend.transport.schemas import (
    AudioInputPayload,
    SessionPayload,
    StartSessionPayload,
    TextInputPayload,
    parse_payload,
)
from live_gateway.errors import (
    ErrorCode,
    InvalidPayload,
    LiveGatewayError,
    TransportError,
    ws_payload_for,
)
from live_gateway.utils.logger import LOGGER as ROOT_LOGGER

LOGGER = ROOT_LOGGER.getChild("ws_server")
WS_PATH = "/ws/live"


def _split_frame(frame: Any) -> tuple[str, Dict[str, Any]]:
    """Return (event type, data) for ``{"type", "data"}`` or flat frames."""
    if not isinstance(frame, dict):
        raise InvalidPayload(detail="frame must be a JSON object")
    event = str(frame.get("type") or frame.get("event") or "").strip()
    if not event:
        raise InvalidPayload(detail="frame is missing 'type'")
    data = frame.get("data")
    if data is None:
        data = {
            key: value for key, value in frame.items() if key not in {"type", "event"}
        }
    if not isinstance(data, dict):
        raise InvalidPayload(detail="frame 'data' must be a JSON object")
    return event, data


class LiveConnection:
    """One client socket: dispatches events against the shared runtime.

    Buffering events are handled inline in arrival order. ``processTurn`` runs
    as a task so the socket keeps receiving while the model call is in
    flight; the session's own lock keeps turns in order. Sessions started
    here are owned by this connection and unknown to every other socket.
    """

    def __init__(self, websocket: WebSocket, runtime: ApplicationRuntime) -> None:
        self.websocket = websocket
        self.runtime = runtime
        self.connection_id = uuid.uuid4().hex
        self._send_lock = asyncio.Lock()
        self._closed = False
        self._turn_tasks: Set[asyncio.Task[None]] = set()
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[None]]] = {
            "startLiveSession": self._on_start_session,
            "textInput": self._on_text_input,
            "audioInput": self._on_audio_input,
            "processTurn": self._on_process_turn,
            "endLiveSession": self._on_end_session,
        }

    async def send(self, event: str, data: Dict[str, Any]) -> None:
        await self._send_frame({"type": event, "data": data})

    async def _send_frame(self, frame: Dict[str, Any]) -> None:
        if self._closed:
            raise TransportError(detail=f"connection {self.connection_id} is closed")
        async with self._send_lock:
            try:
                await self.websocket.send_json(frame)
            except (WebSocketDisconnect, RuntimeError) as exc:
                self._closed = True
                raise TransportError(
                    detail=f"connection {self.connection_id} dropped"
                ) from exc

    async def send_error(
        self, exc: LiveGatewayError, session_id: Optional[str] = None
    ) -> None:
        self.runtime.metrics.record_error(exc.code.value)
        await self._send_frame(ws_payload_for(exc.code, exc.detail, session_id))

    async def run(self) -> None:
        LOGGER.info("Client connected: %s", self.connection_id)
        try:
            await self.send("connected", {"message": "Connected to live gateway"})
            while True:
                try:
                    raw = await self.websocket.receive_text()
                except WebSocketDisconnect:
                    break
                await self._handle_raw(raw)
        except TransportError as exc:
            LOGGER.info("Connection %s lost: %s", self.connection_id, exc.detail)
        finally:
            self._closed = True
            ended = self.runtime.end_sessions_for(
                self.connection_id, reason="disconnect"
            )
            LOGGER.info(
                "Client disconnected: %s (%d session(s) ended)",
                self.connection_id,
                ended,
            )

    async def _handle_raw(self, raw: str) -> None:
        session_id: Optional[str] = None
        try:
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise InvalidPayload(detail=f"malformed JSON frame: {exc.msg}") from exc
            event, data = _split_frame(frame)
            raw_session_id = data.get("sessionId")
            if isinstance(raw_session_id, str):
                session_id = raw_session_id
            handler = self._handlers.get(event)
            if handler is None:
                raise InvalidPayload(detail=f"unknown event type '{event}'")
            await handler(data)
        except TransportError:
            raise
        except LiveGatewayError as exc:
            LOGGER.warning(
                "Event failed on connection %s: %s", self.connection_id, exc
            )
            await self.send_error(exc, session_id)
        except Exception:
            LOGGER.exception("Unexpected error on connection %s", self.connection_id)
            await self.send_error(LiveGatewayError(ErrorCode.UNEXPECTED), session_id)

    async def _on_start_session(self, data: Dict[str, Any]) -> None:
        if isinstance(data.get("options"), dict):
            data = data["options"]
        payload = parse_payload(StartSessionPayload, data)
        model = payload.config.model if payload.config else None
        state = self.runtime.start_session(
            model=model,
            initial_text=payload.initial_text,
            owner=self.connection_id,
        )
        LOGGER.info(
            "Live session %s started for client %s",
            state.session_id,
            self.connection_id,
        )
        await self.send("sessionStarted", {"sessionId": state.session_id})

    async def _on_text_input(self, data: Dict[str, Any]) -> None:
        payload = parse_payload(TextInputPayload, data)
        self.runtime.buffer_text(
            payload.session_id, payload.text, owner=self.connection_id
        )
        await self.send(
            "textInputBuffered", {"sessionId": payload.session_id, "success": True}
        )

    async def _on_audio_input(self, data: Dict[str, Any]) -> None:
        payload = parse_payload(AudioInputPayload, data)
        self.runtime.buffer_audio(
            payload.session_id,
            payload.audio_chunk,
            payload.mime_type,
            owner=self.connection_id,
        )
        await self.send(
            "audioInputBuffered", {"sessionId": payload.session_id, "success": True}
        )

    async def _on_process_turn(self, data: Dict[str, Any]) -> None:
        payload = parse_payload(SessionPayload, data)
        # Fail fast on unknown sessions before spawning the task.
        self.runtime.session_registry.get_session(
            payload.session_id, owner=self.connection_id
        )
        task = asyncio.get_running_loop().create_task(
            self._run_turn(payload.session_id)
        )
        self._turn_tasks.add(task)
        task.add_done_callback(self._turn_tasks.discard)

    async def _run_turn(self, session_id: str) -> None:
        LOGGER.info("Processing turn for session %s", session_id)
        try:
            try:
                result = await self.runtime.process_turn(
                    session_id, owner=self.connection_id
                )
            except LiveGatewayError as exc:
                LOGGER.error(
                    "Error processing turn for session %s: %s", session_id, exc
                )
                await self.send_error(exc, session_id)
                return
            except Exception:
                LOGGER.exception("Unexpected error processing turn for %s", session_id)
                await self.send_error(
                    LiveGatewayError(ErrorCode.UNEXPECTED), session_id
                )
                return
            await self.send(
                "aiResponse", {"sessionId": session_id, **result.to_payload()}
            )
            LOGGER.info("AI response sent for session %s", session_id)
        except TransportError as exc:
            LOGGER.info(
                "Dropping turn result for session %s: %s", session_id, exc.detail
            )
            self.runtime.end_sessions_for(self.connection_id, reason="disconnect")

    async def _on_end_session(self, data: Dict[str, Any]) -> None:
        payload = parse_payload(SessionPayload, data)
        self.runtime.end_session(
            payload.session_id, reason="client request", owner=self.connection_id
        )
        await self.send("sessionEnded", {"sessionId": payload.session_id})

    async def wait_for_turns(self) -> None:
        """Wait for in-flight turn tasks; their replies are dropped once closed."""
        if self._turn_tasks:
            await asyncio.gather(*list(self._turn_tasks), return_exceptions=True)


def build_ws_app(
    runtime: ApplicationRuntime, app: Optional[FastAPI] = None
) -> FastAPI:
    """Register the live session WebSocket route on app (or a new app)."""
    app = app or FastAPI()

    @app.websocket(WS_PATH)
    async def live_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        connection = LiveConnection(websocket, runtime)
        await connection.run()
        await connection.wait_for_turns()
        try:
            await websocket.close()
        except RuntimeError:
            pass

    return app


__all__ = ["LiveConnection", "WS_PATH", "build_ws_app"]
