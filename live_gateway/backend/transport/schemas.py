"""Client payload models shared by the WebSocket and HTTP transports."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from live_gateway.errors import InvalidPayload


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LiveConfigPayload(_Payload):
    """Per-session configuration options."""

    model: Optional[str] = None


class StartSessionPayload(_Payload):
    config: Optional[LiveConfigPayload] = None
    initial_text: Optional[str] = Field(default=None, alias="initialText")


class SessionPayload(_Payload):
    session_id: str = Field(alias="sessionId", min_length=1)


class TextInputPayload(SessionPayload):
    text: str


class AudioInputPayload(SessionPayload):
    audio_chunk: str = Field(alias="audioChunk")
    mime_type: str = Field(alias="mimeType", min_length=1)


def parse_payload(model: type, data: Any) -> Any:
    """Validate raw client data, raising InvalidPayload on failure."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidPayload(detail="payload must be a JSON object")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidPayload(detail=_describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid payload"
    first: Dict[str, Any] = errors[0]
    location = ".".join(str(item) for item in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


__all__ = [
    "AudioInputPayload",
    "LiveConfigPayload",
    "SessionPayload",
    "StartSessionPayload",
    "TextInputPayload",
    "parse_payload",
]
