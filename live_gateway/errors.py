"""Centralized error codes and status mappings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Final, Optional


class ErrorCode(str, Enum):
    """Stable error identifiers surfaced to clients and logs."""

    # session (ERR100x)
    SESSION_NOT_FOUND = "ERR1001"
    SESSION_LIMIT_EXCEEDED = "ERR1002"

    # buffering (ERR110x)
    BUFFER_LIMIT_EXCEEDED = "ERR1101"

    # payload (ERR120x)
    INVALID_PAYLOAD = "ERR1201"

    # upstream model (ERR200x)
    UPSTREAM_MODEL_FAILED = "ERR2001"
    UPSTREAM_NOT_CONFIGURED = "ERR2002"

    # transport/internal (ERR300x)
    TRANSPORT_CLOSED = "ERR3001"
    UNEXPECTED = "ERR3002"


@dataclass(frozen=True)
class ErrorSpec:
    """Maps an error code to an HTTP status and default message."""

    code: ErrorCode
    http_status: int
    message: str


ERROR_SPECS: Final[dict[ErrorCode, ErrorSpec]] = {
    ErrorCode.SESSION_NOT_FOUND: ErrorSpec(
        ErrorCode.SESSION_NOT_FOUND,
        404,
        "Invalid or expired sessionId",
    ),
    ErrorCode.SESSION_LIMIT_EXCEEDED: ErrorSpec(
        ErrorCode.SESSION_LIMIT_EXCEEDED,
        503,
        "maximum number of live sessions reached",
    ),
    ErrorCode.BUFFER_LIMIT_EXCEEDED: ErrorSpec(
        ErrorCode.BUFFER_LIMIT_EXCEEDED,
        413,
        "pending turn buffer is full",
    ),
    ErrorCode.INVALID_PAYLOAD: ErrorSpec(
        ErrorCode.INVALID_PAYLOAD,
        400,
        "invalid payload",
    ),
    ErrorCode.UPSTREAM_MODEL_FAILED: ErrorSpec(
        ErrorCode.UPSTREAM_MODEL_FAILED,
        502,
        "model call failed",
    ),
    ErrorCode.UPSTREAM_NOT_CONFIGURED: ErrorSpec(
        ErrorCode.UPSTREAM_NOT_CONFIGURED,
        500,
        "model backend is not configured",
    ),
    ErrorCode.TRANSPORT_CLOSED: ErrorSpec(
        ErrorCode.TRANSPORT_CLOSED,
        499,
        "client connection closed",
    ),
    ErrorCode.UNEXPECTED: ErrorSpec(
        ErrorCode.UNEXPECTED,
        500,
        "unexpected server error",
    ),
}

ERROR_HTTP_STATUS_MAP: Final[dict[ErrorCode, int]] = {
    code: spec.http_status for code, spec in ERROR_SPECS.items()
}


def spec_for(code: ErrorCode) -> ErrorSpec:
    """Return the ErrorSpec for a given error code."""
    return ERROR_SPECS[code]


def http_status_for(code: ErrorCode) -> int:
    """Return the HTTP status associated with an error code."""
    return ERROR_SPECS[code].http_status


def format_error(code: ErrorCode, detail: Optional[str] = None) -> str:
    """Format an error code and optional detail into a message."""
    spec = ERROR_SPECS[code]
    message = detail if detail else spec.message
    return f"{spec.code.value} {message}"


def http_payload_for(code: ErrorCode, detail: Optional[str] = None) -> dict[str, str]:
    """Build an HTTP error payload for a given error code."""
    spec = ERROR_SPECS[code]
    message = detail if detail else spec.message
    return {"code": spec.code.value, "message": message}


def ws_payload_for(
    code: ErrorCode,
    detail: Optional[str] = None,
    session_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build a WebSocket ``error`` event for a given error code."""
    data: dict[str, Any] = http_payload_for(code, detail)
    if session_id:
        data["sessionId"] = session_id
    return {"type": "error", "data": data}


class LiveGatewayError(RuntimeError):
    """Raised for application-defined errors with status metadata."""

    default_code: ErrorCode = ErrorCode.UNEXPECTED

    def __init__(
        self, code: Optional[ErrorCode] = None, detail: Optional[str] = None
    ) -> None:
        """Create an error with formatted message and status metadata."""
        code = code or self.default_code
        self.code = code
        self.http_status = http_status_for(code)
        self.detail = detail or ERROR_SPECS[code].message
        super().__init__(format_error(code, detail))


class SessionNotFound(LiveGatewayError):
    """Action addressed to a missing or destroyed session."""

    default_code = ErrorCode.SESSION_NOT_FOUND

    def __init__(self, session_id: str, detail: Optional[str] = None) -> None:
        self.session_id = session_id
        super().__init__(detail=detail or f"Invalid or expired sessionId: {session_id}")


class SessionLimitExceeded(LiveGatewayError):
    default_code = ErrorCode.SESSION_LIMIT_EXCEEDED


class BufferLimitExceeded(LiveGatewayError):
    default_code = ErrorCode.BUFFER_LIMIT_EXCEEDED


class InvalidPayload(LiveGatewayError):
    default_code = ErrorCode.INVALID_PAYLOAD


class UpstreamModelError(LiveGatewayError):
    """Model call failed or returned malformed data."""

    default_code = ErrorCode.UPSTREAM_MODEL_FAILED


class UpstreamNotConfigured(LiveGatewayError):
    default_code = ErrorCode.UPSTREAM_NOT_CONFIGURED


class TransportError(LiveGatewayError):
    """Underlying client connection dropped."""

    default_code = ErrorCode.TRANSPORT_CLOSED


__all__ = [
    "ErrorCode",
    "ErrorSpec",
    "ERROR_SPECS",
    "ERROR_HTTP_STATUS_MAP",
    "LiveGatewayError",
    "SessionNotFound",
    "SessionLimitExceeded",
    "BufferLimitExceeded",
    "InvalidPayload",
    "UpstreamModelError",
    "UpstreamNotConfigured",
    "TransportError",
    "format_error",
    "http_payload_for",
    "http_status_for",
    "spec_for",
    "ws_payload_for",
]
