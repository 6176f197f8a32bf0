"""Conversation and turn result types shared by the application layer."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

Role = Literal["user", "model"]
USER_ROLE: Role = "user"
MODEL_ROLE: Role = "model"


@dataclass(frozen=True)
class InlineData:
    """Binary payload tagged with its MIME type."""

    mime_type: str
    data: bytes


@dataclass(frozen=True)
class Part:
    """One piece of a turn: text or inline binary data."""

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "Part":
        return cls(inline_data=InlineData(mime_type=mime_type, data=data))

    def to_payload(self) -> Dict[str, Any]:
        """Render as a JSON-safe dict (binary data base64-encoded)."""
        if self.inline_data is not None:
            return {
                "inlineData": {
                    "mimeType": self.inline_data.mime_type,
                    "data": base64.b64encode(self.inline_data.data).decode("ascii"),
                }
            }
        return {"text": self.text or ""}


@dataclass
class Turn:
    """Role-tagged entry in the conversation history."""

    role: Role
    parts: List[Part] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [part.to_payload() for part in self.parts]}


@dataclass(frozen=True)
class AudioChunk:
    """Buffered audio fragment; MIME type is tracked per chunk."""

    data: bytes
    mime_type: str


@dataclass(frozen=True)
class ModelReply:
    """Reply returned by a model backend for one request."""

    text: str
    model: str = ""


@dataclass(frozen=True)
class LiveMessage:
    """Single response message delivered to the client for a turn."""

    text: Optional[str] = None
    turn_complete: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": self.text}
        if self.turn_complete is not None:
            payload["serverContent"] = {"turnComplete": self.turn_complete}
        return payload


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one processed turn."""

    messages: List[LiveMessage] = field(default_factory=list)
    turn_complete: bool = True
    skipped: bool = False

    @property
    def texts(self) -> List[str]:
        return [message.text for message in self.messages if message.text]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "messages": [message.to_payload() for message in self.messages],
            "texts": self.texts,
            "datas": [],
            "turnComplete": self.turn_complete,
            "skipped": self.skipped,
        }


__all__ = [
    "AudioChunk",
    "InlineData",
    "LiveMessage",
    "MODEL_ROLE",
    "ModelReply",
    "Part",
    "Role",
    "Turn",
    "TurnResult",
    "USER_ROLE",
]
