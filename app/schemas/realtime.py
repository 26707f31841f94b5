"""Realtime envelope schemas (WebSocket wire format)."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class MessageType(StrEnum):
    PING = "ping"
    PONG = "pong"
    ERROR = "error"
    CHAT_MESSAGE = "chat_message"
    CHAT_RESPONSE = "chat_response"
    CHAT_STARTING = "chat_starting"
    CHAT_COMPLETED = "chat_completed"
    SHAPE_CREATED = "shape_created"


class Envelope(BaseModel):
    type: MessageType
    data: dict[str, Any] | None = None


# ── Inbound payloads ─────────────────────────────────────────────────


class ChatMessagePayload(BaseModel):
    board_id: str = ""
    message: str = ""


# ── Outbound payloads ────────────────────────────────────────────────


class ErrorPayload(BaseModel):
    message: str


class ChatResponsePayload(BaseModel):
    board_id: str | None = None
    message: str = ""
    human_message_id: str | None = None
    ai_message_id: str | None = None


class ShapeCreatedPayload(BaseModel):
    board_id: str
    shape: dict[str, Any]
