"""Envelope decoding and encoding.

Inbound frames are decoded in two steps: the ``type`` tag first, then the
``data`` payload against the schema registered for that tag. Anything that
fails either step raises ``ProtocolError`` carrying the message to send
back to the client.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from pydantic import BaseModel, ValidationError

from app.schemas.realtime import ChatMessagePayload, Envelope, MessageType

INVALID_JSON = "Invalid JSON format"
INVALID_TYPE = "Type is invalid or not provided"
BOARD_ID_REQUIRED = "Board ID is required"
INVALID_BOARD_ID = "Invalid board ID"
HISTORY_FAILED = "Failed to get chat history"
PROCESSING_FAILED = "Failed to process chat message"

# tag -> (payload schema or None, error when the payload is missing)
INBOUND_SCHEMAS: dict[MessageType, tuple[type[BaseModel] | None, str]] = {
    MessageType.PING: (None, ""),
    MessageType.CHAT_MESSAGE: (ChatMessagePayload, "Chat message payload is required"),
}


class ProtocolError(ValueError):
    """A malformed inbound envelope; ``str(exc)`` is safe to show the client."""


@dataclass(frozen=True)
class Inbound:
    type: MessageType
    payload: BaseModel | None = None


def decode_envelope(raw: str | bytes) -> Inbound:
    try:
        frame = json.loads(raw)
    except ValueError as exc:
        raise ProtocolError(INVALID_JSON) from exc
    if not isinstance(frame, dict):
        raise ProtocolError(INVALID_JSON)

    try:
        kind = MessageType(frame.get("type"))
    except ValueError as exc:
        raise ProtocolError(INVALID_TYPE) from exc
    if kind not in INBOUND_SCHEMAS:
        raise ProtocolError(INVALID_TYPE)

    schema, missing_error = INBOUND_SCHEMAS[kind]
    if schema is None:
        return Inbound(kind)

    data = frame.get("data")
    if data is None:
        raise ProtocolError(missing_error)
    try:
        return Inbound(kind, schema.model_validate(data))
    except ValidationError as exc:
        raise ProtocolError(f"Invalid {kind.value} payload") from exc


def encode_envelope(kind: MessageType, payload: BaseModel | None = None) -> str:
    data = payload.model_dump(mode="json", exclude_none=True) if payload is not None else None
    return Envelope(type=kind, data=data).model_dump_json(exclude_none=True)
