"""Helpers for pushing typed envelopes to a single client through the hub."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from app.realtime.hub import Client, ConnectionHub
from app.realtime.protocol import encode_envelope
from app.schemas.realtime import (
    ChatResponsePayload,
    ErrorPayload,
    MessageType,
    ShapeCreatedPayload,
)


async def send_event(
    hub: ConnectionHub, client: Client, kind: MessageType, payload: BaseModel | None = None
) -> bool:
    return await hub.send(client, encode_envelope(kind, payload))


async def send_error(hub: ConnectionHub, client: Client, message: str) -> bool:
    return await send_event(hub, client, MessageType.ERROR, ErrorPayload(message=message))


async def send_pong(hub: ConnectionHub, client: Client) -> bool:
    return await send_event(hub, client, MessageType.PONG)


async def send_chat_response(
    hub: ConnectionHub,
    client: Client,
    payload: ChatResponsePayload,
    kind: MessageType = MessageType.CHAT_RESPONSE,
) -> bool:
    return await send_event(hub, client, kind, payload)


async def send_shape_created(
    hub: ConnectionHub, client: Client, board_id: str, shape: dict[str, Any]
) -> bool:
    return await send_event(
        hub, client, MessageType.SHAPE_CREATED, ShapeCreatedPayload(board_id=board_id, shape=shape)
    )
