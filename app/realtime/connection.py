"""Per-connection read and write loops behind the ``/ws`` endpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from app.realtime.events import send_error, send_pong
from app.realtime.hub import Client, ConnectionHub
from app.realtime.protocol import (
    BOARD_ID_REQUIRED,
    PROCESSING_FAILED,
    ProtocolError,
    decode_envelope,
)
from app.schemas.realtime import ChatMessagePayload, MessageType

logger = logging.getLogger(__name__)

ChatHandler = Callable[[ConnectionHub, Client, ChatMessagePayload], Awaitable[None]]


async def serve_connection(websocket: WebSocket, hub: ConnectionHub, on_chat_message: ChatHandler) -> None:
    """Serve one realtime client until either side goes away.

    Whichever loop stops first unregisters the client; the hub closes its
    queue once, which in turn ends the writer. Chat runs still in flight
    for the client are cancelled.
    """
    await websocket.accept()
    client = hub.new_client(websocket)
    await hub.register(client)
    logger.info("Client %s connected", client.id)

    writer = asyncio.create_task(_write_loop(hub, client), name=f"ws-writer-{client.id}")
    chats: set[asyncio.Task] = set()
    try:
        await _read_loop(websocket, hub, client, on_chat_message, chats)
    except WebSocketDisconnect:
        logger.info("Client %s disconnected", client.id)
    except Exception:
        logger.exception("Read loop failed for client %s", client.id)
    finally:
        for task in chats:
            task.cancel()
        await hub.unregister(client)
        await writer
        if chats:
            await asyncio.gather(*chats, return_exceptions=True)


async def _read_loop(
    websocket: WebSocket,
    hub: ConnectionHub,
    client: Client,
    on_chat_message: ChatHandler,
    chats: set[asyncio.Task],
) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000))
        # Text and binary frames carry the same JSON envelopes.
        raw = message.get("text")
        if raw is None:
            raw = message.get("bytes") or b""
        try:
            inbound = decode_envelope(raw)
        except ProtocolError as exc:
            await send_error(hub, client, str(exc))
            continue

        if inbound.type is MessageType.PING:
            await send_pong(hub, client)
        elif inbound.type is MessageType.CHAT_MESSAGE:
            payload = inbound.payload
            if not payload.board_id:
                await send_error(hub, client, BOARD_ID_REQUIRED)
                continue
            task = asyncio.create_task(_run_chat(on_chat_message, hub, client, payload))
            chats.add(task)
            task.add_done_callback(chats.discard)


async def _run_chat(
    on_chat_message: ChatHandler, hub: ConnectionHub, client: Client, payload: ChatMessagePayload
) -> None:
    try:
        await on_chat_message(hub, client, payload)
    except Exception:
        logger.exception("Chat handler failed for client %s", client.id)
        await send_error(hub, client, PROCESSING_FAILED)


async def _write_loop(hub: ConnectionHub, client: Client) -> None:
    websocket = client.websocket
    try:
        async for frame in client.drain():
            await websocket.send_text(frame)
    except Exception as exc:
        logger.info("Write to client %s failed: %s", client.id, exc)
    finally:
        await hub.unregister(client)
        client.discard_pending()
        if (
            websocket.client_state is WebSocketState.CONNECTED
            and websocket.application_state is WebSocketState.CONNECTED
        ):
            try:
                await websocket.close()
            except RuntimeError:
                pass
