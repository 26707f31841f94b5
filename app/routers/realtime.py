"""Realtime WebSocket endpoint."""

from fastapi import APIRouter, WebSocket

from app.realtime.connection import serve_connection

router = APIRouter()


@router.websocket("/ws")
async def realtime_ws(ws: WebSocket):
    """Realtime channel for board sessions.

    Client sends: {"type": "ping"} or {"type": "chat_message", "data": {"board_id": "...", "message": "..."}}
    Server sends: {"type": "pong|chat_starting|chat_response|chat_completed|shape_created|error", "data": {...}}
    """
    state = ws.app.state
    await serve_connection(ws, state.hub, state.chat_workflow.process_chat_message)
