"""Chat workflow: one orchestration run per inbound chat message.

Two entry points share the same steps (load history, run the tool loop,
persist the exchange):

- ``trigger_chat`` for HTTP callers, returning the final reply.
- ``process_chat_message`` for realtime clients, pushing progress through
  the hub as ``chat_starting`` / ``chat_response`` / ``chat_completed``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session
from app.orchestration.errors import OrchestrationError
from app.orchestration.loop import OrchestrationResult, ToolOrchestrationLoop
from app.orchestration.streaming import StreamingContext
from app.orchestration.types import Message
from app.prompts import render_system_prompt
from app.realtime.events import send_chat_response, send_error, send_event
from app.realtime.hub import Client, ConnectionHub
from app.realtime.protocol import HISTORY_FAILED, INVALID_BOARD_ID, PROCESSING_FAILED
from app.schemas.chat import ChatReply
from app.schemas.realtime import ChatMessagePayload, ChatResponsePayload, MessageType
from app.services import chat_service

logger = logging.getLogger(__name__)

MESSAGE_REQUIRED = "Message is required"


def is_valid_board_id(board_id: str) -> bool:
    try:
        uuid.UUID(board_id)
    except (TypeError, ValueError):
        return False
    return True


class ChatWorkflow:
    def __init__(
        self,
        loop: ToolOrchestrationLoop,
        *,
        session_factory: Callable[[], AsyncSession] = async_session,
        history_limit: int = 20,
        stream_live: bool = False,
        chunk_delay: float = 0.05,
    ) -> None:
        self.loop = loop
        self.session_factory = session_factory
        self.history_limit = history_limit
        self.stream_live = stream_live
        self.chunk_delay = chunk_delay

    async def _run(
        self,
        history: list[Message],
        board_id: str,
        message: str,
        streaming: StreamingContext | None = None,
    ) -> OrchestrationResult:
        conversation = [*history, Message.user(message)]
        return await self.loop.run(render_system_prompt(board_id), conversation, streaming)

    async def trigger_chat(self, db: AsyncSession, board_id: str, message: str) -> ChatReply:
        """Run to convergence and persist the exchange.

        Raises ``OrchestrationError`` when the model fails or never stops
        asking for tools.
        """
        history = await chat_service.get_chat_history(db, board_id, self.history_limit)
        result = await self._run(history, board_id, message)
        human_id, ai_id = await chat_service.create_human_and_ai_messages(
            db, board_id, message, result.text
        )
        return ChatReply(message=result.text, human_message_id=human_id, ai_message_id=ai_id)

    async def process_chat_message(
        self, hub: ConnectionHub, client: Client, payload: ChatMessagePayload
    ) -> None:
        board_id = payload.board_id
        if not is_valid_board_id(board_id):
            await send_error(hub, client, INVALID_BOARD_ID)
            return
        if not payload.message.strip():
            await send_error(hub, client, MESSAGE_REQUIRED)
            return

        async with self.session_factory() as db:
            try:
                history = await chat_service.get_chat_history(db, board_id, self.history_limit)
            except SQLAlchemyError:
                logger.exception("Loading chat history failed for board %s", board_id)
                await send_error(hub, client, HISTORY_FAILED)
                return

            await send_event(hub, client, MessageType.CHAT_STARTING)
            streaming = StreamingContext(
                hub=hub,
                client=client,
                board_id=board_id,
                should_stream=self.stream_live,
                chunk_delay=self.chunk_delay,
            )
            try:
                result = await self._run(history, board_id, payload.message, streaming)
            except OrchestrationError as exc:
                logger.warning("Chat run failed for board %s: %s", board_id, exc)
                await send_error(hub, client, PROCESSING_FAILED)
                return

            human_id = ai_id = None
            try:
                human_id, ai_id = await chat_service.create_human_and_ai_messages(
                    db, board_id, payload.message, result.text
                )
            except SQLAlchemyError:
                logger.exception("Persisting chat exchange failed for board %s", board_id)

        completed = ChatResponsePayload(
            board_id=board_id,
            message=result.text,
            human_message_id=human_id,
            ai_message_id=ai_id,
        )
        await send_chat_response(hub, client, completed, kind=MessageType.CHAT_COMPLETED)
