"""Chat transcript service: history for the model, paging for the client."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.chat import Chat
from app.orchestration.types import Message, Role

logger = logging.getLogger(__name__)


async def get_chat_history(db: AsyncSession, board_id: str, limit: int = 20) -> list[Message]:
    """The last *limit* messages for a board, oldest first, as conversation turns."""
    result = await db.execute(
        select(Chat)
        .where(Chat.board_uuid == board_id)
        .order_by(Chat.created_at.desc(), Chat.role.asc())
        .limit(limit)
    )
    rows = list(result.scalars().all())
    rows.reverse()
    return [
        Message.assistant(row.content) if row.role == Role.ASSISTANT else Message.user(row.content)
        for row in rows
        if row.content
    ]


async def list_chats(
    db: AsyncSession, board_id: str, page: int = 1, page_size: int = 20
) -> tuple[list[Chat], int]:
    total = await db.scalar(select(func.count()).select_from(Chat).where(Chat.board_uuid == board_id))
    result = await db.execute(
        select(Chat)
        .where(Chat.board_uuid == board_id)
        .order_by(Chat.created_at, Chat.role.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total or 0


async def create_human_and_ai_messages(
    db: AsyncSession, board_id: str, human_message: str, ai_message: str
) -> tuple[str, str]:
    """Persist one exchange atomically and return (human id, ai id)."""
    human = Chat(board_uuid=board_id, content=human_message, role=Role.USER.value)
    ai = Chat(board_uuid=board_id, content=ai_message, role=Role.ASSISTANT.value)
    db.add_all([human, ai])
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.debug("Stored exchange %s/%s for board %s", human.uuid, ai.uuid, board_id)
    return human.uuid, ai.uuid
