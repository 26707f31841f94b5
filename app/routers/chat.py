"""Chat endpoints: synchronous HTTP chat and transcript paging."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.orchestration.errors import OrchestrationError, ToolResolutionExhausted
from app.schemas.chat import ChatPage, ChatRecord, ChatReply, ChatRequest
from app.services import chat_service
from app.services.chat_workflow import ChatWorkflow

logger = logging.getLogger(__name__)

router = APIRouter()


def get_workflow(request: Request) -> ChatWorkflow:
    return request.app.state.chat_workflow


@router.post("/{board_id}", response_model=ChatReply)
async def chat(
    board_id: UUID,
    data: ChatRequest,
    db: AsyncSession = Depends(get_db),
    workflow: ChatWorkflow = Depends(get_workflow),
):
    if not data.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")
    try:
        return await workflow.trigger_chat(db, str(board_id), data.message)
    except ToolResolutionExhausted as exc:
        logger.warning("Board %s: %s", board_id, exc)
        raise HTTPException(status_code=502, detail="The assistant could not finish using its tools")
    except OrchestrationError as exc:
        logger.warning("Board %s: chat failed: %s", board_id, exc)
        raise HTTPException(status_code=502, detail="Failed to process chat message")
    except SQLAlchemyError:
        logger.exception("Board %s: chat persistence failed", board_id)
        raise HTTPException(status_code=500, detail="Failed to save chat messages")


@router.get("/{board_id}", response_model=ChatPage)
async def list_chats(
    board_id: UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    chats, total = await chat_service.list_chats(db, str(board_id), page, page_size)
    return ChatPage(
        chats=[ChatRecord.model_validate(c) for c in chats],
        total=total,
        page=page,
        page_size=page_size,
    )
