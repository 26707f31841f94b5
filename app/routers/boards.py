"""Board CRUD endpoints, shape saving and snapshot upload."""

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.board import (
    BoardCreate,
    BoardCreated,
    BoardDataResponse,
    BoardResponse,
    MessageResponse,
    Shape,
)
from app.services import board_service

logger = logging.getLogger(__name__)

router = APIRouter()

_shapes_adapter = TypeAdapter(list[Shape])


@router.get("/", response_model=list[BoardResponse])
async def list_boards(db: AsyncSession = Depends(get_db)):
    return await board_service.list_boards(db)


@router.post("/", response_model=BoardCreated, status_code=201)
async def create_board(data: BoardCreate, db: AsyncSession = Depends(get_db)):
    board = await board_service.create_board(db, data)
    return BoardCreated(uuid=board.uuid)


@router.get("/{board_id}", response_model=list[BoardDataResponse])
async def get_board(board_id: UUID, db: AsyncSession = Depends(get_db)):
    return await board_service.get_board_data(db, str(board_id))


@router.post("/{board_id}/save", response_model=MessageResponse)
async def save_board(
    board_id: UUID,
    board_data: str = Form(..., alias="boardData"),
    image: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    try:
        shapes = _shapes_adapter.validate_python(json.loads(board_data))
    except (ValueError, ValidationError):
        raise HTTPException(status_code=400, detail="Invalid board data JSON")
    if not shapes:
        raise HTTPException(status_code=400, detail="No shapes provided")

    try:
        await board_service.save_shapes(db, str(board_id), shapes)
    except SQLAlchemyError:
        logger.exception("Saving shapes failed for board %s", board_id)
        raise HTTPException(status_code=500, detail="Failed to save shape data")

    if image is not None:
        content = await image.read()
        try:
            board_service.save_board_image(str(board_id), content)
        except OSError:
            logger.exception("Saving image failed for board %s", board_id)
            raise HTTPException(status_code=500, detail="Failed to save image")

    return MessageResponse(message="Data saved successfully")


@router.delete("/{board_id}/clear", response_model=MessageResponse)
async def clear_board(board_id: UUID, db: AsyncSession = Depends(get_db)):
    await board_service.clear_board_data(db, str(board_id))
    return MessageResponse(message="Board cleared successfully")
