"""Board service: boards, their shapes and the PNG snapshots the client uploads."""

from __future__ import annotations

import base64
import logging
from pathlib import Path

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.board import Board, BoardData
from app.schemas.board import BoardCreate, Shape

logger = logging.getLogger(__name__)


async def list_boards(db: AsyncSession) -> list[Board]:
    result = await db.execute(select(Board).order_by(Board.created_at.desc()))
    return list(result.scalars().all())


async def get_board(db: AsyncSession, board_id: str) -> Board | None:
    return await db.get(Board, board_id)


async def create_board(db: AsyncSession, data: BoardCreate) -> Board:
    board = Board(title=data.title, user_id=str(data.user_id))
    db.add(board)
    await db.commit()
    await db.refresh(board)
    logger.info("Created board %s", board.uuid)
    return board


# ── Shapes ───────────────────────────────────────────────────────────


async def get_board_data(db: AsyncSession, board_id: str) -> list[BoardData]:
    result = await db.execute(
        select(BoardData).where(BoardData.board_id == board_id).order_by(BoardData.created_at)
    )
    return list(result.scalars().all())


async def save_shape(db: AsyncSession, board_id: str, shape: Shape, *, commit: bool = True) -> BoardData:
    """Insert or update one shape, keyed by its client-assigned id."""
    shape_id = str(shape.id)
    row = await db.get(BoardData, shape_id)
    if row is None:
        row = BoardData(uuid=shape_id, board_id=board_id)
        db.add(row)
    row.type = shape.type
    row.data = shape.attributes()
    if commit:
        await db.commit()
    return row


async def save_shapes(db: AsyncSession, board_id: str, shapes: list[Shape]) -> int:
    for shape in shapes:
        await save_shape(db, board_id, shape, commit=False)
    await db.commit()
    logger.info("Saved %d shape(s) for board %s", len(shapes), board_id)
    return len(shapes)


async def clear_board_data(db: AsyncSession, board_id: str) -> int:
    result = await db.execute(delete(BoardData).where(BoardData.board_id == board_id))
    await db.commit()
    return result.rowcount or 0


# ── Snapshots ────────────────────────────────────────────────────────


def board_image_path(board_id: str, images_dir: Path | None = None) -> Path:
    return (images_dir or settings.images_dir) / f"{board_id}.png"


def save_board_image(board_id: str, content: bytes, images_dir: Path | None = None) -> Path:
    path = board_image_path(board_id, images_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    logger.info("Image saved: %s", path)
    return path


def load_board_image(board_id: str, images_dir: Path | None = None) -> str:
    """Return the board snapshot as base64. Raises FileNotFoundError if none was uploaded."""
    return base64.b64encode(board_image_path(board_id, images_dir).read_bytes()).decode()
