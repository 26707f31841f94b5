"""Board ORM models: the canvas session and its persisted shapes."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _new_uuid() -> str:
    return str(uuid.uuid4())


class Board(Base):
    __tablename__ = "boards"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    title: Mapped[str] = mapped_column(String(255), default="Untitled")
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    thumbnail: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class BoardData(Base):
    """One shape drawn on a board; ``uuid`` is the client-assigned shape id."""

    __tablename__ = "board_data"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.uuid", ondelete="CASCADE"), index=True
    )
    type: Mapped[str] = mapped_column(String(16), default="rect")
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
