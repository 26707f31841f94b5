"""Chat ORM model: one transcript row per human or assistant message."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Chat(Base):
    __tablename__ = "chats"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    board_uuid: Mapped[str] = mapped_column(String(36), index=True)
    content: Mapped[str] = mapped_column(Text)
    role: Mapped[str] = mapped_column(String(16))  # user | assistant
    # Sub-second resolution keeps the two rows of an exchange in insertion order
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
