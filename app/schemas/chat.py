"""Chat request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(..., max_length=8000)


class ChatReply(BaseModel):
    message: str
    human_message_id: str
    ai_message_id: str


class ChatRecord(BaseModel):
    uuid: str
    board_uuid: str
    content: str
    role: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ChatPage(BaseModel):
    chats: list[ChatRecord]
    total: int
    page: int
    page_size: int
