"""Board and shape request/response schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

SHAPE_TYPES = ("rect", "circle", "line", "arrow", "ellipse", "polygon", "text", "pencil")

# Attributes persisted for each shape type; anything else the client sends is dropped
SHAPE_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    "rect": ("x", "y", "w", "h", "stroke", "fill", "strokeWidth"),
    "ellipse": ("x", "y", "w", "h", "stroke", "fill", "strokeWidth"),
    "circle": ("x", "y", "r", "stroke", "fill", "strokeWidth"),
    "text": ("x", "y", "text", "fontSize", "fontFamily", "fill"),
    "line": ("x", "y", "points", "stroke", "strokeWidth"),
    "arrow": ("x", "y", "points", "stroke", "fill", "strokeWidth"),
    "polygon": ("x", "y", "points", "stroke", "fill", "strokeWidth"),
    "pencil": ("x", "y", "points", "stroke", "fill", "strokeWidth"),
}


class BoardCreate(BaseModel):
    title: str = Field("Untitled", max_length=255)
    user_id: UUID


class BoardCreated(BaseModel):
    uuid: str
    message: str = "Board created successfully"


class BoardResponse(BaseModel):
    uuid: str
    title: str
    user_id: str
    thumbnail: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Shape(BaseModel):
    """A shape as drawn by the canvas client (react-konva attribute names)."""

    id: UUID
    type: str = Field(..., pattern=r"^(rect|circle|line|arrow|ellipse|polygon|text|pencil)$")
    x: float | None = None
    y: float | None = None
    w: float | None = None
    h: float | None = None
    r: float | None = None
    points: list[float] | None = None
    text: str | None = None
    fontSize: float | None = None
    fontFamily: str | None = None
    stroke: str | None = None
    fill: str | None = None
    strokeWidth: float | None = None

    def attributes(self) -> dict[str, Any]:
        """The non-empty attributes stored for this shape's type."""
        values = self.model_dump(exclude_none=True)
        return {
            key: values[key]
            for key in SHAPE_ATTRIBUTES[self.type]
            if key in values and values[key] != ""
        }


class BoardDataResponse(BaseModel):
    uuid: str
    board_id: str
    type: str
    data: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    message: str
