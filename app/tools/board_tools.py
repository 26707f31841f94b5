"""Board tools the model can call: look at the canvas, draw on it."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any

from app.orchestration.errors import ToolInputError
from app.orchestration.executor import IMAGE_MARKER
from app.orchestration.registry import ToolRegistry
from app.orchestration.types import ToolContext, ToolDefinition
from app.realtime.events import send_shape_created
from app.schemas.board import SHAPE_TYPES
from app.services import board_service

logger = logging.getLogger(__name__)

_POINT_SHAPES = ("line", "arrow", "polygon", "pencil")

GET_BOARD_DATA = ToolDefinition(
    name="getBoardData",
    description=(
        "Retrieves the current board image for a given board ID. "
        "Returns the base64-encoded PNG image of the board."
    ),
    parameters={
        "type": "object",
        "properties": {
            "boardId": {
                "type": "string",
                "description": "The UUID of the board to retrieve (e.g., '123e4567-e89b-12d3-a456-426614174000')",
            },
        },
        "required": ["boardId"],
    },
)

ADD_SHAPE = ToolDefinition(
    name="addShape",
    description=(
        "Adds a shape to the board in react-konva format. Supports rect, circle, line, arrow, "
        "ellipse, polygon, text, and pencil. For complex figures, break them down into several "
        "basic shapes. The shape appears on the board immediately."
    ),
    parameters={
        "type": "object",
        "properties": {
            "boardId": {"type": "string", "description": "The UUID of the board to add the shape to"},
            "shapeType": {
                "type": "string",
                "enum": list(SHAPE_TYPES),
                "description": "Type of shape to create",
            },
            "x": {"type": "number", "description": "X coordinate"},
            "y": {"type": "number", "description": "Y coordinate"},
            "width": {"type": "number", "description": "Width (for rect, ellipse)"},
            "height": {"type": "number", "description": "Height (for rect, ellipse)"},
            "radius": {"type": "number", "description": "Radius (for circle)"},
            "stroke": {"type": "string", "description": "Stroke color (e.g., '#000000')"},
            "fill": {"type": "string", "description": "Fill color (e.g., '#ff0000' or 'transparent')"},
            "strokeWidth": {"type": "number", "description": "Stroke width (default: 2)"},
            "text": {"type": "string", "description": "Text content (for text shapes)"},
            "fontSize": {"type": "number", "description": "Font size (for text shapes, default: 16)"},
            "fontFamily": {"type": "string", "description": "Font family (for text shapes, default: 'Arial')"},
            "points": {
                "type": "array",
                "items": {"type": "number"},
                "description": "Coordinates [x1, y1, x2, y2, ...] for line, arrow, polygon, or pencil",
            },
        },
        "required": ["boardId", "shapeType", "x", "y"],
    },
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_board_id(data: dict[str, Any]) -> str:
    board_id = data.get("boardId")
    if not isinstance(board_id, str) or not board_id:
        raise ToolInputError("boardId is required and must be a non-empty string")
    return board_id


def get_board_data(ctx: ToolContext, data: dict[str, Any], images_dir: Path | None = None) -> dict[str, Any]:
    board_id = _require_board_id(data)
    try:
        uuid.UUID(board_id)
    except ValueError as exc:
        raise ToolInputError(f"boardId must be a valid UUID, got {board_id!r}") from exc
    try:
        image = board_service.load_board_image(board_id, images_dir)
    except FileNotFoundError as exc:
        raise ToolInputError(f"no image saved for boardId {board_id}") from exc
    return {IMAGE_MARKER: True, "boardId": board_id, "image": image, "format": "png"}


def build_shape(data: dict[str, Any]) -> dict[str, Any]:
    """Validate addShape input and return the shape in canvas attribute names."""
    shape_type = data.get("shapeType")
    if not isinstance(shape_type, str) or not shape_type:
        raise ToolInputError("shapeType is required and must be a string")
    if shape_type not in SHAPE_TYPES:
        raise ToolInputError(f"invalid shapeType: {shape_type}")

    x, y = data.get("x"), data.get("y")
    if not _is_number(x):
        raise ToolInputError("x coordinate is required and must be a number")
    if not _is_number(y):
        raise ToolInputError("y coordinate is required and must be a number")

    shape: dict[str, Any] = {"id": str(uuid.uuid4()), "type": shape_type, "x": x, "y": y}

    if shape_type in ("rect", "ellipse"):
        for src, dst in (("width", "w"), ("height", "h")):
            if _is_number(data.get(src)):
                shape[dst] = data[src]
    elif shape_type == "circle":
        if _is_number(data.get("radius")):
            shape["r"] = data["radius"]
    elif shape_type in _POINT_SHAPES:
        raw = data.get("points")
        points = [p for p in raw if _is_number(p)] if isinstance(raw, list) else []
        if points:
            shape["points"] = points
    elif shape_type == "text":
        if isinstance(data.get("text"), str) and data["text"]:
            shape["text"] = data["text"]
        if _is_number(data.get("fontSize")):
            shape["fontSize"] = data["fontSize"]
        if isinstance(data.get("fontFamily"), str) and data["fontFamily"]:
            shape["fontFamily"] = data["fontFamily"]

    for key in ("stroke", "fill"):
        if isinstance(data.get(key), str) and data[key]:
            shape[key] = data[key]
    if _is_number(data.get("strokeWidth")):
        shape["strokeWidth"] = data["strokeWidth"]
    return shape


async def add_shape(ctx: ToolContext, data: dict[str, Any]) -> dict[str, Any]:
    if ctx.streaming is None:
        raise ToolInputError("realtime connection not available - cannot send shape")
    board_id = _require_board_id(data)
    shape = build_shape(data)

    await send_shape_created(ctx.streaming.hub, ctx.streaming.client, board_id, shape)
    logger.info("Created %s shape %s on board %s", shape["type"], shape["id"], board_id)
    return {
        "success": True,
        "shapeId": shape["id"],
        "message": f"Successfully created {shape['type']} shape at ({shape['x']:.2f}, {shape['y']:.2f})",
        "shape": shape,
    }


def register_board_tools(registry: ToolRegistry, images_dir: Path | None = None) -> None:
    registry.register(
        GET_BOARD_DATA.name,
        lambda ctx, data: get_board_data(ctx, data, images_dir),
        GET_BOARD_DATA,
    )
    registry.register(ADD_SHAPE.name, add_shape, ADD_SHAPE)
