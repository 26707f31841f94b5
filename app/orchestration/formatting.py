"""Turn executed tool calls into conversation turns the model can read."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from app.orchestration.types import (
    ContentBlock,
    ImageBlock,
    Message,
    ModelResponse,
    Role,
    TextBlock,
    ToolCall,
    ToolCallBlock,
    ToolExecutionResult,
    ToolResultBlock,
)
from app.schemas.board import SHAPE_TYPES

_HINTS = (
    ("boardId", "Make sure boardId is provided and is a valid UUID string."),
    ("shapeType", f"Make sure shapeType is one of: {', '.join(SHAPE_TYPES)}."),
    (
        "points",
        "For line/arrow/polygon/pencil shapes, provide a 'points' array with "
        "coordinates [x1, y1, x2, y2, ...].",
    ),
    (
        "empty",
        "The tool input was empty. Please provide all required parameters: "
        "boardId, shapeType, x, y.",
    ),
)


def tool_error_message(tool_name: str, error: str) -> str:
    """Error text fed back to the model, with hints for the usual mistakes."""
    message = (
        f"Tool execution failed: {error}. Please check the input parameters and try again. "
        f"The tool '{tool_name}' requires valid parameters."
    )
    hints = [hint for keyword, hint in _HINTS if keyword in error]
    if hints:
        message += " " + " ".join(hints)
    return message


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def format_tool_result(result: ToolExecutionResult) -> tuple[ToolResultBlock, list[ContentBlock]]:
    """Return the structured result block plus any blocks for a follow-up image turn."""
    if result.error is not None:
        block = ToolResultBlock(
            result.call_id,
            result.tool_name,
            tool_error_message(result.tool_name, result.error),
            is_error=True,
        )
        return block, []

    if result.image is not None:
        board_id = result.image.board_id
        metadata = dict(result.result) if isinstance(result.result, dict) else {}
        metadata["message"] = f"Board image retrieved for boardId: {board_id}"
        block = ToolResultBlock(result.call_id, result.tool_name, _to_text(metadata))
        extra: list[ContentBlock] = [
            TextBlock(f"Board image for boardId: {board_id}"),
            ImageBlock(result.image.data, result.image.media_type),
        ]
        return block, extra

    return ToolResultBlock(result.call_id, result.tool_name, _to_text(result.result)), []


def build_tool_turns(
    response: ModelResponse,
    calls: Sequence[ToolCall],
    results: Sequence[ToolExecutionResult],
) -> list[Message]:
    """Assistant turn declaring *calls*, then a user turn with one result per call.

    Images cannot travel inside tool-result payloads for most providers, so
    they follow in a separate user turn.
    """
    assistant_blocks: list[ContentBlock] = [TextBlock(t) for t in response.text_parts if t]
    assistant_blocks.extend(ToolCallBlock(c.id, c.name, dict(c.input or {})) for c in calls)

    result_blocks: list[ContentBlock] = []
    image_blocks: list[ContentBlock] = []
    for result in results:
        block, extra = format_tool_result(result)
        result_blocks.append(block)
        image_blocks.extend(extra)

    turns = [
        Message(Role.ASSISTANT, tuple(assistant_blocks)),
        Message(Role.USER, tuple(result_blocks)),
    ]
    if image_blocks:
        turns.append(Message(Role.USER, tuple(image_blocks)))
    return turns
