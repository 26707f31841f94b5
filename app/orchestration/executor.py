"""Runs a batch of tool calls against the registry, one result per call."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Sequence
from typing import Any

from app.orchestration.errors import ToolInputError
from app.orchestration.registry import ToolRegistry
from app.orchestration.streaming import StreamingContext
from app.orchestration.types import ImageContent, ToolCall, ToolContext, ToolExecutionResult

logger = logging.getLogger(__name__)

# Key a handler sets on a dict result to hand back an image instead of text
IMAGE_MARKER = "_imageContent"

EMPTY_INPUT_ERROR = "tool input was empty (streaming artifact) - please retry with valid parameters"


class ToolExecutor:
    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def execute(
        self,
        calls: Sequence[ToolCall],
        streaming: StreamingContext | None = None,
    ) -> list[ToolExecutionResult]:
        """Execute *calls* in order.

        Every call yields exactly one result, including calls with an empty
        input or an unknown name, so providers that pair calls with results
        by position or id stay in sync.
        """
        results: list[ToolExecutionResult] = []
        for call in calls:
            results.append(await self._execute_one(call, streaming))

        failed = sum(1 for r in results if not r.ok)
        if calls:
            logger.info(
                "Executed %d tool call(s): %d succeeded, %d failed",
                len(results), len(results) - failed, failed,
            )
        return results

    async def _execute_one(
        self, call: ToolCall, streaming: StreamingContext | None
    ) -> ToolExecutionResult:
        logger.info("Tool call [%s] %s (id=%s)", call.provider or "-", call.name, call.id or "-")

        handler, found = self.registry.lookup(call.name)
        if not found:
            logger.warning("Unknown tool requested: %s", call.name)
            return ToolExecutionResult(call.id, call.name, error=f"unknown tool: {call.name}")

        if not call.input:
            logger.warning("Tool %s called with empty input", call.name)
            return ToolExecutionResult(call.id, call.name, error=EMPTY_INPUT_ERROR)

        ctx = ToolContext(call_id=call.id, streaming=streaming)
        try:
            value = handler(ctx, dict(call.input))
            if inspect.isawaitable(value):
                value = await value
        except ToolInputError as exc:
            logger.warning("Tool %s rejected its input: %s", call.name, exc)
            return ToolExecutionResult(call.id, call.name, error=str(exc))
        except Exception as exc:
            logger.exception("Tool %s raised", call.name)
            return ToolExecutionResult(
                call.id, call.name, error=f"tool execution failed: {exc}"
            )

        return _build_result(call, value)


def _build_result(call: ToolCall, value: Any) -> ToolExecutionResult:
    if not (isinstance(value, dict) and value.get(IMAGE_MARKER)):
        return ToolExecutionResult(call.id, call.name, result=value)

    data = value.get("image")
    if not isinstance(data, str) or not data:
        return ToolExecutionResult(
            call.id, call.name, error="tool returned image content without image data"
        )
    fmt = value.get("format") or ""
    image = ImageContent(
        data=data,
        media_type=f"image/{fmt}" if fmt else "image/png",
        board_id=str(value.get("boardId") or ""),
    )
    metadata = {k: v for k, v in value.items() if k not in (IMAGE_MARKER, "image")}
    return ToolExecutionResult(call.id, call.name, result=metadata, image=image)
