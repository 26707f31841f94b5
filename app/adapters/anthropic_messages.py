"""Anthropic Messages API adapter."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from app.adapters.base import LanguageModelBackend
from app.orchestration.errors import BackendError
from app.orchestration.types import (
    ImageBlock,
    Message,
    ModelResponse,
    TextBlock,
    TextDelta,
    ToolCall,
    ToolCallBlock,
    ToolDefinition,
    ToolResultBlock,
)

logger = logging.getLogger(__name__)


def _block_to_anthropic(block) -> dict[str, Any] | None:
    if isinstance(block, TextBlock):
        # The API rejects empty text blocks
        return {"type": "text", "text": block.text} if block.text else None
    if isinstance(block, ImageBlock):
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": block.media_type, "data": block.data},
        }
    if isinstance(block, ToolCallBlock):
        return {"type": "tool_use", "id": block.call_id, "name": block.name, "input": block.input}
    if isinstance(block, ToolResultBlock):
        return {
            "type": "tool_result",
            "tool_use_id": block.call_id,
            "content": block.content,
            "is_error": block.is_error,
        }
    raise TypeError(f"unsupported content block: {block!r}")


def to_anthropic_messages(messages: Sequence[Message]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for message in messages:
        if isinstance(message.content, str):
            if message.content:
                out.append({"role": message.role.value, "content": message.content})
            continue
        blocks = [b for b in map(_block_to_anthropic, message.content) if b is not None]
        if blocks:
            out.append({"role": message.role.value, "content": blocks})
    return out


def to_anthropic_tools(tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
    return [{"name": t.name, "description": t.description, "input_schema": t.parameters} for t in tools]


def from_anthropic_message(message: Any) -> ModelResponse:
    text_parts: list[str] = []
    calls: list[ToolCall] = []
    for block in message.content:
        if block.type == "text":
            text_parts.append(block.text)
        elif block.type == "tool_use":
            raw_input = block.input if isinstance(block.input, dict) else {}
            calls.append(ToolCall(name=block.name, input=raw_input, id=block.id, provider="anthropic"))
    return ModelResponse(
        text_parts=text_parts,
        tool_calls=calls,
        stop_reason=message.stop_reason or "",
        raw=message,
    )


class AnthropicBackend(LanguageModelBackend):
    name = "anthropic"

    def __init__(
        self,
        *,
        model: str,
        api_key: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.2,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or AsyncAnthropic(api_key=api_key or None)

    def _request(
        self, system_prompt: str, messages: Sequence[Message], tools: Sequence[ToolDefinition]
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": to_anthropic_messages(messages),
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        if tools:
            kwargs["tools"] = to_anthropic_tools(tools)
        return kwargs

    async def complete(self, system_prompt, messages, tools) -> ModelResponse:
        try:
            message = await self.client.messages.create(**self._request(system_prompt, messages, tools))
        except anthropic.AnthropicError as exc:
            raise BackendError(f"anthropic request failed: {exc}") from exc
        return from_anthropic_message(message)

    async def stream(self, system_prompt, messages, tools) -> AsyncIterator[TextDelta | ModelResponse]:
        try:
            async with self.client.messages.stream(
                **self._request(system_prompt, messages, tools)
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield TextDelta(text)
                final = await stream.get_final_message()
        except anthropic.AnthropicError as exc:
            raise BackendError(f"anthropic stream failed: {exc}") from exc
        yield from_anthropic_message(final)

    async def aclose(self) -> None:
        await self.client.close()
