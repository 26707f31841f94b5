"""OpenAI-compatible chat completions adapter (OpenAI, Groq, local servers)."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import openai
from openai import AsyncOpenAI

from app.adapters.base import LanguageModelBackend
from app.orchestration.errors import BackendError
from app.orchestration.types import (
    ImageBlock,
    Message,
    ModelResponse,
    Role,
    TextBlock,
    TextDelta,
    ToolCall,
    ToolCallBlock,
    ToolDefinition,
    ToolResultBlock,
)

logger = logging.getLogger(__name__)


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    """Decode streamed/complete tool arguments; garbage becomes an empty input."""
    if not raw or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Unparsable tool arguments: %.200s", raw)
        return {}
    return value if isinstance(value, dict) else {}


def to_openai_messages(system_prompt: str, messages: Sequence[Message]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    if system_prompt:
        out.append({"role": "system", "content": system_prompt})

    for message in messages:
        if isinstance(message.content, str):
            out.append({"role": message.role.value, "content": message.content})
            continue

        if message.role is Role.ASSISTANT:
            text = "\n\n".join(b.text for b in message.content if isinstance(b, TextBlock))
            entry: dict[str, Any] = {"role": "assistant", "content": text or None}
            calls = [
                {
                    "id": b.call_id,
                    "type": "function",
                    "function": {"name": b.name, "arguments": json.dumps(b.input)},
                }
                for b in message.content
                if isinstance(b, ToolCallBlock)
            ]
            if calls:
                entry["tool_calls"] = calls
            out.append(entry)
            continue

        parts: list[dict[str, Any]] = []
        for block in message.content:
            if isinstance(block, ToolResultBlock):
                out.append({"role": "tool", "tool_call_id": block.call_id, "content": block.content})
            elif isinstance(block, TextBlock):
                parts.append({"type": "text", "text": block.text})
            elif isinstance(block, ImageBlock):
                parts.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{block.media_type};base64,{block.data}"},
                })
        if parts:
            out.append({"role": message.role.value, "content": parts})
    return out


def to_openai_tools(tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {"name": t.name, "description": t.description, "parameters": t.parameters},
        }
        for t in tools
    ]


class OpenAICompatibleBackend(LanguageModelBackend):
    def __init__(
        self,
        *,
        model: str,
        provider: str = "openai",
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.2,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.name = provider
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=api_key or None, base_url=base_url or None)

    def _request(
        self, system_prompt: str, messages: Sequence[Message], tools: Sequence[ToolDefinition]
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": to_openai_messages(system_prompt, messages),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if tools:
            kwargs["tools"] = to_openai_tools(tools)
            kwargs["tool_choice"] = "auto"
        return kwargs

    async def complete(self, system_prompt, messages, tools) -> ModelResponse:
        try:
            completion = await self.client.chat.completions.create(
                **self._request(system_prompt, messages, tools)
            )
        except openai.OpenAIError as exc:
            raise BackendError(f"{self.name} request failed: {exc}") from exc

        if not completion.choices:
            raise BackendError(f"{self.name} returned no choices")
        choice = completion.choices[0]
        message = choice.message
        calls = [
            ToolCall(
                name=tc.function.name,
                input=_parse_arguments(tc.function.arguments),
                id=tc.id or "",
                provider=self.name,
            )
            for tc in message.tool_calls or []
        ]
        return ModelResponse(
            text_parts=[message.content] if message.content else [],
            tool_calls=calls,
            stop_reason=choice.finish_reason or "",
            raw=completion,
        )

    async def stream(self, system_prompt, messages, tools) -> AsyncIterator[TextDelta | ModelResponse]:
        text: list[str] = []
        pending: dict[int, dict[str, str]] = {}
        finish_reason = ""
        try:
            stream = await self.client.chat.completions.create(
                **self._request(system_prompt, messages, tools), stream=True
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                if delta.content:
                    text.append(delta.content)
                    yield TextDelta(delta.content)
                for tc in delta.tool_calls or []:
                    slot = pending.setdefault(tc.index, {"id": "", "name": "", "arguments": ""})
                    if tc.id:
                        slot["id"] = tc.id
                    if tc.function is not None:
                        if tc.function.name:
                            slot["name"] = tc.function.name
                        if tc.function.arguments:
                            slot["arguments"] += tc.function.arguments
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
        except openai.OpenAIError as exc:
            raise BackendError(f"{self.name} stream failed: {exc}") from exc

        calls = [
            ToolCall(
                name=slot["name"],
                input=_parse_arguments(slot["arguments"]),
                id=slot["id"],
                provider=self.name,
            )
            for _, slot in sorted(pending.items())
        ]
        full_text = "".join(text)
        yield ModelResponse(
            text_parts=[full_text] if full_text else [],
            tool_calls=calls,
            stop_reason=finish_reason,
        )

    async def aclose(self) -> None:
        await self.client.close()
