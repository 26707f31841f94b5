"""Abstract base class for language model backends.

Swap providers by implementing this interface. Adapters translate the
provider-neutral conversation in ``app.orchestration.types`` to and from
their wire format and report tool calls as ``ToolCall`` objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence

from app.orchestration.errors import BackendError
from app.orchestration.types import Message, ModelResponse, TextDelta, ToolDefinition


class LanguageModelBackend(ABC):
    """Contract that any model backend must satisfy."""

    name: str = "backend"

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
    ) -> ModelResponse:
        """Run one model turn and return the whole response."""

    async def stream(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
    ) -> AsyncIterator[TextDelta | ModelResponse]:
        """Yield text deltas as they arrive, then the final ``ModelResponse``.

        The default implementation wraps ``complete`` for backends without
        native streaming.
        """
        response = await self.complete(system_prompt, messages, tools)
        for part in response.text_parts:
            if part:
                yield TextDelta(part)
        yield response

    async def aclose(self) -> None:
        """Release network resources."""


class UnconfiguredBackend(LanguageModelBackend):
    """Stands in when the configured provider could not be initialised."""

    name = "unconfigured"

    def __init__(self, reason: str) -> None:
        self.reason = reason

    async def complete(self, system_prompt, messages, tools) -> ModelResponse:
        raise BackendError(f"language model backend is not configured: {self.reason}")
