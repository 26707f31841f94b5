"""The tool-calling orchestration loop.

One run alternates between asking the model and executing the tools it
requests until the model answers without tool calls (converged) or the
iteration budget runs out.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from app.adapters.base import LanguageModelBackend
from app.orchestration.errors import (
    BackendError,
    BackendTimeoutError,
    OrchestrationError,
    ToolResolutionExhausted,
)
from app.orchestration.executor import ToolExecutor
from app.orchestration.formatting import build_tool_turns
from app.orchestration.streaming import StreamingContext
from app.orchestration.types import (
    Message,
    ModelResponse,
    TextDelta,
    ToolCall,
    ToolDefinition,
    ToolExecutionResult,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10


@dataclass
class OrchestrationResult:
    text: str
    response: ModelResponse
    iterations: int
    messages: list[Message] = field(default_factory=list)
    tool_results: list[ToolExecutionResult] = field(default_factory=list)


class ToolOrchestrationLoop:
    def __init__(
        self,
        backend: LanguageModelBackend,
        executor: ToolExecutor,
        *,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        iteration_delay: float = 0.05,
        timeout: float | None = 60.0,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.backend = backend
        self.executor = executor
        self.max_iterations = max_iterations
        self.iteration_delay = iteration_delay
        self.timeout = timeout

    @property
    def tools(self) -> list[ToolDefinition]:
        return self.executor.registry.definitions()

    async def run(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        streaming: StreamingContext | None = None,
    ) -> OrchestrationResult:
        """Drive the model to a final answer.

        Raises ``BackendError`` (``BackendTimeoutError`` once ``timeout``
        seconds have passed) or ``ToolResolutionExhausted``.
        """
        try:
            async with asyncio.timeout(self.timeout):
                return await self._run(system_prompt, list(messages), streaming)
        except TimeoutError as exc:
            raise BackendTimeoutError(
                f"model did not finish within {self.timeout:g}s"
            ) from exc

    async def _run(
        self,
        system_prompt: str,
        conversation: list[Message],
        streaming: StreamingContext | None,
    ) -> OrchestrationResult:
        tools = self.tools
        tool_results: list[ToolExecutionResult] = []
        last: ModelResponse | None = None

        for iteration in range(1, self.max_iterations + 1):
            if streaming is not None:
                streaming.reset()

            response = await self._call_model(system_prompt, conversation, tools, streaming)
            last = response

            if not response.wants_tools:
                if streaming is not None:
                    await streaming.flush()
                logger.info("Converged after %d iteration(s)", iteration)
                return OrchestrationResult(
                    text=response.text,
                    response=response,
                    iterations=iteration,
                    messages=conversation,
                    tool_results=tool_results,
                )

            if streaming is not None:
                streaming.discard()

            calls = _with_call_ids(response.tool_calls, iteration)
            logger.info(
                "Iteration %d: model requested %d tool call(s): %s",
                iteration, len(calls), ", ".join(c.name for c in calls),
            )
            results = await self.executor.execute(calls, streaming)
            tool_results.extend(results)
            conversation.extend(build_tool_turns(response, calls, results))

            if self.iteration_delay and iteration < self.max_iterations:
                await asyncio.sleep(self.iteration_delay)

        logger.warning("Tool resolution exhausted after %d iterations", self.max_iterations)
        raise ToolResolutionExhausted(self.max_iterations, last)

    async def _call_model(
        self,
        system_prompt: str,
        conversation: list[Message],
        tools: list[ToolDefinition],
        streaming: StreamingContext | None,
    ) -> ModelResponse:
        try:
            if streaming is None:
                return await self.backend.complete(system_prompt, conversation, tools)

            response: ModelResponse | None = None
            async for item in self.backend.stream(system_prompt, conversation, tools):
                if isinstance(item, TextDelta):
                    await streaming.push(item.text)
                elif isinstance(item, ModelResponse):
                    response = item
            if response is None:
                raise BackendError("model stream ended without a final response")
            return response
        except OrchestrationError:
            raise
        except Exception as exc:
            raise BackendError(f"model call failed: {exc}") from exc


def _with_call_ids(calls: Sequence[ToolCall], iteration: int) -> list[ToolCall]:
    """Give id-less calls a synthetic id so results can still be paired with them."""
    return [
        call if call.id else dataclasses.replace(call, id=f"call_{iteration}_{index}")
        for index, call in enumerate(calls)
    ]
