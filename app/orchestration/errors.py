"""Orchestration error taxonomy.

Tool failures never appear here: the executor turns them into
``ToolExecutionResult`` errors so the model can correct itself. These
exceptions are the ones that end a run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.orchestration.types import ModelResponse


class OrchestrationError(Exception):
    """Base class for failures that terminate an orchestration run."""


class BackendError(OrchestrationError):
    """The language model call failed or returned something unusable."""


class BackendTimeoutError(BackendError):
    """The run did not finish within the configured timeout."""


class ToolResolutionExhausted(OrchestrationError):
    """The model kept requesting tools past the iteration budget."""

    def __init__(self, iterations: int, last_response: ModelResponse | None) -> None:
        super().__init__(f"tool resolution exhausted after {iterations} iterations")
        self.iterations = iterations
        self.last_response = last_response


class ToolInputError(ValueError):
    """Raised by tool handlers when the model supplied unusable arguments."""
