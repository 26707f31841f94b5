"""Process-wide mapping from tool name to handler."""

from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any

from app.orchestration.types import ToolContext, ToolDefinition

logger = logging.getLogger(__name__)

# A handler returns its result (or an awaitable of it) and raises on failure.
ToolHandler = Callable[[ToolContext, dict[str, Any]], Any | Awaitable[Any]]


class ToolRegistry:
    """Concurrency-safe tool registry.

    Built once at startup and handed to every ``ToolExecutor``. Lookups are
    plain dict reads under a short lock, so concurrent runs never wait on
    each other for more than a dictionary access.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[str, ToolHandler] = {}
        self._definitions: dict[str, ToolDefinition] = {}

    def register(
        self, name: str, handler: ToolHandler, definition: ToolDefinition | None = None
    ) -> None:
        """Add *handler* under *name*, replacing any previous registration."""
        with self._lock:
            if name in self._handlers:
                logger.info("Replacing tool handler %r", name)
            self._handlers[name] = handler
            if definition is not None:
                self._definitions[name] = definition
            else:
                self._definitions.pop(name, None)

    def unregister(self, name: str) -> None:
        with self._lock:
            self._handlers.pop(name, None)
            self._definitions.pop(name, None)

    def lookup(self, name: str) -> tuple[ToolHandler | None, bool]:
        with self._lock:
            handler = self._handlers.get(name)
        return handler, handler is not None

    def definitions(self) -> list[ToolDefinition]:
        """Schemas of every registered tool that has one, in registration order."""
        with self._lock:
            return list(self._definitions.values())

    def names(self) -> list[str]:
        with self._lock:
            return list(self._handlers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._handlers
