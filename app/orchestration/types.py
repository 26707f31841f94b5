"""Conversation and tool-call types shared by the loop, the executor and the adapters.

Message content is a closed union: either plain text or a sequence of
``TextBlock`` / ``ImageBlock`` / ``ToolCallBlock`` / ``ToolResultBlock``.
Adapters translate these blocks to their provider's wire format; nothing
outside ``app.adapters`` sees provider-specific shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from app.orchestration.streaming import StreamingContext


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ImageBlock:
    data: str  # base64
    media_type: str = "image/png"


@dataclass(frozen=True)
class ToolCallBlock:
    call_id: str
    name: str
    input: dict[str, Any]


@dataclass(frozen=True)
class ToolResultBlock:
    call_id: str
    name: str
    content: str
    is_error: bool = False


ContentBlock = Union[TextBlock, ImageBlock, ToolCallBlock, ToolResultBlock]


@dataclass(frozen=True)
class Message:
    role: Role
    content: str | tuple[ContentBlock, ...]

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(Role.USER, text)

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(Role.ASSISTANT, text)


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model."""

    name: str
    input: dict[str, Any] | None
    id: str = ""
    provider: str = ""


@dataclass(frozen=True)
class ToolDefinition:
    """JSON-schema description of a tool, as advertised to the model."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class ImageContent:
    data: str  # base64
    media_type: str = "image/png"
    board_id: str = ""


@dataclass
class ToolExecutionResult:
    call_id: str
    tool_name: str
    result: Any = None
    error: str | None = None
    image: ImageContent | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_image(self) -> bool:
        return self.image is not None


@dataclass
class ModelResponse:
    """One model turn: text segments plus any requested tool calls."""

    text_parts: list[str] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: str = ""
    raw: Any = None

    @property
    def text(self) -> str:
        return "\n\n".join(part for part in self.text_parts if part)

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True)
class TextDelta:
    """An incremental chunk of model text produced while streaming."""

    text: str


@dataclass(frozen=True)
class ToolContext:
    """What a tool handler can see about the run invoking it."""

    call_id: str
    streaming: StreamingContext | None = None
