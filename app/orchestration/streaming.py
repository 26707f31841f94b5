"""Per-run streaming state between the orchestration loop and the hub."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from app.realtime.events import send_chat_response
from app.realtime.hub import Client, ConnectionHub
from app.schemas.realtime import ChatResponsePayload

logger = logging.getLogger(__name__)


@dataclass
class StreamingContext:
    """Routes model text deltas for one orchestration run to one client.

    With ``should_stream`` off, deltas are held until the loop knows the
    current iteration is the final one: ``flush`` then delivers them in
    order, ``discard`` drops them when the model asked for tools instead.
    With it on, every delta is sent as soon as it arrives.

    Owned by a single run; never share one between concurrent requests.
    """

    hub: ConnectionHub
    client: Client
    board_id: str = ""
    should_stream: bool = False
    chunk_delay: float = 0.0
    _buffer: list[str] = field(default_factory=list, repr=False)

    @property
    def buffered(self) -> tuple[str, ...]:
        return tuple(self._buffer)

    async def push(self, chunk: str) -> None:
        if not chunk:
            return
        if self.should_stream:
            await self._deliver(chunk)
        else:
            self._buffer.append(chunk)

    def reset(self) -> None:
        """Start a fresh, empty buffer for a new model call."""
        self._buffer = []

    def discard(self) -> int:
        dropped = len(self._buffer)
        self._buffer = []
        if dropped:
            logger.debug("Discarded %d buffered chunk(s) for client %s", dropped, self.client.id)
        return dropped

    async def flush(self) -> int:
        chunks, self._buffer = self._buffer, []
        for chunk in chunks:
            await self._deliver(chunk)
        return len(chunks)

    async def _deliver(self, chunk: str) -> None:
        payload = ChatResponsePayload(board_id=self.board_id or None, message=chunk)
        await send_chat_response(self.hub, self.client, payload)
        if self.chunk_delay:
            await asyncio.sleep(self.chunk_delay)

