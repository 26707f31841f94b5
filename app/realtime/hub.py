"""Connection hub: the registry of live realtime clients.

Registration, unregistration and broadcast are commands on a single queue
consumed by one task, so the client map is only ever touched by that task.
Direct sends bypass the hub loop and go straight onto the target client's
bounded outbound queue; a full queue makes the sender wait (backpressure)
without stalling anyone else.

Known limitation: broadcast delivery runs on the hub task, so a client whose
queue stays full will hold up broadcasts to clients behind it and delay
register/unregister processing until it drains or is closed. Queues are sized
generously (``client_queue_size``) so this only bites on a stuck client.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

# Wakes a writer blocked on an empty queue when its client is closed
_CLOSED = object()


class Client:
    """One live connection and its ordered outbound queue."""

    def __init__(self, websocket: Any = None, *, queue_size: int = 256, client_id: str | None = None):
        self.id = client_id or uuid.uuid4().hex
        self.websocket = websocket
        self.queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=queue_size)
        self._closed = asyncio.Event()

    def __repr__(self) -> str:
        return f"<Client {self.id}{' closed' if self.closed else ''}>"

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> bool:
        """Close the outbound queue. Returns False if it was already closed."""
        if self._closed.is_set():
            return False
        self._closed.set()
        try:
            self.queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass  # writer is not waiting on an empty queue, it sees the flag on its next get
        return True

    async def put(self, data: str) -> bool:
        """Enqueue *data*, waiting while the queue is full.

        Returns False if the client is (or becomes) closed before the data
        could be queued.
        """
        if self.closed:
            return False
        if not self.queue.full():
            self.queue.put_nowait(data)
            return True

        put = asyncio.ensure_future(self.queue.put(data))
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({put, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()
            if not put.done():
                put.cancel()
        return put.done() and not put.cancelled()

    async def drain(self) -> AsyncIterator[str]:
        """Yield queued frames in FIFO order until the client is closed."""
        while True:
            item = await self.queue.get()
            if item is _CLOSED or self.closed:
                return
            yield item

    def discard_pending(self) -> int:
        """Drop whatever is still queued; frees any sender blocked on a full queue."""
        dropped = 0
        while True:
            try:
                item = self.queue.get_nowait()
            except asyncio.QueueEmpty:
                return dropped
            if item is not _CLOSED:
                dropped += 1


class _Command(StrEnum):
    REGISTER = "register"
    UNREGISTER = "unregister"
    BROADCAST = "broadcast"


class ConnectionHub:
    def __init__(self, queue_size: int = 256) -> None:
        self.queue_size = queue_size
        self._clients: dict[str, Client] = {}
        self._commands: asyncio.Queue[tuple[_Command, Any]] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    # ── Lifecycle ────────────────────────────────────────────────────

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="connection-hub")

    async def stop(self) -> None:
        """Stop the hub loop and close every client still registered."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        for client in list(self._clients.values()):
            client.close()
        self._clients.clear()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ── Commands (processed serially by the hub task) ───────────────

    def new_client(self, websocket: Any = None) -> Client:
        return Client(websocket, queue_size=self.queue_size)

    async def register(self, client: Client) -> None:
        await self._commands.put((_Command.REGISTER, client))

    async def unregister(self, client: Client) -> None:
        if not self.running:
            # No hub loop to hand the command to (shutdown), close directly
            self._clients.pop(client.id, None)
            client.close()
            return
        await self._commands.put((_Command.UNREGISTER, client))

    async def broadcast(self, data: str) -> None:
        await self._commands.put((_Command.BROADCAST, data))

    async def join(self) -> None:
        """Wait until every command issued so far has been processed."""
        await self._commands.join()

    # ── Direct delivery ─────────────────────────────────────────────

    async def send(self, client: Client, data: str) -> bool:
        """Queue *data* for one client; waits while that client's queue is full."""
        delivered = await client.put(data)
        if not delivered:
            logger.debug("Dropped frame for closed client %s", client.id)
        return delivered

    @property
    def clients(self) -> list[Client]:
        """Snapshot of the registered clients."""
        return list(self._clients.values())

    def __len__(self) -> int:
        return len(self._clients)

    # ── Hub loop ────────────────────────────────────────────────────

    async def _run(self) -> None:
        logger.info("Connection hub started")
        while True:
            command, arg = await self._commands.get()
            try:
                if command is _Command.REGISTER:
                    self._clients[arg.id] = arg
                    logger.debug("Client %s registered (%d connected)", arg.id, len(self._clients))
                elif command is _Command.UNREGISTER:
                    if self._clients.pop(arg.id, None) is not None:
                        arg.close()
                        logger.debug("Client %s unregistered (%d connected)", arg.id, len(self._clients))
                elif command is _Command.BROADCAST:
                    for client in list(self._clients.values()):
                        await client.put(arg)
            except Exception:
                logger.exception("Hub failed to process %s command", command)
            finally:
                self._commands.task_done()
