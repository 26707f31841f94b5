"""ConnectionHub and Client tests."""

import asyncio

import pytest
import pytest_asyncio
from fastapi.websockets import WebSocketState

from app.realtime.connection import serve_connection
from app.realtime.hub import Client, ConnectionHub


@pytest_asyncio.fixture
async def hub():
    hub = ConnectionHub(queue_size=8)
    hub.start()
    yield hub
    await hub.stop()


async def _collect(client: Client, count: int) -> list[str]:
    frames = []
    async for frame in client.drain():
        frames.append(frame)
        if len(frames) == count:
            break
    return frames


# ── Registry ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_concurrent_register_and_unregister_settle(hub: ConnectionHub):
    clients = [hub.new_client() for _ in range(60)]
    await asyncio.gather(*(hub.register(c) for c in clients))
    await asyncio.gather(
        *(hub.unregister(c) for c in clients[::2]),
        *(hub.broadcast("tick") for _ in range(3)),
    )
    await hub.join()

    assert {c.id for c in hub.clients} == {c.id for c in clients[1::2]}
    assert all(c.closed for c in clients[::2])
    assert not any(c.closed for c in clients[1::2])


@pytest.mark.asyncio
async def test_register_twice_keeps_one_entry(hub: ConnectionHub):
    client = hub.new_client()
    await hub.register(client)
    await hub.register(client)
    await hub.join()
    assert len(hub) == 1


@pytest.mark.asyncio
async def test_unregister_twice_closes_once(hub: ConnectionHub):
    client = hub.new_client()
    await hub.register(client)
    await asyncio.gather(hub.unregister(client), hub.unregister(client))
    await hub.join()

    assert client.closed
    assert len(hub) == 0
    assert client.close() is False
    # The queue holds a single wake-up marker and drains to nothing
    assert client.queue.qsize() == 1
    assert [f async for f in client.drain()] == []


@pytest.mark.asyncio
async def test_unregister_unknown_client_is_noop(hub: ConnectionHub):
    stranger = hub.new_client()
    await hub.unregister(stranger)
    await hub.join()
    assert not stranger.closed


@pytest.mark.asyncio
async def test_unregister_after_stop_closes_directly():
    hub = ConnectionHub()
    hub.start()
    client = hub.new_client()
    await hub.register(client)
    await hub.join()
    await hub.stop()

    assert client.closed  # stop closes everyone still registered
    other = hub.new_client()
    await hub.unregister(other)
    assert other.closed


# ── Delivery ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_per_client_fifo_under_concurrent_sends(hub: ConnectionHub):
    a, b = hub.new_client(), hub.new_client()
    await hub.register(a)
    await hub.register(b)

    async def send_many(client: Client, tag: str):
        for i in range(100):
            await hub.send(client, f"{tag}{i}")

    got_a = asyncio.create_task(_collect(a, 100))
    got_b = asyncio.create_task(_collect(b, 100))
    await asyncio.gather(send_many(a, "a"), send_many(b, "b"))

    assert await asyncio.wait_for(got_a, 2) == [f"a{i}" for i in range(100)]
    assert await asyncio.wait_for(got_b, 2) == [f"b{i}" for i in range(100)]


@pytest.mark.asyncio
async def test_broadcast_reaches_every_client(hub: ConnectionHub):
    clients = [hub.new_client() for _ in range(3)]
    for c in clients:
        await hub.register(c)
    await hub.broadcast("hello")
    await hub.broadcast("again")
    await hub.join()

    for c in clients:
        assert await _collect(c, 2) == ["hello", "again"]


@pytest.mark.asyncio
async def test_send_waits_while_queue_is_full():
    hub = ConnectionHub(queue_size=2)
    client = hub.new_client()
    assert await hub.send(client, "1")
    assert await hub.send(client, "2")

    blocked = asyncio.create_task(hub.send(client, "3"))
    await asyncio.sleep(0.01)
    assert not blocked.done()

    assert client.queue.get_nowait() == "1"
    assert await asyncio.wait_for(blocked, 1) is True
    assert client.queue.get_nowait() == "2"
    assert client.queue.get_nowait() == "3"


@pytest.mark.asyncio
async def test_close_releases_blocked_sender():
    client = Client(queue_size=1)
    await client.put("1")
    blocked = asyncio.create_task(client.put("2"))
    await asyncio.sleep(0.01)

    assert client.close() is True
    assert await asyncio.wait_for(blocked, 1) is False


@pytest.mark.asyncio
async def test_send_to_closed_client_is_dropped(hub: ConnectionHub):
    client = hub.new_client()
    client.close()
    assert await hub.send(client, "late") is False


@pytest.mark.asyncio
async def test_discard_pending_drops_queued_frames():
    client = Client(queue_size=4)
    for frame in ("1", "2", "3"):
        await client.put(frame)
    client.close()
    assert client.discard_pending() == 3
    assert client.queue.empty()


# ── Connection loops ─────────────────────────────────────────────────


class FakeSocket:
    """Scripted stand-in for a Starlette WebSocket."""

    def __init__(self, *frames: str, fail_sends: bool = False):
        self.incoming: asyncio.Queue[dict] = asyncio.Queue()
        for frame in frames:
            self.incoming.put_nowait({"type": "websocket.receive", "text": frame})
        self.fail_sends = fail_sends
        self.sent: list[str] = []
        self.closed = False
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def accept(self):
        pass

    async def receive(self) -> dict:
        return await self.incoming.get()

    async def send_text(self, data: str):
        if self.fail_sends:
            raise ConnectionResetError("connection reset by peer")
        self.sent.append(data)

    async def close(self, code: int = 1000):
        self.closed = True
        self.application_state = WebSocketState.DISCONNECTED
        self.incoming.put_nowait({"type": "websocket.disconnect", "code": code})

    def hang_up(self):
        self.incoming.put_nowait({"type": "websocket.disconnect", "code": 1001})


async def _ignore_chat(hub, client, payload):
    pass


@pytest.mark.asyncio
async def test_write_failure_unregisters_and_closes_socket(hub: ConnectionHub):
    socket = FakeSocket('{"type": "ping"}', fail_sends=True)

    await asyncio.wait_for(serve_connection(socket, hub, _ignore_chat), 2)
    await hub.join()

    assert len(hub) == 0
    assert socket.closed
    assert socket.sent == []


@pytest.mark.asyncio
async def test_disconnect_cancels_running_chats(hub: ConnectionHub):
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def slow_chat(hub, client, payload):
        started.set()
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    socket = FakeSocket('{"type": "chat_message", "data": {"board_id": "b1", "message": "hi"}}')
    serving = asyncio.create_task(serve_connection(socket, hub, slow_chat))
    await asyncio.wait_for(started.wait(), 2)
    socket.hang_up()

    await asyncio.wait_for(serving, 2)
    await hub.join()

    assert cancelled.is_set()
    assert len(hub) == 0
