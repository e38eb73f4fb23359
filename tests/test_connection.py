"""
Tests for the Connection Manager

Tests for the connection state machine including:
- Identity handshake on open
- Keepalive cadence while connected
- Fixed-delay reconnect after close and after failed opens
- Explicit stop() lifecycle
"""

import asyncio
import json

import pytest
import websockets

from webchat.config import KEEPALIVE_INTERVAL, RECONNECT_DELAY
from webchat.connection import ConnectionManager, ConnectionState

PING = json.dumps({"type": "ping"})


class MockWebSocket:
    """Mock WebSocket for testing."""

    def __init__(self):
        self.sent_messages = []
        self.closed = False
        self._incoming = asyncio.Queue()

    async def send(self, message):
        if self.closed:
            raise websockets.exceptions.ConnectionClosed(None, None)
        self.sent_messages.append(message)

    def feed(self, frame):
        """Queue an inbound frame."""
        self._incoming.put_nowait(frame)

    def drop(self):
        """Simulate the server closing the connection."""
        self._incoming.put_nowait(None)

    def fail(self, error):
        """Make the next receive raise error."""
        self._incoming.put_nowait(error)

    async def close(self):
        self.closed = True
        self._incoming.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        frame = await self._incoming.get()
        if frame is None:
            self.closed = True
            raise StopAsyncIteration
        if isinstance(frame, Exception):
            raise frame
        return frame


class MockFactory:
    """Hands out queued sockets or errors; refuses once exhausted."""

    def __init__(self, *items):
        self.items = list(items)
        self.calls = []

    async def __call__(self, url):
        self.calls.append(url)
        item = self.items.pop(0) if self.items else OSError("refused")
        if isinstance(item, Exception):
            raise item
        return item


class ManualTimers:
    """Sleep replacement whose timers only fire when told to."""

    def __init__(self):
        self.calls = []
        self.pending = []

    async def sleep(self, delay):
        future = asyncio.get_running_loop().create_future()
        entry = (delay, future)
        self.calls.append(delay)
        self.pending.append(entry)
        try:
            await future
        finally:
            if entry in self.pending:
                self.pending.remove(entry)

    def waiting(self, delay):
        return sum(1 for d, f in self.pending if d == delay and not f.done())

    def fire(self, delay):
        fired = 0
        for d, future in list(self.pending):
            if d == delay and not future.done():
                future.set_result(None)
                fired += 1
        return fired


async def settle():
    """Let every ready task run."""
    for _ in range(20):
        await asyncio.sleep(0)


def make_manager(factory, timers):
    return ConnectionManager(
        "ws://localhost:8080/ws",
        "Brave Curie",
        websocket_factory=factory,
        sleep=timers.sleep,
    )


def test_manager_initial_state():
    """Test that a new manager is idle and disconnected."""
    manager = ConnectionManager("ws://localhost:8080/ws", "Brave Curie")
    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.websocket is None
    assert not manager.is_connected
    assert not manager.is_running
    assert manager.reconnect_delay == RECONNECT_DELAY
    assert manager.keepalive_interval == KEEPALIVE_INTERVAL


@pytest.mark.asyncio
async def test_open_sends_identity_first():
    """Test that the identity is the first frame, sent as raw text."""
    ws = MockWebSocket()
    factory = MockFactory(ws)
    timers = ManualTimers()
    manager = make_manager(factory, timers)

    manager.start()
    await settle()

    assert factory.calls == ["ws://localhost:8080/ws"]
    assert manager.state is ConnectionState.CONNECTED
    assert manager.is_connected
    assert ws.sent_messages == ["Brave Curie"]

    await manager.stop()


@pytest.mark.asyncio
async def test_state_transitions_are_reported():
    """Test the connecting -> connected -> disconnected sequence."""
    ws = MockWebSocket()
    timers = ManualTimers()
    manager = make_manager(MockFactory(ws), timers)
    states = []
    manager.set_on_state_change(states.append)

    manager.start()
    await settle()
    ws.drop()
    await settle()

    assert states == [
        ConnectionState.CONNECTING,
        ConnectionState.CONNECTED,
        ConnectionState.DISCONNECTED,
    ]

    await manager.stop()


@pytest.mark.asyncio
async def test_keepalive_sends_one_ping_per_interval():
    """Test that exactly one ping is sent per keepalive interval."""
    ws = MockWebSocket()
    timers = ManualTimers()
    manager = make_manager(MockFactory(ws), timers)

    manager.start()
    await settle()
    assert timers.waiting(KEEPALIVE_INTERVAL) == 1

    for expected in (1, 2, 3):
        assert timers.fire(KEEPALIVE_INTERVAL) == 1
        await settle()
        assert ws.sent_messages[1:] == [PING] * expected

    await manager.stop()


@pytest.mark.asyncio
async def test_no_keepalive_while_disconnected():
    """Test that the keepalive timer is cancelled on close."""
    ws = MockWebSocket()
    timers = ManualTimers()
    manager = make_manager(MockFactory(ws), timers)

    manager.start()
    await settle()
    ws.drop()
    await settle()

    assert manager.state is ConnectionState.DISCONNECTED
    assert timers.waiting(KEEPALIVE_INTERVAL) == 0
    assert timers.fire(KEEPALIVE_INTERVAL) == 0
    assert PING not in ws.sent_messages

    await manager.stop()


@pytest.mark.asyncio
async def test_close_schedules_exactly_one_reconnect():
    """Test that a close fires the callback and schedules one reconnect."""
    ws = MockWebSocket()
    timers = ManualTimers()
    factory = MockFactory(ws)
    manager = make_manager(factory, timers)
    closed = []

    async def on_close():
        closed.append(True)

    manager.set_on_close(on_close)

    manager.start()
    await settle()
    ws.drop()
    await settle()

    assert closed == [True]
    assert timers.waiting(RECONNECT_DELAY) == 1
    assert timers.calls.count(RECONNECT_DELAY) == 1
    assert manager.reconnect_count == 1
    # Nothing happens before the delay elapses
    assert len(factory.calls) == 1

    await manager.stop()


@pytest.mark.asyncio
async def test_reconnect_retries_until_open():
    """Test that failed opens are retried with the same fixed delay."""
    ws = MockWebSocket()
    timers = ManualTimers()
    factory = MockFactory(OSError("refused"), OSError("refused"), ws)
    manager = make_manager(factory, timers)
    closed = []
    manager.set_on_close(lambda: closed.append(True))

    manager.start()
    await settle()
    assert len(factory.calls) == 1
    assert manager.state is ConnectionState.DISCONNECTED
    assert timers.waiting(RECONNECT_DELAY) == 1

    timers.fire(RECONNECT_DELAY)
    await settle()
    assert len(factory.calls) == 2
    assert timers.waiting(RECONNECT_DELAY) == 1

    timers.fire(RECONNECT_DELAY)
    await settle()
    assert len(factory.calls) == 3
    assert manager.state is ConnectionState.CONNECTED
    assert timers.waiting(RECONNECT_DELAY) == 0
    assert set(timers.calls) == {RECONNECT_DELAY, KEEPALIVE_INTERVAL}

    # Failed opens do not count as closes of an open channel
    assert closed == []

    await manager.stop()


@pytest.mark.asyncio
async def test_reconnect_never_gives_up():
    """Test that retries continue past many failures."""
    timers = ManualTimers()
    factory = MockFactory()
    manager = make_manager(factory, timers)

    manager.start()
    await settle()
    for _ in range(25):
        timers.fire(RECONNECT_DELAY)
        await settle()

    assert len(factory.calls) == 26
    assert manager.is_running
    assert timers.waiting(RECONNECT_DELAY) == 1

    await manager.stop()


@pytest.mark.asyncio
async def test_handshake_failure_is_retried():
    """Test that websocket protocol errors on open are retried."""
    timers = ManualTimers()
    factory = MockFactory(websockets.exceptions.InvalidURI("bad", "oops"))
    manager = make_manager(factory, timers)

    manager.start()
    await settle()

    assert manager.state is ConnectionState.DISCONNECTED
    assert timers.waiting(RECONNECT_DELAY) == 1

    await manager.stop()


@pytest.mark.asyncio
async def test_frames_are_delivered_in_order():
    """Test that inbound frames reach the callback in delivery order."""
    ws = MockWebSocket()
    timers = ManualTimers()
    manager = make_manager(MockFactory(ws), timers)
    frames = []
    manager.set_on_frame(frames.append)

    manager.start()
    await settle()
    for frame in ("first", "second", "third"):
        ws.feed(frame)
    await settle()

    assert frames == ["first", "second", "third"]

    await manager.stop()


@pytest.mark.asyncio
async def test_open_callback_runs_after_identity():
    """Test that the open callback fires once the handshake is sent."""
    ws = MockWebSocket()
    timers = ManualTimers()
    manager = make_manager(MockFactory(ws), timers)
    seen = []
    manager.set_on_open(lambda: seen.append(list(ws.sent_messages)))

    manager.start()
    await settle()

    assert seen == [["Brave Curie"]]

    await manager.stop()


@pytest.mark.asyncio
async def test_stop_cancels_everything():
    """Test that stop() closes the socket and cancels all timers."""
    ws = MockWebSocket()
    timers = ManualTimers()
    factory = MockFactory(ws)
    manager = make_manager(factory, timers)
    closed = []
    manager.set_on_close(lambda: closed.append(True))

    manager.start()
    await settle()
    await manager.stop()
    await settle()

    assert ws.closed
    assert manager.state is ConnectionState.DISCONNECTED
    assert not manager.is_running
    assert timers.pending == []
    assert closed == []
    assert len(factory.calls) == 1


@pytest.mark.asyncio
async def test_stop_during_reconnect_delay():
    """Test that a pending reconnect never fires after stop()."""
    timers = ManualTimers()
    factory = MockFactory()
    manager = make_manager(factory, timers)

    manager.start()
    await settle()
    assert timers.waiting(RECONNECT_DELAY) == 1

    await manager.stop()
    assert timers.fire(RECONNECT_DELAY) == 0
    await settle()

    assert len(factory.calls) == 1
    assert not manager.is_running


@pytest.mark.asyncio
async def test_send_requires_connection():
    """Test that sending while disconnected raises ConnectionError."""
    manager = ConnectionManager("ws://localhost:8080/ws", "Brave Curie")

    with pytest.raises(ConnectionError):
        await manager.send("hello")


@pytest.mark.asyncio
async def test_send_while_connected():
    """Test that send() writes a raw text frame."""
    ws = MockWebSocket()
    timers = ManualTimers()
    manager = make_manager(MockFactory(ws), timers)

    manager.start()
    await settle()
    await manager.send("hello **world**")

    assert ws.sent_messages == ["Brave Curie", "hello **world**"]

    await manager.stop()


@pytest.mark.asyncio
async def test_start_is_idempotent():
    """Test that a second start() reuses the running loop."""
    ws = MockWebSocket()
    timers = ManualTimers()
    factory = MockFactory(ws)
    manager = make_manager(factory, timers)

    first = manager.start()
    second = manager.start()
    await settle()

    assert first is second
    assert len(factory.calls) == 1

    await manager.stop()


@pytest.mark.asyncio
async def test_receive_error_closes_socket_before_reconnect():
    """Test that a channel ending on an error is closed, not abandoned."""
    ws = MockWebSocket()
    timers = ManualTimers()
    manager = make_manager(MockFactory(ws), timers)

    manager.start()
    await settle()
    ws.fail(OSError("connection reset"))
    await settle()

    assert ws.closed
    assert manager.websocket is None
    assert manager.state is ConnectionState.DISCONNECTED
    assert timers.waiting(RECONNECT_DELAY) == 1

    await manager.stop()


@pytest.mark.asyncio
async def test_frame_callback_failure_keeps_channel_open():
    """Test that a failing frame callback drops only that frame."""
    ws = MockWebSocket()
    timers = ManualTimers()
    manager = make_manager(MockFactory(ws), timers)
    received = []

    def on_frame(frame):
        if frame == "bad":
            raise TypeError("unhashable type: 'list'")
        received.append(frame)

    manager.set_on_frame(on_frame)

    manager.start()
    await settle()
    ws.feed("bad")
    ws.feed("good")
    await settle()

    assert received == ["good"]
    assert manager.is_connected
    assert not ws.closed

    await manager.stop()


@pytest.mark.asyncio
async def test_close_callback_failure_keeps_retrying():
    """Test that a failing close callback never ends the retry loop."""
    first = MockWebSocket()
    second = MockWebSocket()
    timers = ManualTimers()
    factory = MockFactory(first, second)
    manager = make_manager(factory, timers)

    async def on_close():
        raise ValueError("Expecting value: line 1 column 1 (char 0)")

    manager.set_on_close(on_close)
    manager.set_on_open(lambda: 1 / 0)

    manager.start()
    await settle()
    assert manager.is_connected

    first.drop()
    await settle()

    assert manager.is_running
    assert timers.waiting(RECONNECT_DELAY) == 1

    timers.fire(RECONNECT_DELAY)
    await settle()

    assert len(factory.calls) == 2
    assert manager.is_connected
    assert second.sent_messages == ["Brave Curie"]

    await manager.stop()
