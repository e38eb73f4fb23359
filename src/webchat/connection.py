"""
Connection Manager for the Chat Server

This module owns the WebSocket channel to the chat server and models its
lifecycle as an explicit state machine:

    DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED (retry)

Transitions and their side effects:
    - DISCONNECTED -> CONNECTING: on start() and after every close, after
      a fixed reconnect delay. No backoff, no jitter, retries forever.
    - CONNECTING -> CONNECTED: send the identity as a raw text frame,
      start the keepalive task, fire the open callback.
    - CONNECTED -> DISCONNECTED: cancel the keepalive task, close the
      socket, fire the close callback, schedule the reconnect.

Callback failures are logged and never end the channel or the retry loop.
    - CONNECTING -> DISCONNECTED (open failed): schedule the reconnect.

All timers are tasks owned by the manager; stop() cancels them and closes
the socket. Each channel carries a generation number so that a stale
channel can never act on the manager after a newer one replaced it.

Architecture:
    - Supports dependency injection for the network layer and the sleep
      function (for testability)
    - Async/await pattern for non-blocking I/O operations
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

import websockets
from websockets.asyncio.client import ClientConnection

from .config import KEEPALIVE_INTERVAL, RECONNECT_DELAY
from .protocol import ping_frame

logger = logging.getLogger(__name__)

Callback = Callable[..., Union[None, Awaitable[None]]]


class ConnectionState(Enum):
    """States of the chat server connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionManager:
    """
    Maintains a single WebSocket channel with reconnect and keepalive.

    Attributes:
        url: WebSocket URL of the chat server (e.g., ws://localhost:8080/ws)
        identity: Display name sent as the first frame on every channel
        websocket: Active WebSocket connection (None if not connected)
        state: Current ConnectionState
        reconnect_delay: Seconds to wait before each reconnect
        keepalive_interval: Seconds between keepalive pings
        reconnect_count: Number of reconnects scheduled so far
    """

    def __init__(
        self,
        url: str,
        identity: str,
        websocket_factory: Optional[Callable] = None,
        reconnect_delay: float = RECONNECT_DELAY,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize the connection manager.

        Args:
            url: WebSocket URL of the chat server
            identity: Display name announced after each open
            websocket_factory: Optional factory for creating WebSocket
                             connections (for dependency injection/testing)
            reconnect_delay: Fixed delay before each reconnect attempt
            keepalive_interval: Interval between keepalive pings
            sleep: Optional coroutine function used for both timers
        """
        self.url = url
        self.identity = identity
        self.websocket: Optional[ClientConnection] = None
        self.state = ConnectionState.DISCONNECTED
        self.reconnect_delay = reconnect_delay
        self.keepalive_interval = keepalive_interval
        self.reconnect_count = 0

        self._websocket_factory = websocket_factory or websockets.connect
        self._sleep = sleep or asyncio.sleep
        self._generation = 0
        self._stopped = True
        self._run_task: Optional[asyncio.Task] = None
        self._keepalive_task: Optional[asyncio.Task] = None

        # Callbacks for session integration
        self._on_open: Optional[Callback] = None
        self._on_close: Optional[Callback] = None
        self._on_frame: Optional[Callback] = None
        self._on_state_change: Optional[Callback] = None

        logger.info("ConnectionManager initialized for %s", url)

    def set_on_open(self, callback: Callback) -> None:
        """Register callback fired after the channel opens."""
        self._on_open = callback

    def set_on_close(self, callback: Callback) -> None:
        """Register callback fired after an open channel closes."""
        self._on_close = callback

    def set_on_frame(self, callback: Callback) -> None:
        """
        Register callback for inbound frames.

        Args:
            callback: Function receiving each raw frame, in delivery order
        """
        self._on_frame = callback

    def set_on_state_change(self, callback: Callback) -> None:
        """Register callback receiving every new ConnectionState."""
        self._on_state_change = callback

    @property
    def is_connected(self) -> bool:
        """Check if the channel is open."""
        return (
            self.state is ConnectionState.CONNECTED
            and self.websocket is not None
        )

    @property
    def is_running(self) -> bool:
        """Check if the connect/reconnect loop is active."""
        return self._run_task is not None and not self._run_task.done()

    def start(self) -> asyncio.Task:
        """
        Start the connect/reconnect loop.

        Returns:
            The task running the loop
        """
        if self.is_running:
            return self._run_task

        self._stopped = False
        self._run_task = asyncio.create_task(self._run())
        logger.info("Connection loop started")
        return self._run_task

    async def stop(self) -> None:
        """
        Stop the loop, cancel all timers and close the channel.

        A stopped manager never reconnects. No close callback fires.
        """
        self._stopped = True
        self._generation += 1

        await self._cancel_keepalive()

        task = self._run_task
        self._run_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        websocket = self.websocket
        self.websocket = None
        if websocket is not None and hasattr(websocket, "close"):
            await websocket.close()

        await self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Connection loop stopped")

    async def send(self, text: str) -> None:
        """
        Send a raw text frame.

        Args:
            text: Frame payload

        Raises:
            ConnectionError: If the channel is not open
        """
        if not self.is_connected:
            raise ConnectionError("Not connected to the chat server")

        try:
            await self.websocket.send(text)
        except websockets.exceptions.ConnectionClosed as e:
            raise ConnectionError(f"Connection closed while sending: {e}")

    async def _run(self) -> None:
        """Connect, serve the channel until it closes, wait, repeat."""
        while not self._stopped:
            await self._connect_once()
            if self._stopped:
                break

            self.reconnect_count += 1
            logger.info(
                "Reconnecting in %s seconds (attempt %d)",
                self.reconnect_delay,
                self.reconnect_count,
            )
            await self._sleep(self.reconnect_delay)

    async def _connect_once(self) -> bool:
        """
        Run one channel from open to close.

        Returns:
            True if the channel opened, False if the open failed
        """
        await self._set_state(ConnectionState.CONNECTING)
        logger.info("Connecting to %s...", self.url)

        try:
            websocket = await self._websocket_factory(self.url)
        except (
            OSError,
            asyncio.TimeoutError,
            websockets.exceptions.WebSocketException,
        ) as e:
            logger.warning("Failed to connect to %s: %s", self.url, e)
            await self._set_state(ConnectionState.DISCONNECTED)
            return False

        self._generation += 1
        generation = self._generation
        self.websocket = websocket

        try:
            await websocket.send(self.identity)
            await self._set_state(ConnectionState.CONNECTED)
            logger.info("Connected to chat server as %s", self.identity)

            self._keepalive_task = asyncio.create_task(
                self._keepalive(websocket, generation)
            )
            await self._emit(self._on_open)

            async for frame in websocket:
                if generation != self._generation:
                    break
                await self._emit(self._on_frame, frame)
        except websockets.exceptions.ConnectionClosed as e:
            logger.warning("Connection closed by server: %s", e)
        except OSError as e:
            logger.warning("Connection lost: %s", e)
        except Exception as e:
            logger.error("Error in connection loop: %s", e)
        finally:
            await self._cancel_keepalive()
            await self._close_socket(websocket)

        if generation == self._generation:
            self.websocket = None
            await self._set_state(ConnectionState.DISCONNECTED)
            logger.info("Disconnected from chat server")
            await self._emit(self._on_close)
        return True

    async def _keepalive(self, websocket: Any, generation: int) -> None:
        """Send a ping every keepalive_interval while the channel is current."""
        while True:
            await self._sleep(self.keepalive_interval)
            if generation != self._generation or not self.is_connected:
                return
            try:
                await websocket.send(ping_frame())
                logger.debug("Sent keepalive ping")
            except websockets.exceptions.ConnectionClosed:
                logger.debug("Keepalive stopped: connection closed")
                return

    @staticmethod
    async def _close_socket(websocket: Any) -> None:
        # The server keeps a session per open socket
        try:
            await websocket.close()
        except (OSError, websockets.exceptions.WebSocketException) as e:
            logger.debug("Error closing channel: %s", e)

    async def _cancel_keepalive(self) -> None:
        task = self._keepalive_task
        self._keepalive_task = None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        logger.debug("Connection state %s -> %s", self.state.value, state.value)
        self.state = state
        await self._emit(self._on_state_change, state)

    @staticmethod
    async def _emit(callback: Optional[Callback], *args: Any) -> None:
        """Run a callback; its failures are logged, never raised."""
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                "Error in %s callback: %s",
                getattr(callback, "__name__", callback),
                e,
            )
