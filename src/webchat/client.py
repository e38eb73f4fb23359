"""
Chat Client Session

This module provides the ChatClient class, the single session object a
chat client is built around. It owns the identity, the connection
manager, the message router, the renderer, the file store client and
the notifier, and exposes callback hooks for the UI layer.

Architecture:
    - ConnectionManager keeps the WebSocket channel alive
    - MessageRouter dispatches decoded events to the handlers below
    - MessageRenderer produces sanitized rendering units
    - FileStoreClient talks to the HTTP file store
    - Callbacks (set_on_*) push presentation updates to the UI

Usage:
    client = ChatClient(ClientConfig.from_env())
    client.set_on_chat_message(show_message)
    await client.start()
    await client.send_message("hello")
    await client.stop()
"""

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from .colors import string_to_color
from .config import ClientConfig
from .connection import ConnectionManager, ConnectionState
from .files import FileStoreClient, FileStoreError
from .identity import IdentityStore, get_or_generate_username
from .notifications import Notifier
from .protocol import ProtocolDecodeError, decode_frame
from .render import MessageRenderer, RenderedMessage
from .router import MessageRouter
from .schemas import (
    EVENT_SCHEMAS,
    ChatMessageEvent,
    FileUploadEvent,
    MessageHistoryEvent,
    PongEvent,
    UserJoinEvent,
    UserLeaveEvent,
    UserListEvent,
)

logger = logging.getLogger(__name__)

BACK_ONLINE_NOTICE = "You are back online"
OFFLINE_NOTICE = "You are now offline"


class ChatClient:
    """
    Chat session with explicit start/stop lifecycle.

    Attributes:
        config: Client configuration
        username: Display name of this client
        color: CSS colour derived from the username
        last_message_user: Sender of the most recently rendered message
        connection: ConnectionManager for the chat server channel
        router: MessageRouter for inbound events
        renderer: MessageRenderer for chat messages
        files: FileStoreClient for uploads and downloads
        notifier: Notifier for incoming message notifications
    """

    def __init__(
        self,
        config: ClientConfig,
        username: Optional[str] = None,
        store: Optional[IdentityStore] = None,
        websocket_factory: Optional[Callable] = None,
        file_store: Optional[FileStoreClient] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable] = None,
    ):
        """
        Initialize the chat session.

        Args:
            config: Client configuration
            username: Explicit display name; resolved from storage if None
            store: Persistent storage (defaults to config.storage_path)
            websocket_factory: Optional factory for creating WebSocket
                             connections (for dependency injection/testing)
            file_store: Optional file store client (for testing)
            notifier: Optional notifier (defaults to config.notifications)
            clock: Monotonic clock used for the initial-load window
            sleep: Optional sleep coroutine for the connection timers
        """
        self.config = config
        self.store = store or IdentityStore(config.storage_path)
        self.username = username or get_or_generate_username(self.store)
        self.color = string_to_color(self.username)
        self.last_message_user: Optional[str] = None

        self.renderer = MessageRenderer()
        self.files = file_store or FileStoreClient(config.http_url)
        self.notifier = notifier or Notifier(enabled=config.notifications)

        self.connection = ConnectionManager(
            config.ws_url,
            self.username,
            websocket_factory=websocket_factory,
            reconnect_delay=config.reconnect_delay,
            keepalive_interval=config.keepalive_interval,
            sleep=sleep,
        )
        self.connection.set_on_open(self._handle_open)
        self.connection.set_on_close(self._handle_close)
        self.connection.set_on_frame(self._handle_frame)
        self.connection.set_on_state_change(self._handle_state_change)

        handlers = {
            ChatMessageEvent.message_type: self._handle_chat_message,
            UserListEvent.message_type: self._handle_user_list,
            UserJoinEvent.message_type: self._handle_user_join,
            UserLeaveEvent.message_type: self._handle_user_leave,
            FileUploadEvent.message_type: self._handle_file_upload,
            MessageHistoryEvent.message_type: self._handle_history,
            PongEvent.message_type: self._handle_pong,
        }
        self.router = MessageRouter()
        for message_type, schema in EVENT_SCHEMAS.items():
            self.router.register(schema, handlers[message_type])

        self._clock = clock or time.monotonic
        self._started_at: Optional[float] = None

        # Callbacks for UI integration
        self._on_chat_message: Optional[Callable[[RenderedMessage], None]] = (
            None
        )
        self._on_system_message: Optional[Callable[[str, str], None]] = None
        self._on_user_list: Optional[Callable[[List[str]], None]] = None
        self._on_files_replaced: Optional[Callable[[List[str]], None]] = None
        self._on_file_added: Optional[Callable[[str], None]] = None
        self._on_connection_state: Optional[
            Callable[[ConnectionState], None]
        ] = None

        logger.info("ChatClient initialized for %s", config.server_url)

    def set_on_chat_message(
        self, callback: Callable[[RenderedMessage], None]
    ) -> None:
        """
        Register callback for rendered chat messages.

        Args:
            callback: Function that receives each RenderedMessage
        """
        self._on_chat_message = callback

    def set_on_system_message(self, callback: Callable[[str, str], None]) -> None:
        """
        Register callback for system notices.

        Args:
            callback: Function that receives (text, level) where level is
                      "info", "warning", "error" or "success"
        """
        self._on_system_message = callback

    def set_on_user_list(self, callback: Callable[[List[str]], None]) -> None:
        """
        Register callback for roster snapshots.

        Args:
            callback: Function that receives the full list of usernames
        """
        self._on_user_list = callback

    def set_on_files_replaced(
        self, callback: Callable[[List[str]], None]
    ) -> None:
        """Register callback receiving the full uploaded-files listing."""
        self._on_files_replaced = callback

    def set_on_file_added(self, callback: Callable[[str], None]) -> None:
        """Register callback receiving a single newly uploaded file name."""
        self._on_file_added = callback

    def set_on_connection_state(
        self, callback: Callable[[ConnectionState], None]
    ) -> None:
        """Register callback receiving connection state changes."""
        self._on_connection_state = callback

    @property
    def is_connected(self) -> bool:
        """Check if the chat server channel is open."""
        return self.connection.is_connected

    @property
    def in_initial_load_window(self) -> bool:
        """Check if the session started less than the load window ago."""
        if self._started_at is None:
            return True
        elapsed = self._clock() - self._started_at
        return elapsed < self.config.initial_load_window

    async def start(self) -> None:
        """Connect to the chat server and load the uploaded-files listing."""
        self._started_at = self._clock()
        logger.info("Starting session as %s", self.username)
        self.notifier.request_permission()
        self.connection.start()
        await self.refresh_files()

    async def stop(self) -> None:
        """Disconnect, cancel all timers and release HTTP resources."""
        await self.connection.stop()
        await self.files.close()
        logger.info("Session stopped")

    async def send_message(self, text: str) -> bool:
        """
        Send a chat message.

        Messages sent while disconnected are dropped, not queued.

        Args:
            text: Message text; surrounding whitespace is trimmed

        Returns:
            True if the message was handed to the channel
        """
        message = text.strip()
        if not message:
            return False

        try:
            await self.connection.send(message)
        except ConnectionError as e:
            logger.warning("Message not sent: %s", e)
            return False
        return True

    async def refresh_files(self) -> Optional[List[str]]:
        """
        Fetch the uploaded-files listing and replace the rendered list.

        Returns:
            The listing, or None if the request failed
        """
        try:
            files = await self.files.list_files()
        except (httpx.HTTPError, FileStoreError) as e:
            logger.error("Error fetching uploaded files: %s", e)
            return None

        if self._on_files_replaced:
            self._on_files_replaced(files)
        return files

    async def upload_file(self, path: Path) -> bool:
        """
        Upload a file as this session's user.

        The listing is updated when the server broadcasts the resulting
        file_upload event, not here.

        Args:
            path: Local file to upload

        Returns:
            True if the upload succeeded
        """
        try:
            ack = await self.files.upload(Path(path), self.username)
        except (OSError, httpx.HTTPError) as e:
            logger.error("Error uploading file: %s", e)
            self._system_message(f"Upload failed: {e}", "error")
            return False

        logger.info("Upload acknowledged: %s", ack)
        return True

    async def download_file(self, file_name: str) -> Optional[Path]:
        """
        Download a stored file into the configured download directory.

        Returns:
            Path of the written file, or None if the download failed
        """
        try:
            target = await self.files.download(
                file_name, self.config.download_dir
            )
        except (OSError, httpx.HTTPError) as e:
            logger.error("Error downloading %s: %s", file_name, e)
            self._system_message(f"Download failed: {e}", "error")
            return None

        self._system_message(f"Saved {file_name} to {target}", "success")
        return target

    def _system_message(self, text: str, level: str = "info") -> None:
        if self._on_system_message:
            self._on_system_message(text, level)

    async def _handle_open(self) -> None:
        if not self.in_initial_load_window:
            self._system_message(BACK_ONLINE_NOTICE, "success")

    async def _handle_close(self) -> None:
        self._system_message(OFFLINE_NOTICE, "warning")
        # Reconcile uploads missed while the channel was down
        await self.refresh_files()

    def _handle_state_change(self, state: ConnectionState) -> None:
        if self._on_connection_state:
            self._on_connection_state(state)

    async def _handle_frame(self, frame) -> None:
        """
        Decode and route one inbound frame.

        Frames that are not JSON objects, and frames whose handler
        fails, are logged and dropped; the connection stays up.
        """
        try:
            data = decode_frame(frame)
        except ProtocolDecodeError as e:
            logger.warning("Dropping undecodable frame: %s", e)
            return

        try:
            await self.router.route(data)
        except Exception as e:
            logger.error("Error handling %s event: %s", data.get("type"), e)

    def _handle_chat_message(self, event: ChatMessageEvent) -> None:
        is_current_user = event.username == self.username
        is_same_user = event.username == self.last_message_user

        rendered = self.renderer.render(
            event.username, event.message, is_current_user, is_same_user
        )
        if self._on_chat_message:
            self._on_chat_message(rendered)

        self.last_message_user = event.username

        if not is_current_user and not self.in_initial_load_window:
            self.notifier.show(event.username, event.message)

    def _handle_user_list(self, event: UserListEvent) -> None:
        if self._on_user_list:
            self._on_user_list(list(event.users))

    def _handle_user_join(self, event: UserJoinEvent) -> None:
        logger.info("User %s joined", event.username)
        self._system_message(f"{event.username} joined the chat.")

    def _handle_user_leave(self, event: UserLeaveEvent) -> None:
        logger.info("User %s left", event.username)
        self._system_message(f"{event.username} left the chat.")

    def _handle_file_upload(self, event: FileUploadEvent) -> None:
        self._system_message(
            f"{event.username} uploaded a file: {event.file_name}"
        )
        if self._on_file_added:
            self._on_file_added(event.file_name)

    def _handle_history(self, event: MessageHistoryEvent) -> None:
        logger.debug("Message history follows: %s", event.message)

    def _handle_pong(self, event: PongEvent) -> None:
        # Server acknowledged the ping
        logger.debug("Received keepalive pong")
