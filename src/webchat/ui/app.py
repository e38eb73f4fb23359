"""
Chat Application UI

Main application class for the chat client terminal UI.
Built using the Textual framework.
"""

import logging
from pathlib import Path
from typing import List, Optional

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.css.query import NoMatches
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Markdown,
    Static,
)

from ..client import ChatClient
from ..colors import string_to_hex
from ..config import ClientConfig
from ..connection import ConnectionState
from ..render import RenderedMessage

logger = logging.getLogger(__name__)


class MessageDisplay(Vertical):
    """Widget for displaying a single chat message."""

    def __init__(self, message: RenderedMessage) -> None:
        """Initialize message display."""
        super().__init__(classes=message.css_class)
        self.message = message

    def compose(self) -> ComposeResult:
        """Compose the message display."""
        if self.message.label is not None:
            color = string_to_hex(self.message.username)
            yield Static(
                Text(self.message.label, style=f"bold {color}"),
                classes="username",
            )
        yield Markdown(self.message.text, classes="message-content")


class SystemMessage(Static):
    """Widget for displaying system messages and notifications."""

    def __init__(self, message: str, message_type: str = "info") -> None:
        """Initialize system message display."""
        self.message = message
        self.message_type = message_type
        super().__init__()

    def compose(self) -> ComposeResult:
        """Compose the system message."""
        color = {
            "info": "blue",
            "warning": "yellow",
            "error": "red",
            "success": "green",
        }.get(self.message_type, "white")
        yield Static(
            f"[{color}]{escape(self.message)}[/]", classes="system-message"
        )


class ChatScreen(Horizontal):
    """Transcript, message input and the users/files sidebar."""

    def compose(self) -> ComposeResult:
        """Compose the chat screen."""
        with Vertical(id="chat-main"):
            yield Static("", id="username-display")
            yield ScrollableContainer(id="chat-box")
            with Horizontal(id="message-input-row"):
                yield Input(
                    placeholder="Type a message...",
                    id="message-input",
                )
                yield Button("Send", id="send-btn", variant="primary")
            yield Static("", id="connection-status", classes="status-message")
        with Vertical(id="sidebar"):
            yield Static("[bold]Connected Users:[/]", classes="sidebar-header")
            yield ListView(id="user-list")
            yield Static("[bold]Uploaded Files[/]", classes="sidebar-header")
            yield ListView(id="uploaded-files")
            with Vertical(id="file-upload-form"):
                yield Input(
                    placeholder="Path of file to upload...", id="file-input"
                )
                yield Button("Upload", id="upload-btn", variant="default")


class ChatApp(App):
    """Main chat application."""

    TITLE = "Chat"

    CSS = """
    Screen {
        layout: vertical;
    }

    ChatScreen {
        height: 1fr;
    }

    #chat-main {
        width: 3fr;
    }

    #username-display {
        padding: 0 1;
        text-style: bold;
    }

    #chat-box {
        height: 1fr;
        padding: 1;
    }

    #message-input-row {
        height: 3;
        padding: 0 1;
    }

    #message-input {
        width: 1fr;
    }

    #send-btn {
        margin: 0 0 0 1;
    }

    .status-message {
        padding: 0 1;
    }

    #sidebar {
        width: 1fr;
        border-left: solid $primary;
        padding: 0 1;
    }

    .sidebar-header {
        padding: 1 0 0 0;
    }

    #user-list {
        height: 1fr;
    }

    #uploaded-files {
        height: 1fr;
    }

    #file-upload-form {
        height: auto;
    }

    MessageDisplay {
        height: auto;
        padding: 0 0 1 0;
    }

    MessageDisplay.same-user {
        padding: 0;
    }

    MessageDisplay.sent .username {
        text-align: right;
    }

    .message-content {
        margin: 0 1;
    }

    SystemMessage {
        padding: 0 0 1 0;
    }

    .system-message {
        text-align: center;
        text-style: italic;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("escape", "focus_input", "Message", show=True),
        Binding("ctrl+r", "refresh_files", "Refresh files", show=True),
    ]

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        client: Optional[ChatClient] = None,
    ) -> None:
        """Initialize the chat application."""
        super().__init__()
        self.config = config or ClientConfig()
        self.client = client
        self.uploaded_files: List[str] = []

    def compose(self) -> ComposeResult:
        """Compose the main application layout."""
        yield Header()
        yield ChatScreen(id="chat-screen")
        yield Footer()

    async def on_mount(self) -> None:
        """Create the session, wire callbacks and connect."""
        if self.client is None:
            self.client = ChatClient(self.config)

        self.client.set_on_chat_message(self._on_chat_message)
        self.client.set_on_system_message(self._on_system_message)
        self.client.set_on_user_list(self._on_user_list)
        self.client.set_on_files_replaced(self._on_files_replaced)
        self.client.set_on_file_added(self._on_file_added)
        self.client.set_on_connection_state(self._on_connection_state)
        self.client.notifier.set_sink(self._show_notification)

        self.sub_title = self.client.username
        try:
            display = self.query_one("#username-display", Static)
            display.update(
                Text(
                    self.client.username,
                    style=f"bold {string_to_hex(self.client.username)}",
                )
            )
        except NoMatches:
            pass

        self.action_focus_input()
        await self.client.start()

    async def on_unmount(self) -> None:
        """Stop the session when the application exits."""
        if self.client:
            await self.client.stop()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        button_id = event.button.id

        if button_id == "send-btn":
            await self._handle_send_message()
        elif button_id == "upload-btn":
            await self._handle_upload()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle input submit events (Enter key)."""
        input_id = event.input.id

        if input_id == "message-input":
            await self._handle_send_message()
        elif input_id == "file-input":
            await self._handle_upload()

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        """Download a file when it is selected in the files list."""
        if event.list_view.id != "uploaded-files" or not self.client:
            return
        file_name = event.item.name
        if file_name:
            await self.client.download_file(file_name)

    async def _handle_send_message(self) -> None:
        """Handle sending a message."""
        if not self.client:
            return

        message_input = self.query_one("#message-input", Input)
        if not message_input.value.strip():
            return

        if await self.client.send_message(message_input.value):
            message_input.value = ""
        else:
            self._add_system_message(
                "Not connected; message was not sent", "error"
            )

    async def _handle_upload(self) -> None:
        """Upload the file named in the upload input."""
        if not self.client:
            return

        file_input = self.query_one("#file-input", Input)
        path = file_input.value.strip()
        if not path:
            return

        if await self.client.upload_file(Path(path).expanduser()):
            file_input.value = ""

    def _on_chat_message(self, message: RenderedMessage) -> None:
        """Callback when a message is ready to display."""
        self.call_later(lambda m=message: self._add_chat_message(m))

    def _on_system_message(self, text: str, level: str) -> None:
        """Callback for system notices."""
        self.call_later(
            lambda t=text, lvl=level: self._add_system_message(t, lvl)
        )

    def _on_user_list(self, users: List[str]) -> None:
        """Callback when a new roster snapshot arrives."""
        self.call_later(lambda u=users: self._update_user_list(u))

    def _on_files_replaced(self, files: List[str]) -> None:
        """Callback when the full uploaded-files listing is fetched."""
        self.uploaded_files = list(files)
        self.call_later(self._render_files)

    def _on_file_added(self, file_name: str) -> None:
        """Callback when a file_upload event arrives."""
        self.uploaded_files.append(file_name)
        self.call_later(self._render_files)

    def _on_connection_state(self, state: ConnectionState) -> None:
        """Callback for connection state changes."""
        color = {
            ConnectionState.CONNECTED: "green",
            ConnectionState.CONNECTING: "yellow",
            ConnectionState.DISCONNECTED: "red",
        }[state]
        try:
            status = self.query_one("#connection-status", Static)
            status.update(f"[{color}]{state.value.capitalize()}[/]")
        except NoMatches:
            pass

    def _show_notification(self, title: str, body: str) -> None:
        """Notification sink: toast plus terminal bell."""
        self.notify(escape(body), title=escape(title))
        self.bell()

    def _add_chat_message(self, message: RenderedMessage) -> None:
        """Add a chat message to the transcript."""
        try:
            chat_box = self.query_one("#chat-box", ScrollableContainer)
            chat_box.mount(MessageDisplay(message))
            chat_box.scroll_end()
        except NoMatches:
            pass

    def _add_system_message(
        self, message: str, message_type: str = "info"
    ) -> None:
        """Add a system message to the transcript."""
        try:
            chat_box = self.query_one("#chat-box", ScrollableContainer)
            chat_box.mount(SystemMessage(message, message_type))
            chat_box.scroll_end()
        except NoMatches:
            pass

    def _update_user_list(self, users: List[str]) -> None:
        """Replace the roster, keeping the server's order."""
        try:
            user_list = self.query_one("#user-list", ListView)
            user_list.clear()
            for user in users:
                label = Text(user, style=string_to_hex(user))
                if self.client and user == self.client.username:
                    label.append(" (you)", style="dim")
                user_list.append(ListItem(Label(label)))
        except NoMatches:
            pass

    async def _render_files(self) -> None:
        """Rebuild the files list from uploaded_files."""
        try:
            file_list = self.query_one("#uploaded-files", ListView)
        except NoMatches:
            return
        await file_list.clear()
        await file_list.extend(
            [self._file_item(file_name) for file_name in self.uploaded_files]
        )

    @staticmethod
    def _file_item(file_name: str) -> ListItem:
        return ListItem(Label(Text(file_name)), name=file_name)

    def action_focus_input(self) -> None:
        """Move focus to the message input."""
        try:
            self.query_one("#message-input", Input).focus()
        except NoMatches:
            pass

    async def action_refresh_files(self) -> None:
        """Refetch the uploaded-files listing."""
        if self.client:
            await self.client.refresh_files()
