"""
Webchat Client Package

This package provides a terminal client for a real-time chat server:
the ChatClient session, the connection state machine, protocol schemas,
message rendering, the file store client and the Textual user interface.

Schemas are organized in the `schemas` subpackage by category:
    - chat: Chat messages and the history marker
    - presence: Roster snapshots, joins and leaves
    - files: File upload announcements
    - keepalive: Ping and pong
"""

from .client import ChatClient
from .colors import string_to_color, string_to_hex, string_to_hue
from .config import ClientConfig
from .connection import ConnectionManager, ConnectionState
from .files import FileStoreClient
from .identity import IdentityStore, generate_username, get_or_generate_username
from .notifications import NotificationPermission, Notifier
from .protocol import ProtocolDecodeError, decode_frame
from .render import MessageRenderer, RenderedMessage, render_markdown_safe
from .router import MessageRouter
from .schemas import (
    # Base classes
    BaseRequest,
    BaseEvent,
    # Chat schemas
    ChatMessageEvent,
    MessageHistoryEvent,
    # Presence schemas
    UserListEvent,
    UserJoinEvent,
    UserLeaveEvent,
    # File schemas
    FileUploadEvent,
    # Keepalive schemas
    PingRequest,
    PongEvent,
)

__all__ = [
    # Session and services
    "ChatClient",
    "ClientConfig",
    "ConnectionManager",
    "ConnectionState",
    "FileStoreClient",
    "IdentityStore",
    "MessageRenderer",
    "MessageRouter",
    "Notifier",
    "NotificationPermission",
    "RenderedMessage",
    "ProtocolDecodeError",
    # Functions
    "decode_frame",
    "generate_username",
    "get_or_generate_username",
    "render_markdown_safe",
    "string_to_color",
    "string_to_hex",
    "string_to_hue",
    # Base schema classes
    "BaseRequest",
    "BaseEvent",
    # Event schemas
    "ChatMessageEvent",
    "MessageHistoryEvent",
    "UserListEvent",
    "UserJoinEvent",
    "UserLeaveEvent",
    "FileUploadEvent",
    "PingRequest",
    "PongEvent",
]
