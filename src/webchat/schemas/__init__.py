"""
Schemas Package

This package contains the protocol message schemas exchanged with the
chat server. Schemas are organized by category: chat messages, presence,
files and keepalive.

The package provides base classes (BaseRequest, BaseEvent) that share
the serialization and deserialization code.
"""

from .base import BaseRequest, BaseEvent
from .chat import ChatMessageEvent, MessageHistoryEvent
from .presence import UserListEvent, UserJoinEvent, UserLeaveEvent
from .files import FileUploadEvent
from .keepalive import PingRequest, PongEvent

# Every inbound event schema, keyed by wire type
EVENT_SCHEMAS = {
    schema.message_type: schema
    for schema in (
        ChatMessageEvent,
        MessageHistoryEvent,
        UserListEvent,
        UserJoinEvent,
        UserLeaveEvent,
        FileUploadEvent,
        PongEvent,
    )
}

__all__ = [
    # Base classes
    "BaseRequest",
    "BaseEvent",
    # Chat schemas
    "ChatMessageEvent",
    "MessageHistoryEvent",
    # Presence schemas
    "UserListEvent",
    "UserJoinEvent",
    "UserLeaveEvent",
    # File schemas
    "FileUploadEvent",
    # Keepalive schemas
    "PingRequest",
    "PongEvent",
    "EVENT_SCHEMAS",
]
