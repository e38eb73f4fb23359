"""
Chat Schema Definitions

This module defines the inbound chat message event and the history
marker the server sends before replaying recent messages.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .base import BaseEvent, require_str


@dataclass
class ChatMessageEvent(BaseEvent):
    """
    A chat message broadcast by the server.

    Attributes:
        username: Display name of the sender
        message: Raw message text (untrusted markdown)
    """

    username: str
    message: str

    message_type = "message"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "ChatMessageEvent":
        """Create from event data dictionary."""
        return cls(
            username=require_str(data, "username"),
            message=require_str(data, "message"),
        )


@dataclass
class MessageHistoryEvent(BaseEvent):
    """
    Marker sent right after the identity handshake.

    The replayed messages that follow are ordinary chat message events.

    Attributes:
        message: Human readable label, e.g. "Latest messages"
    """

    message: str = ""

    message_type = "message_history"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "MessageHistoryEvent":
        """Create from event data dictionary."""
        return cls(message=data.get("message") or "")
