"""
Presence Schema Definitions

This module defines the roster snapshot and the join/leave events.
The roster is always delivered as a full snapshot and replaces the
previous one.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .base import BaseEvent, require_str


@dataclass
class UserListEvent(BaseEvent):
    """
    Full snapshot of connected users.

    Attributes:
        users: Usernames in the order the server sent them
    """

    users: List[str] = field(default_factory=list)

    message_type = "user_list"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "UserListEvent":
        """Create from event data dictionary."""
        users = data.get("users") or []
        if not isinstance(users, list):
            raise TypeError("users must be a list")
        return cls(users=[str(user) for user in users])


@dataclass
class UserJoinEvent(BaseEvent):
    """
    A user connected to the chat.

    Attributes:
        username: Display name of the user who joined
    """

    username: str

    message_type = "user_join"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "UserJoinEvent":
        """Create from event data dictionary."""
        return cls(username=require_str(data, "username"))


@dataclass
class UserLeaveEvent(BaseEvent):
    """
    A user disconnected from the chat.

    Attributes:
        username: Display name of the user who left
    """

    username: str

    message_type = "user_leave"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "UserLeaveEvent":
        """Create from event data dictionary."""
        return cls(username=require_str(data, "username"))
