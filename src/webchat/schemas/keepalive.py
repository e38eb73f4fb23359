"""
Keepalive Schema Definitions

The client sends a ping on a fixed interval while connected; the server
answers with a pong that needs no handling beyond acknowledgement.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .base import BaseEvent, BaseRequest


@dataclass
class PingRequest(BaseRequest):
    """Keepalive ping, serialized as ``{"type": "ping"}``."""

    @property
    def _message_type(self) -> str:
        """Return the message type for ping requests."""
        return "ping"


@dataclass
class PongEvent(BaseEvent):
    """Keepalive acknowledgement from the server."""

    message_type = "pong"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "PongEvent":
        return cls()
