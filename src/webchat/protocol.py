"""
Wire Protocol Helpers

This module turns raw WebSocket frames into event dictionaries and
builds the outbound frames the client sends.

Message Format:
    Inbound frames are flat JSON objects with a ``type`` discriminator:
    {
        "type": "message",
        "username": "Brave Curie",
        "message": "hello"
    }

    Outbound frames are either raw text (the identity handshake and chat
    messages) or a JSON keepalive ``{"type": "ping"}``.
"""

import json
from typing import Any, Dict, Union

from .schemas import PingRequest


class ProtocolDecodeError(ValueError):
    """Raised when an inbound frame is not a JSON object."""

    def __init__(self, message: str, frame: Union[str, bytes] = ""):
        super().__init__(message)
        self.frame = frame


def decode_frame(frame: Union[str, bytes]) -> Dict[str, Any]:
    """
    Decode one inbound frame.

    Args:
        frame: Raw text (or UTF-8 bytes) received from the server

    Returns:
        The decoded JSON object

    Raises:
        ProtocolDecodeError: If the frame is not valid JSON or does not
                             decode to an object
    """
    if isinstance(frame, bytes):
        try:
            frame = frame.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolDecodeError(f"Frame is not UTF-8: {e}", frame)

    try:
        data = json.loads(frame)
    except json.JSONDecodeError as e:
        raise ProtocolDecodeError(f"Frame is not valid JSON: {e}", frame)

    if not isinstance(data, dict):
        raise ProtocolDecodeError(
            f"Frame must be a JSON object, got {type(data).__name__}", frame
        )
    return data


def ping_frame() -> str:
    """Return the keepalive frame."""
    return PingRequest().to_json()
