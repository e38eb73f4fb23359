"""
Base Schema Classes

This module provides base classes for outbound requests and inbound
events with the serialization and deserialization methods they share.

Inbound events are flat JSON objects carrying a ``type`` discriminator
next to their fields. The server serializes every envelope field on
every event, so unknown and null fields are tolerated.
"""

import json
from dataclasses import asdict, fields
from typing import Any, Dict, TypeVar

T = TypeVar("T", bound="BaseEvent")


class BaseRequest:
    """
    Base class for outbound JSON requests.

    Provides common serialization methods for converting request objects
    to dictionary and JSON formats.
    """

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with the 'type' key followed by the request fields.
        """
        payload = {"type": self._message_type}
        if hasattr(self, "__dataclass_fields__"):
            payload.update(asdict(self))
        return payload

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())

    @property
    def _message_type(self) -> str:
        """
        Message type identifier for the request.

        Should be overridden by subclasses to provide the specific type.
        """
        raise NotImplementedError("Subclasses must define _message_type")


class BaseEvent:
    """
    Base class for inbound event schemas.

    Subclasses set ``message_type`` to the wire discriminator they decode.
    """

    message_type: str = ""

    @classmethod
    def from_dict(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from a decoded event dictionary.

        Args:
            data: Dictionary decoded from the inbound frame

        Returns:
            Instance of the event class

        Raises:
            KeyError: If a required field is missing
            TypeError: If a field has the wrong type
        """
        return cls._from_data(data)

    @classmethod
    def from_json(cls: type[T], json_str: str) -> T:
        """Create instance from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def _from_data(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from the event data dictionary.

        The default implementation picks the dataclass fields out of data
        and ignores everything else.
        """
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


def require_str(data: Dict[str, Any], key: str) -> str:
    """
    Return data[key] as a string.

    Raises:
        KeyError: If the key is missing or null
        TypeError: If the value is not a string
    """
    value = data.get(key)
    if value is None:
        raise KeyError(key)
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value
