"""
File Schema Definitions
"""

from dataclasses import dataclass
from typing import Any, Dict

from .base import BaseEvent, require_str


@dataclass
class FileUploadEvent(BaseEvent):
    """
    A file was uploaded to the file store.

    Attributes:
        username: Display name of the uploader
        file_name: Name of the stored file (``fileName`` on the wire)
    """

    username: str
    file_name: str

    message_type = "file_upload"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "FileUploadEvent":
        """Create from event data dictionary."""
        return cls(
            username=data.get("username") or "",
            file_name=require_str(data, "fileName"),
        )
