"""
Notifications

Shows a notification for incoming messages when permission has been
granted. Permission is resolved once from configuration; a denied
permission silently disables notifications.
"""

import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NotificationPermission(Enum):
    """Notification permission states."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class Notifier:
    """
    Forwards notifications to a display sink when permitted.

    Attributes:
        permission: Current permission state
        enabled: Whether the user allows notifications at all
    """

    def __init__(
        self,
        enabled: bool = True,
        sink: Optional[Callable[[str, str], None]] = None,
    ):
        """
        Initialize the notifier.

        Args:
            enabled: Answer given when permission is requested
            sink: Callable receiving (title, body)
        """
        self.enabled = enabled
        self.permission = NotificationPermission.DEFAULT
        self._sink = sink

    def set_sink(self, sink: Callable[[str, str], None]) -> None:
        """Register the callable that displays notifications."""
        self._sink = sink

    def request_permission(self) -> NotificationPermission:
        """
        Resolve the permission state if it has not been decided yet.

        Returns:
            The resulting permission state
        """
        if self.permission is NotificationPermission.DEFAULT:
            self.permission = (
                NotificationPermission.GRANTED
                if self.enabled
                else NotificationPermission.DENIED
            )
            if self.permission is NotificationPermission.GRANTED:
                logger.info("Notification permission granted.")
        return self.permission

    @property
    def granted(self) -> bool:
        return self.permission is NotificationPermission.GRANTED

    def show(self, title: str, body: str) -> bool:
        """
        Show a notification if permission is granted.

        Returns:
            True if the notification was handed to the sink
        """
        if not self.granted or self._sink is None:
            return False
        self._sink(title, body)
        return True
