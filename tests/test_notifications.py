"""
Tests for the Notifier
"""

from unittest.mock import MagicMock

from webchat.notifications import NotificationPermission, Notifier


def test_permission_starts_undecided():
    """Test that nothing is shown before permission is requested."""
    sink = MagicMock()
    notifier = Notifier(sink=sink)

    assert notifier.permission is NotificationPermission.DEFAULT
    assert notifier.show("Alice", "hi") is False
    sink.assert_not_called()


def test_granted_permission_shows():
    """Test that a granted notifier forwards to its sink."""
    sink = MagicMock()
    notifier = Notifier(enabled=True, sink=sink)

    assert notifier.request_permission() is NotificationPermission.GRANTED
    assert notifier.show("Alice", "hi") is True
    sink.assert_called_once_with("Alice", "hi")


def test_denied_permission_is_silent():
    """Test that a denied notifier never shows anything."""
    sink = MagicMock()
    notifier = Notifier(enabled=False, sink=sink)

    assert notifier.request_permission() is NotificationPermission.DENIED
    assert notifier.show("Alice", "hi") is False
    sink.assert_not_called()


def test_permission_is_decided_once():
    """Test that later requests keep the first answer."""
    notifier = Notifier(enabled=True)
    notifier.request_permission()
    notifier.enabled = False

    assert notifier.request_permission() is NotificationPermission.GRANTED


def test_missing_sink_is_a_no_op():
    """Test that a granted notifier without a sink does nothing."""
    notifier = Notifier(enabled=True)
    notifier.request_permission()
    assert notifier.show("Alice", "hi") is False

    sink = MagicMock()
    notifier.set_sink(sink)
    assert notifier.show("Alice", "hi") is True
