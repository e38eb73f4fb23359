"""
Client Configuration

This module holds the runtime configuration of the chat client. Defaults
match the behaviour of the browser client this terminal client is
compatible with; every value can be overridden from the environment or
from the command line.

Environment variables:
    WEBCHAT_SERVER_URL: Base HTTP(S) URL of the chat server
    WEBCHAT_STORAGE_PATH: Path of the JSON file holding persisted state
    WEBCHAT_DOWNLOAD_DIR: Directory where downloaded files are written
    WEBCHAT_NOTIFICATIONS: "0"/"false"/"no" to deny notifications
    WEBCHAT_LOG_LEVEL: Logging level name (e.g. INFO, DEBUG)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

# Timing constants, in seconds
RECONNECT_DELAY = 5.0
KEEPALIVE_INTERVAL = 30.0
INITIAL_LOAD_WINDOW = 1.5

DEFAULT_SERVER_URL = "http://localhost:8080"
DEFAULT_STORAGE_PATH = Path.home() / ".webchat" / "storage.json"
DEFAULT_DOWNLOAD_DIR = Path.home() / "Downloads"
DEFAULT_LOG_FILE = "webchat_client.log"

WEBSOCKET_PATH = "/ws"

_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class ClientConfig:
    """
    Configuration for a chat client session.

    Attributes:
        server_url: Base HTTP(S) URL of the chat server
        storage_path: JSON file used as persistent key-value storage
        download_dir: Directory for downloaded files
        reconnect_delay: Fixed delay before each reconnect attempt
        keepalive_interval: Interval between keepalive pings
        initial_load_window: Startup window during which the "back online"
                             notice and notifications are suppressed
        notifications: Whether notification permission is granted
        log_level: Logging level name
        log_file: File that receives log output
    """

    server_url: str = DEFAULT_SERVER_URL
    storage_path: Path = DEFAULT_STORAGE_PATH
    download_dir: Path = DEFAULT_DOWNLOAD_DIR
    reconnect_delay: float = RECONNECT_DELAY
    keepalive_interval: float = KEEPALIVE_INTERVAL
    initial_load_window: float = INITIAL_LOAD_WINDOW
    notifications: bool = True
    log_level: str = "WARNING"
    log_file: str = DEFAULT_LOG_FILE

    def __post_init__(self):
        self.server_url = self.server_url.rstrip("/")
        self.storage_path = Path(self.storage_path).expanduser()
        self.download_dir = Path(self.download_dir).expanduser()

    @property
    def http_url(self) -> str:
        """Base URL for file store requests."""
        return self.server_url

    @property
    def ws_url(self) -> str:
        """
        WebSocket endpoint derived from the server URL.

        The scheme mirrors the HTTP scheme: ``https`` maps to ``wss`` and
        anything else to ``ws``.
        """
        parts = urlsplit(self.server_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        return urlunsplit((scheme, parts.netloc, WEBSOCKET_PATH, "", ""))

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ClientConfig with environment overrides applied
        """
        env = os.environ if environ is None else environ

        notifications = env.get("WEBCHAT_NOTIFICATIONS", "1")

        return cls(
            server_url=env.get("WEBCHAT_SERVER_URL", DEFAULT_SERVER_URL),
            storage_path=Path(
                env.get("WEBCHAT_STORAGE_PATH", str(DEFAULT_STORAGE_PATH))
            ),
            download_dir=Path(
                env.get("WEBCHAT_DOWNLOAD_DIR", str(DEFAULT_DOWNLOAD_DIR))
            ),
            notifications=notifications.strip().lower() not in _FALSE_VALUES,
            log_level=env.get("WEBCHAT_LOG_LEVEL", "WARNING").upper(),
        )
