#!/usr/bin/env python3
"""
Chat Client Application

Terminal client for a real-time chat server. Provides a terminal-based
user interface using the Textual framework.

Configuration comes from the environment (see webchat.config) and can
be overridden on the command line.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ClientConfig
from .identity import IdentityStore, USERNAME_KEY

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="webchat", description="Terminal client for a real-time chat."
    )
    parser.add_argument(
        "--server", help="Base URL of the chat server (http:// or https://)"
    )
    parser.add_argument(
        "--storage", type=Path, help="JSON file holding persisted state"
    )
    parser.add_argument(
        "--download-dir", type=Path, help="Directory for downloaded files"
    )
    parser.add_argument(
        "--no-notifications",
        action="store_true",
        help="Deny notification permission",
    )
    parser.add_argument("--log-level", help="Logging level (e.g. INFO)")
    parser.add_argument("--log-file", help="File that receives log output")
    parser.add_argument(
        "--reset-identity",
        action="store_true",
        help="Forget the persisted username before starting",
    )
    return parser


def load_config(argv: Optional[List[str]] = None) -> ClientConfig:
    """
    Build the configuration from the environment and command line.

    Command line options take precedence over environment variables.
    """
    args = build_parser().parse_args(argv)
    config = ClientConfig.from_env()

    if args.server:
        config.server_url = args.server.rstrip("/")
    if args.storage:
        config.storage_path = args.storage.expanduser()
    if args.download_dir:
        config.download_dir = args.download_dir.expanduser()
    if args.no_notifications:
        config.notifications = False
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.log_file:
        config.log_file = args.log_file

    if args.reset_identity:
        IdentityStore(config.storage_path).remove(USERNAME_KEY)

    return config


def configure_logging(config: ClientConfig) -> None:
    """Log to a file so output does not interfere with the UI."""
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(config.log_file, mode="a")],
    )


def main(argv: Optional[List[str]] = None):
    """Main entry point for the chat client."""
    config = load_config(argv)
    configure_logging(config)
    logger.info("Starting chat client for %s", config.server_url)

    try:
        from .ui import ChatApp

        app = ChatApp(config)
        app.run()
    except ImportError as e:
        print(f"Error: Could not import UI components: {e}")
        print("Make sure textual is installed: pip install textual")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(0)


if __name__ == "__main__":
    main()
