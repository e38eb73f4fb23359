"""
UI Package for Chat Client

This package provides the terminal user interface for the chat client
using the Textual framework.
"""

from .app import ChatApp

__all__ = ["ChatApp"]
