"""
Message Rendering

This module turns untrusted chat messages into rendering units. Message
bodies are markdown; they are converted to HTML with Python-Markdown and
then passed through bleach with a strict allow-list. Sanitization is not
optional: message bodies are written by other users.

Code blocks are highlighted by Pygments through the ``codehilite``
extension, so highlighting happens as part of every render.

Usage:
    renderer = MessageRenderer()
    unit = renderer.render("Brave Curie", "**hi**", False, False)
    unit.html  # '<p><strong>hi</strong></p>'
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import bleach
import markdown

from .colors import string_to_color

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "codehilite", "nl2br"]
MARKDOWN_EXTENSION_CONFIGS = {
    "codehilite": {"guess_lang": False, "css_class": "highlight"},
}

ALLOWED_TAGS = [
    "a", "b", "strong", "i", "em", "u", "s", "del", "code", "pre", "kbd",
    "br", "p", "ul", "ol", "li", "blockquote", "h1", "h2", "h3", "h4",
    "h5", "h6", "hr", "div", "span",
]
ALLOWED_ATTRIBUTES = {
    "a": ["href", "title", "rel"],
    "div": ["class"],
    "span": ["class"],
    "code": ["class"],
}
ALLOWED_PROTOCOLS = ["http", "https", "mailto"]

DOWNLOAD_PATH = "/download"


def render_markdown_safe(text: str) -> str:
    """
    Render markdown to sanitized HTML.

    Args:
        text: Untrusted markdown source

    Returns:
        HTML containing only allow-listed tags, attributes and protocols
    """
    rendered = markdown.markdown(
        text,
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
    )
    return bleach.clean(
        rendered,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )


def strip_markup(text: str) -> str:
    """
    Remove every HTML tag from text, keeping the markdown source.

    Used for terminal display, where the markdown source is rendered by
    the UI toolkit and raw HTML must not survive. Remaining ``<``, ``>``
    and ``&`` characters come back as entities, which markdown decodes.
    """
    return bleach.clean(text, tags=[], strip=True)


def file_link(file_name: str) -> str:
    """Return the download URL path for file_name."""
    return f"{DOWNLOAD_PATH}?file={quote(file_name)}"


@dataclass
class RenderedMessage:
    """
    A chat message ready for display.

    Attributes:
        username: Sender display name
        color: CSS colour derived from the sender name
        label: Username label, None when grouped with the previous message
        html: Sanitized HTML body
        text: Markdown source with all tags stripped
        css_class: "sent" or "received", plus "same-user" when grouped
        is_current_user: Whether the message was sent by this client
        same_user: Whether the previous message had the same sender
    """

    username: str
    color: str
    label: Optional[str]
    html: str
    text: str
    css_class: str
    is_current_user: bool
    same_user: bool


class MessageRenderer:
    """Builds RenderedMessage units from chat messages."""

    def render(
        self,
        username: str,
        message: str,
        is_current_user: bool,
        is_same_user: bool = False,
    ) -> RenderedMessage:
        """
        Render one chat message.

        Args:
            username: Sender display name
            message: Untrusted markdown body
            is_current_user: Whether this client sent the message
            is_same_user: Whether the previous rendered message had the
                          same sender; the label is omitted if so

        Returns:
            RenderedMessage with a sanitized body
        """
        css_class = "sent" if is_current_user else "received"
        if is_same_user:
            css_class += " same-user"

        return RenderedMessage(
            username=username,
            color=string_to_color(username),
            label=None if is_same_user else username,
            html=render_markdown_safe(message),
            text=strip_markup(message),
            css_class=css_class,
            is_current_user=is_current_user,
            same_user=is_same_user,
        )
