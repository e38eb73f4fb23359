"""
Message Router

Dispatches decoded inbound events to handlers by their ``type``
discriminator. Routing is total: unknown types are ignored and events
with missing or mistyped fields are logged and dropped, so a bad payload
never propagates out of ``route``.

Usage:
    router = MessageRouter()
    router.register(ChatMessageEvent, on_chat_message)
    await router.route({"type": "message", "username": "a", "message": "hi"})
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type, Union

from .schemas import BaseEvent

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Union[None, Awaitable[None]]]


class MessageRouter:
    """
    Type-discriminated dispatcher for inbound events.

    Attributes:
        routes: Dict mapping wire type to (schema, handler)
    """

    def __init__(self):
        self.routes: Dict[str, Tuple[Type[BaseEvent], Handler]] = {}

    def register(self, schema: Type[BaseEvent], handler: Handler) -> None:
        """
        Route events of schema.message_type to handler.

        Args:
            schema: Event class used to decode the payload
            handler: Function (sync or async) receiving the decoded event
        """
        self.routes[schema.message_type] = (schema, handler)

    async def route(self, data: Dict[str, Any]) -> Optional[BaseEvent]:
        """
        Dispatch one decoded event.

        Args:
            data: Event dictionary with a ``type`` key

        Returns:
            The decoded event if it was dispatched, None otherwise
        """
        message_type = data.get("type")
        if not isinstance(message_type, str):
            logger.debug("Ignoring event without a string type: %r", message_type)
            return None

        route = self.routes.get(message_type)
        if route is None:
            logger.debug("Ignoring unhandled message type: %s", message_type)
            return None

        schema, handler = route
        try:
            event = schema.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(
                "Dropping malformed %s event: %s", message_type, e
            )
            return None

        result = handler(event)
        if inspect.isawaitable(result):
            await result
        return event
