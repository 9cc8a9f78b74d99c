"""In-process event bus for decoupled core → collaborator notifications.

The EventBus replaces ambient global callbacks: the rendering, audio and UI
collaborators subscribe to named channels, the simulation core publishes.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Type, TypeVar

import structlog

T = TypeVar("T")

logger = structlog.get_logger()

Handler = Callable[[Any], None]


class EventBus:
    """Synchronous publish/subscribe bus keyed by channel name.

    Handlers run inline in the publisher's call, in subscription order.
    A failing handler is logged and skipped so that a broken collaborator
    can never unwind the simulation tick.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[tuple[Handler, Optional[Type[Any]]]]] = {}
        self.published_count = 0

    def publish(self, channel: str, event: Any) -> int:
        """Deliver an event to every handler subscribed to the channel.

        Args:
            channel: Channel name (see Channels).
            event: Event object to deliver.

        Returns:
            Number of handlers that received the event without error.
        """
        self.published_count += 1
        handlers = self._handlers.get(channel, [])
        delivered = 0

        for handler, event_type in list(handlers):
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                handler(event)
                delivered += 1
            except Exception as exc:
                logger.error(
                    "event_bus_handler_error",
                    channel=channel,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        return delivered

    def subscribe(
        self,
        channel: str,
        handler: Handler,
        event_type: Optional[Type[T]] = None,
    ) -> None:
        """Register a handler for a channel.

        Args:
            channel: Channel name to listen on.
            handler: Callable receiving the event object.
            event_type: Optional filter; only events of this type are delivered.
        """
        if channel not in self._handlers:
            self._handlers[channel] = []
            logger.debug("event_bus_channel_opened", channel=channel)
        self._handlers[channel].append((handler, event_type))
        logger.debug(
            "event_bus_handler_registered",
            channel=channel,
            handler_count=len(self._handlers[channel]),
        )

    def unsubscribe(self, channel: str, handler: Handler) -> bool:
        """Remove a previously registered handler.

        Returns:
            bool: True if the handler was found and removed.
        """
        handlers = self._handlers.get(channel, [])
        for i, (registered, _) in enumerate(handlers):
            if registered == handler:
                del handlers[i]
                return True
        return False

    def handler_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, []))

    def clear(self) -> None:
        self._handlers.clear()
