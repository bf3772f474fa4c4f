"""In-process async event bus for cross-subsystem notifications."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

_LOG = logging.getLogger(__name__)

E = TypeVar("E")

Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    """Delivers events to async subscribers registered for their exact type.

    Publishers and subscribers only share the event contract, so subsystems
    never import each other directly.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], Awaitable[None]]) -> Callable[[], None]:
        """Register *handler*; returns a callable that removes it again."""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def publish(self, event: object) -> int:
        """Await every subscriber of ``type(event)`` in subscription order.

        Returns:
            Number of handlers that ran.
        """
        handlers = list(self._handlers.get(type(event), []))
        if not handlers:
            _LOG.debug("No subscribers for %s", type(event).__name__)
        for handler in handlers:
            await handler(event)
        return len(handlers)
