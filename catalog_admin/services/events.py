from __future__ import annotations

"""Best-effort notification transport between execution contexts.

Delivery is at-most-once and may be zero: a context that is not subscribed
when an event is published never sees it. Observers must treat the durable
store as the source of truth and use events only as a hint to re-read it.
"""

import logging
from typing import Callable, List, Protocol

from catalog_admin.exceptions import CrossContextBlockedError
from catalog_admin.schemas import ContextEvent, CrossContextMessage

logger = logging.getLogger("catalog_admin.events")

EventHandler = Callable[[ContextEvent], None]


class EventBus(Protocol):
    def publish(self, event: ContextEvent) -> None: ...

    def subscribe(self, handler: EventHandler) -> Callable[[], None]: ...


class LocalEventBus:
    """Synchronous fan-out to every handler registered in this process."""

    def __init__(self, name: str = "window") -> None:
        self.name = name
        self._handlers: List[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: ContextEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %r failed on %s from bus %s",
                    handler,
                    type(event).__name__,
                    self.name,
                )

    def __len__(self) -> int:
        return len(self._handlers)


class ParentFrame:
    """The page embedding this context, if any.

    A same-origin parent accepts events directly. An isolated parent refuses
    direct dispatch and can only be reached through ``post_message``.
    """

    def __init__(self, bus: EventBus, same_origin: bool = True) -> None:
        self.bus = bus
        self.same_origin = same_origin

    def dispatch(self, event: ContextEvent) -> None:
        if not self.same_origin:
            raise CrossContextBlockedError("Parent context is isolated; direct dispatch refused.")
        self.bus.publish(event)

    def post_message(self, message: CrossContextMessage) -> None:
        self.bus.publish(message)
