from __future__ import annotations

"""Fan a committed collection out to every channel an observer may listen on."""

import asyncio
import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from catalog_admin.exceptions import CrossContextBlockedError
from catalog_admin.schemas import (
    CrossContextMessage,
    Product,
    ProductDataChanged,
    StorageEvent,
)
from catalog_admin.services.events import EventBus, ParentFrame

logger = logging.getLogger("catalog_admin.broadcaster")

Callback = Callable[[], None]
Scheduler = Callable[[float, Callback], Any]


def call_later(delay: float, callback: Callback) -> Optional[asyncio.TimerHandle]:
    """Run ``callback`` after ``delay`` on the running event loop.

    Without a running loop there is no queue to yield to, so the callback
    runs inline.
    """

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return None
    return loop.call_later(delay, callback)


class DeferredScheduler:
    """Explicit event queue: callbacks wait until ``run_pending`` is called."""

    def __init__(self) -> None:
        self.pending: List[Tuple[float, Callback]] = []

    def __call__(self, delay: float, callback: Callback) -> None:
        self.pending.append((delay, callback))

    def run_pending(self) -> int:
        ran = 0
        while self.pending:
            _, callback = self.pending.pop(0)
            callback()
            ran += 1
        return ran


class ChangeBroadcaster:
    """Notify observers after a successful persist.

    Every channel is attempted independently; a failing channel is logged and
    the others still fire. Nothing here can undo the write that preceded it.
    """

    MESSAGE_TYPE = "productDataChanged"

    def __init__(
        self,
        bus: EventBus,
        store_keys: Sequence[str],
        source: str = "admin-panel",
        parent: Optional[ParentFrame] = None,
        delay: float = 0.05,
        scheduler: Scheduler = call_later,
        serializer: Optional[Callable[[Sequence[Product]], str]] = None,
    ) -> None:
        self.bus = bus
        self.store_keys = tuple(store_keys)
        self.source = source
        self.parent = parent
        self.delay = delay
        self.scheduler = scheduler
        self.serializer = serializer

    def schedule(self, products: Sequence[Product]) -> None:
        snapshot = list(products)
        self.scheduler(self.delay, lambda: self.broadcast(snapshot))

    def broadcast(self, products: Sequence[Product], serialized: Optional[str] = None) -> int:
        snapshot = list(products)
        if serialized is None and self.serializer is not None:
            try:
                serialized = self.serializer(snapshot)
            except Exception:
                logger.warning("Could not serialize collection for storage events", exc_info=True)

        delivered = 0
        for key in self.store_keys:
            delivered += self._emit(
                f"storage event for {key}",
                lambda key=key: self.bus.publish(StorageEvent(key=key, new_value=serialized)),
            )

        delivered += self._emit(
            "product data event",
            lambda: self.bus.publish(ProductDataChanged(products=snapshot, source=self.source)),
        )

        if self.parent is not None:
            delivered += self._emit("parent notification", lambda: self._notify_parent(snapshot))

        logger.info("Broadcast %d products through %d channels", len(snapshot), delivered)
        return delivered

    def _notify_parent(self, products: List[Product]) -> None:
        try:
            self.parent.dispatch(ProductDataChanged(products=products, source=self.source))
        except CrossContextBlockedError:
            logger.info("Parent context is isolated, falling back to post_message")
            self.parent.post_message(
                CrossContextMessage(type=self.MESSAGE_TYPE, products=products, source=self.source)
            )

    def _emit(self, label: str, send: Callback) -> int:
        try:
            send()
        except Exception:
            logger.warning("Failed to dispatch %s", label, exc_info=True)
            return 0
        return 1
