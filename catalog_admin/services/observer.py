from __future__ import annotations

"""Keep a rendering context in step with the durable store."""

import logging
from typing import Callable, List, Optional

from catalog_admin.schemas import (
    ContextEvent,
    CrossContextMessage,
    Product,
    ProductDataChanged,
    StorageEvent,
)
from catalog_admin.services.events import EventBus
from catalog_admin.services.store import ProductStore

logger = logging.getLogger("catalog_admin.observer")

Renderer = Callable[[List[Product]], None]


class CatalogObserver:
    """Re-read the store whenever any change notification arrives.

    Notification payloads are never trusted; they only trigger a reload.
    ``render`` runs when the reloaded collection differs from the last one,
    so echoes of our own writes and payload-less events cost a read and
    nothing else.
    """

    MESSAGE_TYPE = "productDataChanged"

    def __init__(
        self,
        store: ProductStore,
        bus: EventBus,
        render: Optional[Renderer] = None,
        name: Optional[str] = None,
    ) -> None:
        self.store = store
        self.bus = bus
        self.render = render
        self.name = name
        self._products: List[Product] = store.load()
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.bus.subscribe(self.handle_event)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle_event(self, event: ContextEvent) -> bool:
        if not self._is_relevant(event):
            return False
        source = getattr(event, "source", None)
        if source is not None and source == self.name:
            logger.debug("Echo of own change from %s", source)
        return self.refresh()

    def refresh(self) -> bool:
        products = self.store.load()
        if products == self._products:
            return False

        self._products = products
        if self.render is not None:
            try:
                self.render(list(products))
            except Exception:
                logger.exception("Renderer failed for %d products", len(products))
        return True

    def _is_relevant(self, event: ContextEvent) -> bool:
        if isinstance(event, StorageEvent):
            return event.key in self.store.keys
        if isinstance(event, ProductDataChanged):
            return True
        if isinstance(event, CrossContextMessage):
            return event.type == self.MESSAGE_TYPE
        return False
