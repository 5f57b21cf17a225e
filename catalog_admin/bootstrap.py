from __future__ import annotations

"""Wire one execution context: storage, store, transport, broadcaster, reconciler."""

import logging
from dataclasses import dataclass
from typing import Optional

from catalog_admin.config import Settings, get_settings
from catalog_admin.services import (
    CatalogReconciler,
    ChangeBroadcaster,
    FileStorageArea,
    LocalEventBus,
    MemoryStorageArea,
    ParentFrame,
    ProductStore,
    RecordNormalizer,
    call_later,
)
from catalog_admin.services.broadcaster import Scheduler
from catalog_admin.services.events import EventBus
from catalog_admin.services.storage import StorageArea

logger = logging.getLogger("catalog_admin.bootstrap")


@dataclass
class AdminContext:
    settings: Settings
    area: StorageArea
    store: ProductStore
    bus: EventBus
    parent: Optional[ParentFrame]
    broadcaster: ChangeBroadcaster
    reconciler: CatalogReconciler


def build_storage_area(settings: Settings) -> StorageArea:
    if settings.STORAGE_BACKEND == "memory":
        return MemoryStorageArea(quota_bytes=settings.STORAGE_QUOTA_BYTES)
    return FileStorageArea(settings.STORAGE_DIR, quota_bytes=settings.STORAGE_QUOTA_BYTES)


def build_parent_frame(settings: Settings) -> Optional[ParentFrame]:
    if settings.EMBEDDED_PARENT == "none":
        return None
    return ParentFrame(
        LocalEventBus(name="parent"),
        same_origin=settings.EMBEDDED_PARENT == "same-origin",
    )


def build_admin_context(
    settings: Optional[Settings] = None,
    *,
    area: Optional[StorageArea] = None,
    bus: Optional[EventBus] = None,
    parent: Optional[ParentFrame] = None,
    scheduler: Optional[Scheduler] = None,
) -> AdminContext:
    settings = settings or get_settings()
    area = area if area is not None else build_storage_area(settings)
    bus = bus if bus is not None else LocalEventBus()
    parent = parent if parent is not None else build_parent_frame(settings)

    store = ProductStore(
        area,
        key=settings.PRODUCTS_KEY,
        legacy_keys=settings.LEGACY_PRODUCT_KEYS,
        mirror_legacy=settings.MIRROR_LEGACY_KEYS,
    )
    broadcaster = ChangeBroadcaster(
        bus,
        store.keys,
        source=settings.CONTEXT_SOURCE,
        parent=parent,
        delay=settings.BROADCAST_DELAY_SECONDS,
        scheduler=scheduler or call_later,
        serializer=store.serialize,
    )
    normalizer = RecordNormalizer(
        default_category=settings.DEFAULT_CATEGORY,
        default_rating=settings.DEFAULT_RATING,
    )
    reconciler = CatalogReconciler(store, broadcaster, normalizer)
    logger.info(
        "Admin context %s ready (%s storage, %d products)",
        settings.CONTEXT_SOURCE,
        settings.STORAGE_BACKEND,
        len(reconciler.products),
    )
    return AdminContext(
        settings=settings,
        area=area,
        store=store,
        bus=bus,
        parent=parent,
        broadcaster=broadcaster,
        reconciler=reconciler,
    )
