"""Service layer exports."""

from .broadcaster import ChangeBroadcaster, DeferredScheduler, call_later
from .events import LocalEventBus, ParentFrame
from .normalizer import RecordNormalizer
from .observer import CatalogObserver
from .reconciler import CatalogReconciler
from .rendering import CatalogListingRenderer
from .storage import FileStorageArea, MemoryStorageArea
from .store import ProductStore

__all__ = [
    "CatalogListingRenderer",
    "CatalogObserver",
    "CatalogReconciler",
    "ChangeBroadcaster",
    "DeferredScheduler",
    "FileStorageArea",
    "LocalEventBus",
    "MemoryStorageArea",
    "ParentFrame",
    "ProductStore",
    "RecordNormalizer",
    "call_later",
]
