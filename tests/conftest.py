"""Shared fixtures: an in-memory profile with a deterministic clock."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from catalog_admin.schemas import ProductDraft
from catalog_admin.services import (
    CatalogReconciler,
    ChangeBroadcaster,
    DeferredScheduler,
    LocalEventBus,
    MemoryStorageArea,
    ProductStore,
    RecordNormalizer,
)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingBus(LocalEventBus):
    def __init__(self) -> None:
        super().__init__(name="recording")
        self.events = []

    def publish(self, event) -> None:
        self.events.append(event)
        super().publish(event)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 17, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def normalizer(clock) -> RecordNormalizer:
    return RecordNormalizer(clock=clock, rng=random.Random(7))


@pytest.fixture
def area() -> MemoryStorageArea:
    return MemoryStorageArea()


@pytest.fixture
def store(area) -> ProductStore:
    return ProductStore(area)


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def scheduler() -> DeferredScheduler:
    return DeferredScheduler()


@pytest.fixture
def broadcaster(bus, store, scheduler) -> ChangeBroadcaster:
    return ChangeBroadcaster(
        bus,
        store.keys,
        scheduler=scheduler,
        serializer=store.serialize,
    )


@pytest.fixture
def reconciler(store, broadcaster, normalizer) -> CatalogReconciler:
    return CatalogReconciler(store, broadcaster, normalizer)


@pytest.fixture
def polo_draft() -> ProductDraft:
    return ProductDraft(name="Camisa Polo", price="89,90")
