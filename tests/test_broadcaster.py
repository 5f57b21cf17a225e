from __future__ import annotations

import asyncio

import pytest

from catalog_admin.schemas import (
    CrossContextMessage,
    ProductDataChanged,
    ProductDraft,
    StorageEvent,
)
from catalog_admin.services import ChangeBroadcaster, LocalEventBus, ParentFrame, call_later


@pytest.fixture
def products(normalizer):
    return [normalizer.normalize(ProductDraft(name="Camisa Polo", price="89,90"))]


def _collect(bus: LocalEventBus) -> list:
    received: list = []
    bus.subscribe(received.append)
    return received


def test_broadcast_order_and_payloads(store, products) -> None:
    bus = LocalEventBus()
    received = _collect(bus)
    broadcaster = ChangeBroadcaster(bus, store.keys, serializer=store.serialize)

    delivered = broadcaster.broadcast(products)

    assert delivered == 3
    assert [type(e) for e in received] == [StorageEvent, StorageEvent, ProductDataChanged]
    assert [e.key for e in received[:2]] == ["products", "siteProducts"]
    assert received[0].new_value == store.serialize(products)
    assert received[2].products == products
    assert received[2].source == "admin-panel"


def test_same_origin_parent_receives_direct_event(store, products) -> None:
    parent_bus = LocalEventBus(name="parent")
    parent_events = _collect(parent_bus)
    broadcaster = ChangeBroadcaster(
        LocalEventBus(), store.keys, parent=ParentFrame(parent_bus, same_origin=True)
    )

    assert broadcaster.broadcast(products) == 4
    [event] = parent_events
    assert isinstance(event, ProductDataChanged)


def test_isolated_parent_gets_posted_message(store, products) -> None:
    parent_bus = LocalEventBus(name="parent")
    parent_events = _collect(parent_bus)
    broadcaster = ChangeBroadcaster(
        LocalEventBus(), store.keys, parent=ParentFrame(parent_bus, same_origin=False)
    )

    assert broadcaster.broadcast(products) == 4
    [message] = parent_events
    assert isinstance(message, CrossContextMessage)
    assert message.type == "productDataChanged"
    assert message.source == "admin-panel"
    assert message.target_origin == "*"
    assert message.model_dump(by_alias=True)["targetOrigin"] == "*"


def test_failing_channel_does_not_stop_others(store, products, caplog) -> None:
    class FlakyBus(LocalEventBus):
        def publish(self, event) -> None:
            if isinstance(event, StorageEvent) and event.key == "products":
                raise RuntimeError("dispatch failed")
            super().publish(event)

    bus = FlakyBus()
    received = _collect(bus)
    broadcaster = ChangeBroadcaster(bus, store.keys)

    with caplog.at_level("WARNING", logger="catalog_admin.broadcaster"):
        delivered = broadcaster.broadcast(products)

    assert delivered == 2
    assert [type(e) for e in received] == [StorageEvent, ProductDataChanged]
    assert "Failed to dispatch storage event for products" in caplog.text


def test_handler_errors_are_contained_by_the_bus(products) -> None:
    bus = LocalEventBus()
    received = []

    def broken(_event) -> None:
        raise ValueError("renderer exploded")

    bus.subscribe(broken)
    bus.subscribe(received.append)
    bus.publish(ProductDataChanged(products=products))

    assert len(received) == 1


def test_call_later_without_loop_runs_inline() -> None:
    calls = []

    assert call_later(0.05, lambda: calls.append("ran")) is None
    assert calls == ["ran"]


@pytest.mark.asyncio
async def test_schedule_waits_for_the_delay(store, products) -> None:
    bus = LocalEventBus()
    received = _collect(bus)
    broadcaster = ChangeBroadcaster(bus, store.keys, delay=0.05)

    broadcaster.schedule(products)
    assert received == []

    await asyncio.sleep(0.1)
    assert len(received) == 3
