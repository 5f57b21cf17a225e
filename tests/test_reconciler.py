from __future__ import annotations

import pytest

from catalog_admin.exceptions import (
    DuplicateProductNameError,
    PersistenceError,
    ProductNotFoundError,
    ProductValidationError,
)
from catalog_admin.schemas import ProductDataChanged, ProductDraft, StorageEvent
from catalog_admin.services import CatalogReconciler, MemoryStorageArea, ProductStore


def _yes(_message: str) -> bool:
    return True


def _no(_message: str) -> bool:
    return False


def test_create_appends_and_persists(reconciler, store, polo_draft) -> None:
    result = reconciler.create(polo_draft)

    assert result.action == "created"
    assert reconciler.products == [result.product]
    assert store.load() == [result.product]
    assert result.product.price == "R$ 89,90"


def test_created_ids_are_unique_and_stable(reconciler, store) -> None:
    ids = [
        reconciler.create(ProductDraft(name=f"Produto {i}", price="10")).product.id
        for i in range(5)
    ]

    assert len(set(ids)) == 5
    assert [p.id for p in store.load()] == ids
    assert [p.id for p in reconciler.reload()] == ids


def test_invalid_draft_leaves_collection_unchanged(reconciler, store, scheduler, polo_draft) -> None:
    reconciler.create(polo_draft)
    before = reconciler.products
    scheduler.run_pending()

    with pytest.raises(ProductValidationError):
        reconciler.create(ProductDraft(name="ab", price="10"))
    with pytest.raises(ProductValidationError):
        reconciler.create(ProductDraft(name="Camisa", price="0"))

    assert reconciler.products == before
    assert store.load() == before
    assert scheduler.pending == []


def test_update_replaces_in_place(reconciler, clock) -> None:
    first = reconciler.create(ProductDraft(name="Camisa Polo", price="89,90")).product
    second = reconciler.create(ProductDraft(name="Calca Jeans", price="120")).product
    clock.advance(seconds=30)

    draft = ProductDraft.from_product(first)
    draft.stock = -5
    updated = reconciler.update(first.id, draft).product

    assert [p.id for p in reconciler.products] == [first.id, second.id]
    assert updated.stock == 0
    assert updated.created_at == first.created_at
    assert updated.updated_at >= first.updated_at


def test_update_unknown_id_raises(reconciler, polo_draft) -> None:
    with pytest.raises(ProductNotFoundError):
        reconciler.update("product-missing", polo_draft)


def test_duplicate_name_requires_confirmation(reconciler) -> None:
    reconciler.create(ProductDraft(name="Camisa Polo", price="89,90"))

    with pytest.raises(DuplicateProductNameError) as excinfo:
        reconciler.create(ProductDraft(name="camisa polo", price="99"))
    assert excinfo.value.existing.name == "Camisa Polo"

    with pytest.raises(DuplicateProductNameError):
        reconciler.create(ProductDraft(name="camisa polo", price="99"), confirm=_no)
    assert len(reconciler.products) == 1

    reconciler.create(ProductDraft(name="camisa polo", price="99"), confirm=_yes)
    assert [p.name for p in reconciler.products] == ["Camisa Polo", "camisa polo"]


def test_editing_keeps_own_name_without_warning(reconciler, polo_draft) -> None:
    product = reconciler.create(polo_draft).product

    result = reconciler.update(product.id, ProductDraft.from_product(product))

    assert result.product.name == product.name


def test_delete_removes_exactly_one_and_keeps_order(reconciler, store) -> None:
    ids = [
        reconciler.create(ProductDraft(name=f"Produto {i}", price="10")).product.id
        for i in range(4)
    ]

    result = reconciler.delete(ids[1], confirm=_yes)

    assert result.action == "deleted"
    assert [p.id for p in reconciler.products] == [ids[0], ids[2], ids[3]]
    assert [p.id for p in store.load()] == [ids[0], ids[2], ids[3]]


def test_declined_delete_changes_nothing(reconciler, scheduler, polo_draft) -> None:
    product = reconciler.create(polo_draft).product
    scheduler.run_pending()

    assert reconciler.delete(product.id, confirm=_no) is None
    assert reconciler.products == [product]
    assert scheduler.pending == []


def test_persist_failure_rolls_back_and_suppresses_broadcast(
    normalizer, broadcaster, bus, scheduler, polo_draft
) -> None:
    area = MemoryStorageArea(quota_bytes=1200)
    store = ProductStore(area)
    broadcaster.store_keys = store.keys
    reconciler = CatalogReconciler(store, broadcaster, normalizer)

    original = reconciler.create(polo_draft).product
    scheduler.run_pending()
    bus.events.clear()

    draft = ProductDraft.from_product(original)
    draft.description = "x" * 2000
    with pytest.raises(PersistenceError):
        reconciler.update(original.id, draft)

    assert reconciler.products == [original]
    assert store.load() == [original]
    assert scheduler.run_pending() == 0
    assert bus.events == []


def test_commit_schedules_one_broadcast(reconciler, scheduler, bus, polo_draft) -> None:
    reconciler.create(polo_draft)

    assert bus.events == []
    assert scheduler.run_pending() == 1
    kinds = [type(event) for event in bus.events]
    assert kinds == [StorageEvent, StorageEvent, ProductDataChanged]
    assert bus.events[2].source == "admin-panel"


def test_republish_rewrites_current_collection(reconciler, area, scheduler, polo_draft) -> None:
    reconciler.create(polo_draft)
    scheduler.run_pending()
    area.remove_item("products")

    result = reconciler.republish()

    assert result.action == "republished"
    assert reconciler.store.load() == reconciler.products
    assert scheduler.run_pending() == 1
