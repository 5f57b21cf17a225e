from __future__ import annotations

"""Authoritative in-memory product collection for one execution context."""

import logging
from typing import Callable, List, Optional

from catalog_admin.exceptions import (
    DuplicateProductNameError,
    PersistenceError,
    ProductNotFoundError,
)
from catalog_admin.schemas import CommitResult, Product, ProductDraft
from catalog_admin.services.broadcaster import ChangeBroadcaster
from catalog_admin.services.normalizer import RecordNormalizer
from catalog_admin.services.store import ProductStore

logger = logging.getLogger("catalog_admin.reconciler")

Confirm = Callable[[str], bool]


class CatalogReconciler:
    """Applies create/update/delete and commits each one as a unit.

    A commit swaps in the new collection, persists it, and only then
    schedules the broadcast. If the persist fails the previous collection is
    put back and nothing is broadcast.
    """

    def __init__(
        self,
        store: ProductStore,
        broadcaster: ChangeBroadcaster,
        normalizer: Optional[RecordNormalizer] = None,
    ) -> None:
        self.store = store
        self.broadcaster = broadcaster
        self.normalizer = normalizer or RecordNormalizer()
        self._products: List[Product] = store.load()
        logger.info("Loaded %d products", len(self._products))

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id: str) -> Product:
        for product in self._products:
            if product.id == product_id:
                return product
        raise ProductNotFoundError(product_id)

    def reload(self) -> List[Product]:
        self._products = self.store.load()
        return self.products

    def create(self, draft: ProductDraft, confirm: Optional[Confirm] = None) -> CommitResult:
        product = self.normalizer.normalize(
            draft, reserved_ids={p.id for p in self._products}
        )
        self._check_name(product, confirm)
        return self._commit([*self._products, product], "created", product)

    def update(
        self, product_id: str, draft: ProductDraft, confirm: Optional[Confirm] = None
    ) -> CommitResult:
        existing = self.get(product_id)
        product = self.normalizer.normalize(draft, existing=existing)
        self._check_name(product, confirm)
        updated = [product if p.id == product_id else p for p in self._products]
        return self._commit(updated, "updated", product)

    def delete(self, product_id: str, confirm: Confirm) -> Optional[CommitResult]:
        target = self.get(product_id)
        if not confirm(f'Delete product "{target.name}"?'):
            logger.info("Deletion of %s declined", product_id)
            return None
        remaining = [p for p in self._products if p.id != product_id]
        return self._commit(remaining, "deleted", target)

    def republish(self) -> CommitResult:
        """Write the current collection again and re-announce it."""

        return self._commit(list(self._products), "republished", None)

    def _check_name(self, product: Product, confirm: Optional[Confirm]) -> None:
        conflict = self.normalizer.find_name_conflict(product, self._products)
        if conflict is None:
            return
        message = f'A product named "{product.name}" already exists. Continue anyway?'
        if confirm is None or not confirm(message):
            raise DuplicateProductNameError(product.name, conflict)
        logger.warning("Keeping duplicate product name %r (existing %s)", product.name, conflict.id)

    def _commit(
        self, products: List[Product], action: str, product: Optional[Product]
    ) -> CommitResult:
        snapshot = self._products
        self._products = products
        if not self.store.persist(products):
            self._products = snapshot
            raise PersistenceError(f"Could not save the catalog; the product was not {action}.")

        self.broadcaster.schedule(products)
        logger.info(
            "Product %s %s (%d in catalog)",
            product.id if product else "catalog",
            action,
            len(products),
        )
        return CommitResult(action=action, product=product, products=products)
