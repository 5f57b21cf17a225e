from __future__ import annotations

"""Read and write the product collection in a durable storage area."""

import json
import logging
from typing import List, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from catalog_admin.schemas import Product
from catalog_admin.services.storage import StorageArea

logger = logging.getLogger("catalog_admin.store")

_COLLECTION = TypeAdapter(List[Product])


class ProductStore:
    """Persist the whole collection as one JSON document.

    Writes go to the canonical key. Legacy keys are read only when the
    canonical key is absent, and are written too only when ``mirror_legacy``
    is enabled for renderers that still read them directly.
    """

    def __init__(
        self,
        area: StorageArea,
        key: str = "products",
        legacy_keys: Sequence[str] = ("siteProducts",),
        mirror_legacy: bool = False,
    ) -> None:
        self.area = area
        self.key = key
        self.legacy_keys: Tuple[str, ...] = tuple(k for k in legacy_keys if k != key)
        self.mirror_legacy = mirror_legacy

    @property
    def keys(self) -> Tuple[str, ...]:
        return (self.key, *self.legacy_keys)

    def serialize(self, products: Sequence[Product]) -> str:
        return _COLLECTION.dump_json(list(products), by_alias=True).decode("utf-8")

    def persist(self, products: Sequence[Product]) -> bool:
        targets = self.keys if self.mirror_legacy else (self.key,)
        try:
            document = self.serialize(products)
            previous = {key: self.area.get_item(key) for key in targets}
        except Exception:
            logger.exception("Failed to prepare %d products for storage", len(products))
            return False

        written: List[str] = []
        try:
            for key in targets:
                self.area.set_item(key, document)
                written.append(key)
        except Exception:
            logger.exception("Failed to persist %d products under %s", len(products), key)
            self._restore(previous, written)
            return False

        logger.info("Persisted %d products under %s", len(products), ", ".join(targets))
        return True

    def _restore(self, previous: dict, written: List[str]) -> None:
        # A mirrored write failed half-way: put back what was already replaced.
        for key in written:
            try:
                if previous[key] is None:
                    self.area.remove_item(key)
                else:
                    self.area.set_item(key, previous[key])
            except Exception:
                logger.exception("Could not restore %s after a failed write", key)

    def load(self) -> List[Product]:
        try:
            raw_text, source_key = self._read_document()
        except Exception:
            logger.exception("Failed to read products from storage")
            return []

        if raw_text is None:
            return []

        try:
            parsed = json.loads(raw_text)
        except json.JSONDecodeError:
            logger.error("Stored document under %s is not valid JSON; using an empty catalog", source_key)
            return []

        if not isinstance(parsed, list):
            logger.error("Stored document under %s is not a list; using an empty catalog", source_key)
            return []

        products: List[Product] = []
        seen_ids: set[str] = set()
        for index, item in enumerate(parsed):
            try:
                product = Product.model_validate(item)
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid product #%d under %s: %s",
                    index,
                    source_key,
                    exc.errors(include_url=False),
                )
                continue
            # Ids are unique in the collection; the first occurrence wins.
            if product.id in seen_ids:
                logger.warning(
                    "Skipping product #%d under %s: duplicate id %s", index, source_key, product.id
                )
                continue
            seen_ids.add(product.id)
            products.append(product)
        return products

    def _read_document(self) -> Tuple[str | None, str]:
        raw_text = self.area.get_item(self.key)
        if raw_text is not None:
            return raw_text, self.key

        for legacy_key in self.legacy_keys:
            raw_text = self.area.get_item(legacy_key)
            if raw_text is not None:
                logger.info("Canonical key %s is empty; reading legacy key %s", self.key, legacy_key)
                return raw_text, legacy_key
        return None, self.key
