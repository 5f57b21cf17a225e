from __future__ import annotations

"""Error taxonomy for catalog edits, persistence and notification delivery."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from catalog_admin.schemas import Product


class CatalogError(Exception):
    """Base class for every error raised by the catalog admin."""


class ProductValidationError(CatalogError, ValueError):
    """The draft cannot become a product (short name, missing or non-positive price)."""


class DuplicateProductNameError(CatalogError):
    """Another product already uses this name and the operator did not confirm."""

    def __init__(self, name: str, existing: "Product") -> None:
        super().__init__(f'A product named "{name}" already exists ({existing.id}).')
        self.name = name
        self.existing = existing


class ProductNotFoundError(CatalogError, LookupError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class PersistenceError(CatalogError):
    """The durable write failed; the in-memory collection was restored."""


class StorageWriteError(CatalogError):
    """A storage area refused or failed a write."""


class StorageQuotaExceededError(StorageWriteError):
    def __init__(self, key: str, required: int, quota: int) -> None:
        super().__init__(
            f"Writing {key!r} needs {required} bytes, storage quota is {quota} bytes."
        )
        self.key = key
        self.required = required
        self.quota = quota


class CrossContextBlockedError(CatalogError):
    """Direct delivery into another context is blocked by an isolation boundary."""
