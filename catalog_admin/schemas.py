from __future__ import annotations

"""Shared pydantic schemas: product records, drafts and change notifications."""

from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    CAMISAS = "camisas"
    CALCAS = "calcas"
    VESTIDOS = "vestidos"
    SAPATOS = "sapatos"
    ACESSORIOS = "acessorios"
    ESPORTES = "esportes"
    INFANTIL = "infantil"


class CamelModel(BaseModel):
    """Base for models exchanged with renderers, which read camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Variants(CamelModel):
    model_config = ConfigDict(frozen=True)

    colors: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)


class Product(CamelModel):
    """Canonical product record.

    New records come out of ``RecordNormalizer``; the store only revalidates
    records that were already persisted.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=3)
    price: str = Field(..., pattern=r"^R\$")
    numeric_price: float = Field(0.0, ge=0)
    description: str = ""
    category: Category = Category.CAMISAS
    images: List[str] = Field(default_factory=list)
    stock: int = Field(0, ge=0)
    rating: float = Field(4.5, ge=0, le=5)
    reviews: int = Field(0, ge=0)
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    reference: str = ""
    variants: Variants = Field(default_factory=Variants)
    briefing_questions: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductDraft(CamelModel):
    """Raw form state as collected from the operator.

    Fields are intentionally loose: whatever the input surface produced is
    kept as-is and sanitized by the normalizer.
    """

    name: Any = None
    price: Any = None
    description: Any = None
    category: Any = None
    images: Any = Field(default_factory=list)
    uploaded_images: Any = Field(default_factory=list)
    stock: Any = 0
    rating: Any = None
    reviews: Any = 0
    tags: Any = Field(default_factory=list)
    featured: Any = False
    reference: Any = None
    variants: Any = None
    briefing_questions: Any = Field(default_factory=list)

    @classmethod
    def from_product(cls, product: Product) -> "ProductDraft":
        """Start an edit from a stored record.

        Uploaded images were merged into ``images`` when the record was
        normalized, so the upload list starts empty.
        """

        return cls(
            name=product.name,
            price=product.price,
            description=product.description,
            category=product.category.value,
            images=list(product.images),
            uploaded_images=[],
            stock=product.stock,
            rating=product.rating,
            reviews=product.reviews,
            tags=list(product.tags),
            featured=product.featured,
            reference=product.reference,
            variants={
                "colors": list(product.variants.colors),
                "sizes": list(product.variants.sizes),
            },
            briefing_questions=list(product.briefing_questions),
        )

    def add_tag(self, tag: str) -> bool:
        tag = (tag or "").strip()
        if not isinstance(self.tags, list):
            self.tags = []
        if not tag or tag in self.tags:
            return False
        self.tags.append(tag)
        return True

    def remove_tag(self, index: int) -> None:
        if isinstance(self.tags, list) and 0 <= index < len(self.tags):
            del self.tags[index]

    def add_uploaded_images(self, references: Iterable[str]) -> None:
        if not isinstance(self.uploaded_images, list):
            self.uploaded_images = []
        self.uploaded_images.extend(references)


class StorageEvent(CamelModel):
    """Mirrors the browser ``storage`` event: a key changed in the durable store."""

    key: str
    new_value: Optional[str] = None


class ProductDataChanged(CamelModel):
    """Application-defined notification; ``products`` is informational only."""

    products: Optional[List[Product]] = None
    source: Optional[str] = None


class CrossContextMessage(CamelModel):
    """Fallback message posted to an isolated parent context."""

    type: str = "productDataChanged"
    products: Optional[List[Product]] = None
    source: Optional[str] = None
    target_origin: str = "*"


ContextEvent = Union[StorageEvent, ProductDataChanged, CrossContextMessage]


class CommitResult(CamelModel):
    """Outcome of a mutation that reached the durable store."""

    action: Literal["created", "updated", "deleted", "republished"]
    product: Optional[Product] = None
    products: List[Product] = Field(default_factory=list)

    @property
    def image_count(self) -> int:
        return len(self.product.images) if self.product else 0


class CatalogResponse(CamelModel):
    """Wrapper returned by the listing endpoint."""

    count: int
    products: List[Product]
