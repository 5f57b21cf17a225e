from __future__ import annotations

"""Turn raw operator drafts into canonical product records."""

import logging
import math
import random
import re
import string
from datetime import datetime, timezone
from typing import Any, Callable, Collection, Iterable, List, Optional

from catalog_admin.exceptions import ProductValidationError
from catalog_admin.schemas import Category, Product, ProductDraft, Variants

logger = logging.getLogger("catalog_admin.normalizer")

_ID_ALPHABET = string.digits + string.ascii_lowercase


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class RecordNormalizer:
    """Validates drafts and builds the canonical ``Product`` for them."""

    MIN_NAME_LENGTH = 3
    CURRENCY_PREFIX = "R$"
    NON_PRICE_CHARS_RE = re.compile(r"[^\d,]")
    LEADING_DECIMAL_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
    LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")
    SIGNED_DECIMAL_RE = re.compile(r"\s*([+-]?(?:\d+(?:\.\d+)?|\.\d+))")

    def __init__(
        self,
        default_category: Category | str = Category.CAMISAS,
        default_rating: float = 4.5,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.default_category = Category(default_category)
        self.default_rating = default_rating
        self.clock = clock
        self.rng = rng or random.Random()

    def normalize(
        self,
        draft: ProductDraft,
        existing: Optional[Product] = None,
        reserved_ids: Collection[str] = (),
    ) -> Product:
        name = self._clean_name(draft.name)
        raw_price = self._clean_raw_price(draft.price)
        numeric_price = self.parse_numeric_price(raw_price)
        if numeric_price <= 0:
            raise ProductValidationError("Price must be greater than zero.")

        now = self.clock()
        if existing is not None and existing.updated_at and now < existing.updated_at:
            now = existing.updated_at

        variants = draft.variants if isinstance(draft.variants, dict) else {}

        return Product(
            id=existing.id if existing is not None else self.new_product_id(now, reserved_ids),
            name=name,
            price=self.format_price(raw_price),
            numeric_price=numeric_price,
            description=str(draft.description or "").strip(),
            category=self._resolve_category(draft.category),
            images=self._non_blank(draft.images) + self._non_blank(draft.uploaded_images),
            stock=max(0, self._to_int(draft.stock)),
            rating=min(5.0, max(0.0, self._to_rating(draft.rating))),
            reviews=max(0, self._to_int(draft.reviews)),
            tags=self._unique(self._non_blank(draft.tags)),
            featured=bool(draft.featured),
            reference=str(draft.reference or "").strip() or f"REF-{epoch_millis(now)}",
            variants=Variants(
                colors=self._non_blank(variants.get("colors")),
                sizes=self._non_blank(variants.get("sizes")),
            ),
            briefing_questions=self._non_blank(draft.briefing_questions),
            created_at=existing.created_at if existing is not None and existing.created_at else now,
            updated_at=now,
        )

    def find_name_conflict(
        self, product: Product, collection: Iterable[Product]
    ) -> Optional[Product]:
        """Return another record with the same name (case-insensitive), if any."""

        wanted = product.name.lower()
        for candidate in collection:
            if candidate.id != product.id and candidate.name.lower() == wanted:
                return candidate
        return None

    def new_product_id(self, moment: datetime, reserved_ids: Collection[str] = ()) -> str:
        while True:
            suffix = "".join(self.rng.choice(_ID_ALPHABET) for _ in range(9))
            candidate = f"product-{epoch_millis(moment)}-{suffix}"
            if candidate not in reserved_ids:
                return candidate

    def parse_numeric_price(self, raw_price: str) -> float:
        """Keep digits and commas, read the first comma as the decimal point."""

        digits = self.NON_PRICE_CHARS_RE.sub("", raw_price).replace(",", ".", 1)
        match = self.LEADING_DECIMAL_RE.match(digits)
        if not match:
            return 0.0
        return float(match.group(0))

    def format_price(self, raw_price: str) -> str:
        if raw_price.startswith(self.CURRENCY_PREFIX):
            return raw_price
        return f"{self.CURRENCY_PREFIX} {raw_price}"

    def _clean_name(self, value: Any) -> str:
        name = str(value).strip() if value is not None else ""
        if len(name) < self.MIN_NAME_LENGTH:
            raise ProductValidationError(
                f"Product name must have at least {self.MIN_NAME_LENGTH} characters."
            )
        return name

    def _clean_raw_price(self, value: Any) -> str:
        raw = str(value).strip() if value is not None else ""
        if not raw:
            raise ProductValidationError("Price is required.")
        return raw

    def _resolve_category(self, value: Any) -> Category:
        if value is None or value == "":
            return self.default_category
        try:
            return Category(value)
        except ValueError:
            logger.warning(
                "Unknown category %r, falling back to %s", value, self.default_category.value
            )
            return self.default_category

    def _to_rating(self, value: Any) -> float:
        if isinstance(value, bool) or value is None:
            return self.default_rating
        if isinstance(value, int):
            try:
                return float(value)
            except OverflowError:
                # Beyond the float range; the clamp bounds are the answer.
                return 5.0 if value > 0 else 0.0
        if isinstance(value, float):
            return value if math.isfinite(value) else self.default_rating
        match = self.SIGNED_DECIMAL_RE.match(str(value).replace(",", ".", 1))
        if not match:
            return self.default_rating
        return float(match.group(1))

    def _to_int(self, value: Any) -> int:
        if isinstance(value, bool) or value is None:
            return 0
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else 0
        match = self.LEADING_INT_RE.match(str(value))
        return int(match.group(1)) if match else 0

    @staticmethod
    def _non_blank(values: Any) -> List[str]:
        if not isinstance(values, (list, tuple)):
            return []
        return [item for item in values if isinstance(item, str) and item.strip()]

    @staticmethod
    def _unique(values: List[str]) -> List[str]:
        seen: set[str] = set()
        unique: List[str] = []
        for value in values:
            if value not in seen:
                seen.add(value)
                unique.append(value)
        return unique
