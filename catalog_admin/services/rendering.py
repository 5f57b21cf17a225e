from __future__ import annotations

"""Read-only markdown view of the reconciled catalog."""

from typing import Iterable, List

from catalog_admin.schemas import Product


class CatalogListingRenderer:
    """Summarizes the catalog into a markdown listing for operators."""

    def __init__(self, max_description_chars: int = 160) -> None:
        self.max_description_chars = max_description_chars

    def render(self, products: Iterable[Product], title: str | None = None) -> str:
        listed: List[Product] = list(products)
        heading = title or "Catalog"
        if not listed:
            return f"## {heading.strip()}\n\n_No products in the catalog._"

        lines: List[str] = [f"## {heading.strip()} ({len(listed)} products)", ""]

        for idx, product in enumerate(listed, start=1):
            star = " ★" if product.featured else ""
            lines.append(
                f"{idx}. {product.name}{star} · {product.price} · {product.category.value}"
                f" · stock {product.stock}"
            )
            lines.append(f"   - id: {product.id} · ref: {product.reference}")
            if product.description:
                lines.append(f"   - {self._trim(product.description)}")
            if product.tags:
                lines.append(f"   - tags: {', '.join(product.tags)}")
            lines.append(f"   - images: {len(product.images)}")
            lines.append("")

        return "\n".join(line.rstrip() for line in lines).strip()

    def _trim(self, text: str) -> str:
        text = text.strip()
        if len(text) <= self.max_description_chars:
            return text
        return text[: self.max_description_chars - 3].rstrip() + "..."
