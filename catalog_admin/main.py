"""catalog-admin FastAPI application."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from catalog_admin import __version__
from catalog_admin.bootstrap import AdminContext, build_admin_context
from catalog_admin.config import Settings
from catalog_admin.exceptions import (
    DuplicateProductNameError,
    PersistenceError,
    ProductNotFoundError,
    ProductValidationError,
)
from catalog_admin.logging_config import setup_logging
from catalog_admin.schemas import CatalogResponse, CommitResult, Product, ProductDraft
from catalog_admin.services import CatalogListingRenderer

logger = logging.getLogger("catalog_admin.api")

router = APIRouter()
_renderer = CatalogListingRenderer()


def get_admin(request: Request) -> AdminContext:
    return request.app.state.admin


def _run_commit(operation: Callable[[], Optional[CommitResult]]) -> Optional[CommitResult]:
    try:
        return operation()
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DuplicateProductNameError as exc:
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), "existingId": exc.existing.id},
        ) from exc
    except ProductValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=507, detail=str(exc)) from exc


def _catalog(products: list[Product]) -> CatalogResponse:
    return CatalogResponse(count=len(products), products=products)


@router.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/products", response_model=CatalogResponse)
async def list_products(admin: AdminContext = Depends(get_admin)) -> CatalogResponse:
    return _catalog(admin.reconciler.reload())


@router.get("/products/{product_id}", response_model=Product)
async def get_product(product_id: str, admin: AdminContext = Depends(get_admin)) -> Product:
    try:
        admin.reconciler.reload()
        return admin.reconciler.get(product_id)
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/products", response_model=Product, status_code=201)
async def create_product(
    draft: ProductDraft,
    confirm_duplicate: bool = Query(False, alias="confirmDuplicate"),
    admin: AdminContext = Depends(get_admin),
) -> Product:
    result = _run_commit(
        lambda: admin.reconciler.create(draft, confirm=lambda _message: confirm_duplicate)
    )
    return result.product


@router.put("/products/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    draft: ProductDraft,
    confirm_duplicate: bool = Query(False, alias="confirmDuplicate"),
    admin: AdminContext = Depends(get_admin),
) -> Product:
    result = _run_commit(
        lambda: admin.reconciler.update(
            product_id, draft, confirm=lambda _message: confirm_duplicate
        )
    )
    return result.product


@router.delete("/products/{product_id}", response_model=CatalogResponse)
async def delete_product(
    product_id: str,
    confirm: bool = Query(False),
    admin: AdminContext = Depends(get_admin),
) -> CatalogResponse:
    result = _run_commit(
        lambda: admin.reconciler.delete(product_id, confirm=lambda _message: confirm)
    )
    if result is None:
        raise HTTPException(
            status_code=428,
            detail="Deleting a product requires confirm=true.",
        )
    return _catalog(result.products)


@router.post("/products/republish", response_model=CatalogResponse)
async def republish_products(admin: AdminContext = Depends(get_admin)) -> CatalogResponse:
    result = _run_commit(admin.reconciler.republish)
    return _catalog(result.products)


@router.get("/catalog.txt", response_class=PlainTextResponse, include_in_schema=False)
async def serve_catalog_txt(admin: AdminContext = Depends(get_admin)) -> PlainTextResponse:
    markdown = _renderer.render(admin.reconciler.reload(), title="Catalog")
    return PlainTextResponse(
        markdown,
        media_type="text/markdown; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )


def create_app(
    settings: Optional[Settings] = None,
    context: Optional[AdminContext] = None,
) -> FastAPI:
    """Build the app around one admin context (one execution context)."""

    app = FastAPI(
        title="catalog-admin",
        description=(
            "Create, edit and delete catalog products; every commit is persisted to"
            " the local store and announced to the contexts rendering the catalog."
        ),
        version=__version__,
    )
    app.state.admin = context or build_admin_context(settings)
    app.include_router(router)

    @app.on_event("startup")
    def configure_logging() -> None:  # pragma: no cover - integration side effect
        setup_logging(app.state.admin.settings)
        logger.info("catalog-admin serving %d products", len(app.state.admin.reconciler.products))

    return app


app = create_app()
