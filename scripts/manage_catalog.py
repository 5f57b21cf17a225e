from __future__ import annotations

"""CLI entry point for editing the catalog from a terminal context."""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List

from catalog_admin.bootstrap import AdminContext, build_admin_context
from catalog_admin.config import get_settings
from catalog_admin.exceptions import CatalogError
from catalog_admin.logging_config import setup_logging
from catalog_admin.schemas import ProductDraft
from catalog_admin.services import CatalogListingRenderer, CatalogObserver


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the product catalog.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Print the catalog as markdown.")

    add = sub.add_parser("add", help="Create a product.")
    add.add_argument("--name", required=True)
    add.add_argument("--price", required=True, help='Price such as "89,90" or "R$ 89,90".')
    add.add_argument("--category", default=None)
    add.add_argument("--description", default="")
    add.add_argument("--stock", type=int, default=0)
    add.add_argument("--reference", default=None)
    add.add_argument("--image", action="append", default=[], help="Image URL (repeatable).")
    add.add_argument("--tag", action="append", default=[], help="Tag (repeatable).")
    add.add_argument("--featured", action="store_true")
    add.add_argument("--yes", action="store_true", help="Accept duplicate-name warnings.")

    delete = sub.add_parser("delete", help="Delete a product by id.")
    delete.add_argument("product_id")
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt.")

    sub.add_parser("republish", help="Write the catalog again and notify observers.")

    imp = sub.add_parser("import", help="Create products from a JSON array of drafts.")
    imp.add_argument("path", type=Path)
    imp.add_argument("--yes", action="store_true", help="Accept duplicate-name warnings.")

    sub.add_parser(
        "sync-test", help="Create a marked test product and check that observers see it."
    )

    watch = sub.add_parser("watch", help="Re-render whenever the stored catalog changes.")
    watch.add_argument("--interval", type=float, default=1.0, help="Seconds between store reads.")

    return parser.parse_args(argv)


def _prompt(message: str) -> bool:
    answer = input(f"{message} [y/N] ")
    return answer.strip().lower() in {"y", "yes", "s", "sim"}


def _confirm(assume_yes: bool):
    return (lambda _message: True) if assume_yes else _prompt


def _load_drafts(path: Path) -> List[ProductDraft]:
    if not path.exists():
        raise FileNotFoundError(path)
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} does not contain valid JSON") from exc
    if not isinstance(parsed, list):
        raise ValueError("JSON data must be a list of product drafts")
    return [ProductDraft.model_validate(item) for item in parsed]


def run_add(admin: AdminContext, args: argparse.Namespace) -> int:
    draft = ProductDraft(
        name=args.name,
        price=args.price,
        category=args.category,
        description=args.description,
        stock=args.stock,
        reference=args.reference,
        images=args.image,
        featured=args.featured,
    )
    for tag in args.tag:
        draft.add_tag(tag)
    result = admin.reconciler.create(draft, confirm=_confirm(args.yes))
    print(  # noqa: T201
        f'Created "{result.product.name}" ({result.product.id}) with {result.image_count} image(s).'
    )
    return 0


def run_delete(admin: AdminContext, args: argparse.Namespace) -> int:
    result = admin.reconciler.delete(args.product_id, confirm=_confirm(args.yes))
    if result is None:
        print("Nothing deleted.")  # noqa: T201
        return 1
    print(f"Deleted {args.product_id}; {len(result.products)} products left.")  # noqa: T201
    return 0


def run_import(admin: AdminContext, args: argparse.Namespace) -> int:
    failures = 0
    for index, draft in enumerate(_load_drafts(args.path)):
        try:
            result = admin.reconciler.create(draft, confirm=_confirm(args.yes))
        except CatalogError as exc:
            failures += 1
            print(f"#{index}: skipped ({exc})", file=sys.stderr)  # noqa: T201
            continue
        print(f"#{index}: created {result.product.id}")  # noqa: T201
    return 1 if failures else 0


def run_sync_test(admin: AdminContext) -> int:
    seen: List[str] = []
    observer = CatalogObserver(
        admin.store,
        admin.bus,
        render=lambda products: seen.extend(product.id for product in products),
        name="cli-sync-test",
    )
    observer.start()
    stamp = int(time.time() * 1000)
    draft = ProductDraft(
        name=f"Produto Teste {stamp}",
        price="R$ 99,90",
        description="Created by the sync-test command.",
        stock=10,
        reference=f"TEST-{stamp}",
        featured=True,
    )
    draft.add_tag("sync-test")
    try:
        result = admin.reconciler.create(draft, confirm=lambda _message: True)
    finally:
        observer.stop()

    if result.product.id not in seen:
        print(f"Saved {result.product.id}, but no change notification reached the observer.")  # noqa: T201
        return 1
    print(f"Saved {result.product.id} and the observer re-rendered it.")  # noqa: T201
    return 0


def run_watch(admin: AdminContext, args: argparse.Namespace, renderer: CatalogListingRenderer) -> int:
    observer = CatalogObserver(
        admin.store,
        admin.bus,
        render=lambda products: print(renderer.render(products)),  # noqa: T201
        name="cli-watch",
    )
    observer.start()
    print(renderer.render(observer.products))  # noqa: T201
    try:
        while True:
            time.sleep(args.interval)
            observer.refresh()
    except KeyboardInterrupt:
        return 0
    finally:
        observer.stop()


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings)
    admin = build_admin_context(settings)
    renderer = CatalogListingRenderer()

    try:
        if args.command == "list":
            print(renderer.render(admin.reconciler.products))  # noqa: T201
            return 0
        if args.command == "add":
            return run_add(admin, args)
        if args.command == "delete":
            return run_delete(admin, args)
        if args.command == "republish":
            result = admin.reconciler.republish()
            print(f"Republished {len(result.products)} products.")  # noqa: T201
            return 0
        if args.command == "import":
            return run_import(admin, args)
        if args.command == "sync-test":
            return run_sync_test(admin)
        if args.command == "watch":
            return run_watch(admin, args, renderer)
    except (CatalogError, FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)  # noqa: T201
        return 1
    return 2


if __name__ == "__main__":
    sys.exit(main())
