"""CLI entry point for the kitchen module."""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import AsyncIterator

from dotenv import load_dotenv

from .ai import create_assistant
from .config import DEFAULT_CONFIG_PATH, KitchenConfig, load_config
from .db import ProductDB, ShoppingItemDB
from .errors import KitchenError
from .models import Product, ProductLocation, ProductOutcome, ProductStatus
from .products import ProductService
from .shopping import ShoppingListService
from .suggestions import SuggestionService
from .urgency import classify, days_until_expiry

logger = logging.getLogger(__name__)

_URGENCY_LABELS = {
    "use_today": "use today",
    "use_soon": "use soon",
    "ok": "ok",
    "wouldnt_trust": "expired",
}


def _parse_datetime(value: str) -> datetime:
    """Parse an ISO date or datetime given on the command line.

    A bare date means the end of that day in UTC, so a product entered as
    expiring today stays usable until midnight.
    """
    try:
        if "T" not in value and " " not in value:
            day = date.fromisoformat(value)
            return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _enum_choices(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]


def _add_product_fields(p: argparse.ArgumentParser, with_defaults: bool) -> None:
    p.add_argument(
        "--status",
        choices=_enum_choices(ProductStatus),
        default="new" if with_defaults else None,
    )
    p.add_argument("--location", choices=_enum_choices(ProductLocation))
    p.add_argument("--quantity", type=str, help="Free text, e.g. '1 L'")
    p.add_argument(
        "--expires", type=_parse_datetime, metavar="DATE", help="Expiry date"
    )
    p.add_argument(
        "--estimated", type=_parse_datetime, metavar="DATE",
        help="Estimated expiry date",
    )
    p.add_argument("--outcome", choices=_enum_choices(ProductOutcome))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foodie",
        description="Kitchen inventory, shopping list and cooking suggestions",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help="Path to the config file (TOML)",
    )
    parser.add_argument("--user", type=str, default=None, help="Owner id")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # products
    products = sub.add_parser("products", help="Manage products")
    psub = products.add_subparsers(dest="action", required=True)

    add = psub.add_parser("add", help="Add a product")
    add.add_argument("name")
    _add_product_fields(add, with_defaults=True)

    lst = psub.add_parser("list", help="List products")
    lst.add_argument("--active", action="store_true", help="Hide finished products")
    lst.add_argument("--json", action="store_true", help="Print JSON")

    show = psub.add_parser("show", help="Show one product")
    show.add_argument("id")
    show.add_argument("--json", action="store_true", help="Print JSON")

    upd = psub.add_parser("update", help="Update a product")
    upd.add_argument("id")
    upd.add_argument("--name", type=str)
    _add_product_fields(upd, with_defaults=False)

    dele = psub.add_parser("delete", help="Delete a product")
    dele.add_argument("id")

    est = psub.add_parser("estimate", help="Estimate a product's expiry date")
    est.add_argument("id")

    # shopping
    shopping = sub.add_parser("shopping", help="Manage the shopping list")
    ssub = shopping.add_subparsers(dest="action", required=True)

    sadd = ssub.add_parser("add", help="Add an item")
    sadd.add_argument("name")
    sadd.add_argument("--product", type=str, default=None, help="Linked product id")

    slist = ssub.add_parser("list", help="List items")
    slist.add_argument("--json", action="store_true", help="Print JSON")

    check = ssub.add_parser("check", help="Mark an item as bought")
    check.add_argument("id")
    check.add_argument("--undo", action="store_true", help="Mark as not bought")

    rename = ssub.add_parser("rename", help="Rename an item")
    rename.add_argument("id")
    rename.add_argument("name")

    sdel = ssub.add_parser("delete", help="Delete an item")
    sdel.add_argument("id")

    ssub.add_parser("clear", help="Remove bought items")

    # suggest
    suggest = sub.add_parser("suggest", help="Suggest recipes for expiring products")
    suggest.add_argument("--limit", type=int, default=None)
    suggest.add_argument("--json", action="store_true", help="Print JSON")

    # identify
    identify = sub.add_parser("identify", help="Identify a product")
    group = identify.add_mutually_exclusive_group(required=True)
    group.add_argument("--image", type=str, help="Photo of the product")
    group.add_argument("--barcode", type=str, help="EAN/UPC barcode")

    # scan-receipt
    scan = sub.add_parser("scan-receipt", help="Read product names from a receipt")
    scan.add_argument("image", help="Photo of the receipt")

    # estimate
    estimate = sub.add_parser("estimate", help="Estimate an expiry date by name")
    estimate.add_argument("name")
    estimate.add_argument("--status", choices=_enum_choices(ProductStatus), default="new")
    estimate.add_argument("--location", choices=_enum_choices(ProductLocation))

    return parser


def main(argv: list[str] | None = None) -> None:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = load_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.logging.level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    owner = args.user or config.user.id

    try:
        asyncio.run(_dispatch(config, owner, args))
    except KitchenError as e:
        print(f"error: {e.code}: {e}", file=sys.stderr)
        sys.exit(1)
    except (FileNotFoundError, ImportError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        logger.exception("Unexpected failure running %s", args.command)
        sys.exit(1)


@dataclass
class Kitchen:
    """Services wired to the configured database and AI backend."""

    products: ProductService
    shopping: ShoppingListService
    suggestions: SuggestionService


@asynccontextmanager
async def open_kitchen(
    config: KitchenConfig, with_assistant: bool = True
) -> AsyncIterator[Kitchen]:
    """Open the stores, and the AI backend only when ``with_assistant`` is set."""
    assistant = create_assistant(config) if with_assistant else None
    product_db = ProductDB(db_path=config.database.path)
    shopping_db = ShoppingItemDB(db_path=config.database.path)
    try:
        yield Kitchen(
            products=ProductService(
                product_db,
                shopping_db,
                estimator=assistant,
                identifier=assistant,
                scanner=assistant,
            ),
            shopping=ShoppingListService(shopping_db),
            suggestions=SuggestionService(product_db, assistant),
        )
    finally:
        product_db.close()
        shopping_db.close()


def _needs_assistant(args) -> bool:
    if args.command == "products":
        return args.action == "estimate"
    return args.command != "shopping"


async def _dispatch(config: KitchenConfig, owner: str, args) -> None:
    logger.debug("Running %s as %s", args.command, owner)
    async with open_kitchen(config, _needs_assistant(args)) as kitchen:
        match args.command:
            case "products":
                await _cmd_products(kitchen, owner, args)
            case "shopping":
                await _cmd_shopping(kitchen, owner, args)
            case "suggest":
                await _cmd_suggest(kitchen, config, owner, args)
            case "identify":
                await _cmd_identify(kitchen, args)
            case "scan-receipt":
                await _cmd_scan_receipt(kitchen, args)
            case "estimate":
                result = await kitchen.products.estimate_expiry_date(
                    args.name, args.status, args.location
                )
                _print_json(result.to_dict())


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _read_image(path: str) -> str:
    return base64.standard_b64encode(Path(path).read_bytes()).decode()


def _product_line(product: Product, now: datetime) -> str:
    level = classify(product, now)
    days = days_until_expiry(product, now)
    when = f"{days:+d}d" if days is not None else "-"
    location = product.location.value if product.location else ""
    return (
        f"  {product.id[:8]}  {product.name:<20} {product.status.value:<12} "
        f"{location:<8} {when:>5}  {_URGENCY_LABELS[level.value]}"
    )


def _product_dict(product: Product, now: datetime) -> dict:
    data = product.to_dict()
    data["urgency"] = classify(product, now).value
    data["days_until_expiry"] = days_until_expiry(product, now)
    return data


async def _cmd_products(kitchen: Kitchen, owner: str, args) -> None:
    service = kitchen.products
    now = datetime.now(timezone.utc)

    match args.action:
        case "add":
            product = await service.create(
                owner=owner,
                name=args.name,
                status=ProductStatus(args.status),
                location=ProductLocation(args.location) if args.location else None,
                quantity=args.quantity,
                expiry_date=args.expires,
                estimated_expiry_date=args.estimated,
                outcome=ProductOutcome(args.outcome) if args.outcome else None,
            )
            print(f"Added {product.name} ({product.id})")
        case "list":
            products = await service.get_all(owner)
            if args.active:
                products = [p for p in products if not p.is_finished]
            if args.json:
                _print_json([_product_dict(p, now) for p in products])
            elif not products:
                print("No products.")
            else:
                for p in products:
                    print(_product_line(p, now))
        case "show":
            product = await service.get_by_id(args.id, owner)
            if args.json:
                _print_json(_product_dict(product, now))
            else:
                print(_product_line(product, now))
        case "update":
            current = await service.get_by_id(args.id, owner)
            status = ProductStatus(args.status) if args.status else current.status
            outcome = ProductOutcome(args.outcome) if args.outcome else current.outcome
            if status != ProductStatus.FINISHED and not args.outcome:
                outcome = None
            product = await service.update(
                product_id=args.id,
                owner=owner,
                name=args.name if args.name is not None else current.name,
                status=status,
                location=(
                    ProductLocation(args.location) if args.location else current.location
                ),
                quantity=args.quantity if args.quantity is not None else current.quantity,
                expiry_date=args.expires or current.expiry_date,
                estimated_expiry_date=args.estimated or current.estimated_expiry_date,
                outcome=outcome,
            )
            print(f"Updated {product.name} ({product.status.value})")
        case "delete":
            await service.delete(args.id, owner)
            print(f"Deleted {args.id}")
        case "estimate":
            product = await service.estimate_expiry(args.id, owner)
            print(_product_line(product, now))


async def _cmd_shopping(kitchen: Kitchen, owner: str, args) -> None:
    service = kitchen.shopping

    match args.action:
        case "add":
            item = await service.create(owner, args.name, args.product)
            print(f"Added {item.name} ({item.id})")
        case "list":
            items = await service.get_all(owner)
            if args.json:
                _print_json([i.to_dict() for i in items])
            elif not items:
                print("Shopping list is empty.")
            else:
                for i in items:
                    mark = "x" if i.is_bought else " "
                    print(f"  [{mark}] {i.id[:8]}  {i.name}")
        case "check":
            item = await service.update(args.id, owner, is_bought=not args.undo)
            print(f"{item.name}: {'bought' if item.is_bought else 'not bought'}")
        case "rename":
            item = await service.update(args.id, owner, name=args.name)
            print(f"Renamed to {item.name}")
        case "delete":
            await service.delete(args.id, owner)
            print(f"Deleted {args.id}")
        case "clear":
            count = await service.clear_bought(owner)
            print(f"Removed {count} bought items")


async def _cmd_suggest(kitchen: Kitchen, config: KitchenConfig, owner: str, args) -> None:
    limit = config.suggestions.clamp(args.limit)
    suggestions = await kitchen.suggestions.generate(owner, limit)

    if args.json:
        _print_json([s.to_dict() for s in suggestions])
        return
    if not suggestions:
        print("Nothing to suggest: no usable products.")
        return

    for s in suggestions:
        print(f"{'─' * 50}")
        print(f"🍳 {s.title}  ({s.estimated_time.value})")
        if s.description:
            print(f"   {s.description}")
        for ing in s.ingredients:
            flag = " ⚠" if ing.is_urgent else ""
            qty = f" ({ing.quantity})" if ing.quantity else ""
            print(f"   - {ing.product_name}{qty}{flag}")
        for j, step in enumerate(s.steps or [], 1):
            print(f"     {j}. {step}")


async def _cmd_identify(kitchen: Kitchen, args) -> None:
    if args.image:
        result = await kitchen.products.identify_by_image(_read_image(args.image))
    else:
        result = await kitchen.products.identify_by_barcode(args.barcode)
    _print_json(result.to_dict())


async def _cmd_scan_receipt(kitchen: Kitchen, args) -> None:
    result = await kitchen.products.scan_receipt(_read_image(args.image))
    if not result.items:
        print("No products found on the receipt.")
        return
    for item in result.items:
        print(f"  {item.name}  [{item.confidence.value}]")


if __name__ == "__main__":
    main()
