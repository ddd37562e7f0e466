# backend/shopledger/services/products_service.py
"""
Products Service - product store and stock adjustments

STOCK INVARIANT:
Every stock decrement that must not go below zero is a single conditional
UPDATE (quantity = quantity + delta WHERE quantity + delta >= 0). The check
and the write happen in one statement, so two tills adjusting the same
product cannot both pass the check and oversell.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Any

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..errors import NotFoundError, InsufficientStockError, ValidationError
from ..models import Product
from ..signals import product_changed
from ..validation import (
    coerce_int,
    coerce_int_or_default,
    require_text,
    enforce_price_cents,
    enforce_non_negative,
)
from .concurrency import atomic

_DIGIT_PREFIX = re.compile(r"^[0-9]")


def _notify(product_id: int, action: str) -> None:
    product_changed.send(current_app._get_current_object(), product_id=product_id, action=action)


def _base_letters(name: str) -> str:
    """Case- and accent-insensitive form of a name: "Crème" sorts as "creme"."""
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def product_sort_key(product: Product) -> tuple:
    """
    Names starting with a letter (or anything but a digit) come first,
    alphabetically ignoring case and accents; names starting with a digit follow.
    """
    name = product.name or ""
    return (bool(_DIGIT_PREFIX.match(name)), _base_letters(name), name.casefold(), product.id or 0)


def list_products(search: str | None = None) -> list[Product]:
    query = db.session.query(Product)
    if search and search.strip():
        query = query.filter(Product.name.icontains(search.strip(), autoescape=True))
    return sorted(query.all(), key=product_sort_key)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def create_product(
    *,
    name: Any,
    quantity: Any,
    price_cents: Any,
    purchase_price_cents: Any = None,
) -> Product:
    """
    Create a product from raw (form/JSON) input.

    name, quantity and price_cents are required; purchase_price_cents falls
    back to 0 ("unknown cost") when missing or unparseable.
    """
    clean_name = require_text(name, "name")
    clean_quantity = enforce_non_negative(coerce_int(quantity, "quantity"), "quantity")
    clean_price = enforce_price_cents(coerce_int(price_cents, "price_cents"))
    clean_cost = coerce_int_or_default(purchase_price_cents, "purchase_price_cents", default=0)
    if clean_cost < 0:
        clean_cost = 0
    enforce_price_cents(clean_cost, "purchase_price_cents")

    with atomic():
        product = Product(
            name=clean_name,
            quantity=clean_quantity,
            price_cents=clean_price,
            purchase_price_cents=clean_cost,
            manual_price_cents=0,
        )
        db.session.add(product)

    _notify(product.id, "created")
    return product


def apply_stock_delta(product_id: int, delta: int, *, enforce_floor: bool = True) -> None:
    """
    Atomically add `delta` to a product's quantity inside the caller's transaction.

    With enforce_floor, a negative delta only applies if the result stays >= 0;
    otherwise InsufficientStockError. Missing products raise NotFoundError.
    Does not commit.
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(quantity=Product.quantity + delta, version_id=Product.version_id + 1)
        .execution_options(synchronize_session="fetch")
    )
    if enforce_floor and delta < 0:
        stmt = stmt.where(Product.quantity + delta >= 0)

    result = db.session.execute(stmt)
    if result.rowcount == 1:
        return

    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    raise InsufficientStockError(
        "Insufficient stock",
        details={
            "product_id": product_id,
            "requested_change": delta,
            "on_hand": product.quantity,
        },
    )


def adjust_stock(product_id: int, delta: Any) -> Product:
    """Signed stock adjustment (+/- buttons); never drives quantity below zero."""
    change = coerce_int(delta, "delta")
    if change == 0:
        raise ValidationError("delta must be non-zero")

    with atomic():
        apply_stock_delta(product_id, change, enforce_floor=True)
        product = get_product(product_id)

    _notify(product_id, "stock_adjusted")
    return product


def set_manual_price(product_id: int, manual_price_cents: Any) -> Product:
    """Set the manual price override; 0 clears it."""
    price = enforce_price_cents(coerce_int(manual_price_cents, "manual_price_cents"), "manual_price_cents")

    with atomic():
        product = get_product(product_id)
        product.manual_price_cents = price

    _notify(product_id, "manual_price")
    return product


def rename_product(product_id: int, name: Any) -> Product:
    clean_name = require_text(name, "name")

    with atomic():
        product = get_product(product_id)
        product.name = clean_name

    _notify(product_id, "renamed")
    return product


def set_quantity(product_id: int, quantity: Any) -> Product:
    """Absolute stock count (e.g. after a shelf count). Negative values are rejected."""
    new_quantity = coerce_int(quantity, "quantity")
    if new_quantity < 0:
        raise ValidationError("Quantity cannot be negative")

    with atomic():
        product = get_product(product_id)
        product.quantity = new_quantity

    _notify(product_id, "quantity_set")
    return product


def delete_product(product_id: int) -> None:
    """
    Hard delete. Bill items that reference the product keep their snapshot
    (name, price, cost) and a dangling product_id; nothing is cascaded.
    """
    with atomic():
        product = get_product(product_id)
        name = product.name
        db.session.delete(product)

    current_app.logger.info("Deleted product %s (%s)", product_id, name)
    _notify(product_id, "deleted")
