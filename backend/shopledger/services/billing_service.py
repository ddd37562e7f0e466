"""
Billing Service - records sales as bills with line items

WHY: A bill is the point-in-time record of a sale. Each item keeps its own
copy of the product name, unit price and unit cost, so later renames,
repricing or deletion of the product never rewrite history.

STOCK POLICY (SALE_STOCK_POLICY):
- allow_negative: sold quantities are always decremented, even below zero
- enforce_floor: every decrement is conditional; any shortfall aborts the bill
"""
from __future__ import annotations

from typing import Any

from flask import current_app

from ..config import SALE_STOCK_POLICY_ENFORCE_FLOOR
from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Bill, BillItem, Product, BILL_STATUS_PAID
from ..signals import bill_changed
from ..validation import (
    coerce_int,
    enforce_positive,
    enforce_price_cents,
)
from .concurrency import atomic
from .products_service import apply_stock_delta


def _notify(bill_id: int, action: str) -> None:
    bill_changed.send(current_app._get_current_object(), bill_id=bill_id, action=action)


def _customer_name_or_default(customer_name: Any) -> str:
    name = str(customer_name).strip() if customer_name is not None else ""
    return name or current_app.config["DEFAULT_CUSTOMER_NAME"]


def _submitted_name(value: Any) -> str:
    return "" if value is None else str(value)


def _clean_lines(items: Any) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("Bill must contain at least one item")

    lines = []
    for index, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index} must be an object")
        lines.append({
            "product_id": coerce_int(raw.get("product_id"), f"items[{index}].product_id"),
            "name": _submitted_name(raw.get("name")),
            "quantity": enforce_positive(
                coerce_int(raw.get("quantity"), f"items[{index}].quantity"),
                f"items[{index}].quantity",
            ),
            "price_cents": enforce_price_cents(
                coerce_int(raw.get("price_cents"), f"items[{index}].price_cents"),
                f"items[{index}].price_cents",
            ),
            "total_cents": coerce_int(raw.get("total_cents"), f"items[{index}].total_cents"),
        })
    return lines


def save_bill(
    *,
    customer_name: Any = None,
    total_amount_cents: Any,
    items: Any,
) -> Bill:
    """
    Record a sale in one transaction: bill, items, and stock decrements.

    total_amount_cents and each item's total_cents are stored as submitted;
    nothing is recomputed server-side. Unit cost is captured from the
    product's current purchase price (0 if the product cannot be found).

    Raises:
        ValidationError: malformed input
        NotFoundError: a referenced product does not exist (nothing persists)
        InsufficientStockError: enforce_floor policy and a product would go negative
    """
    lines = _clean_lines(items)
    total = coerce_int(total_amount_cents, "total_amount_cents")
    enforce_floor = current_app.config["SALE_STOCK_POLICY"] == SALE_STOCK_POLICY_ENFORCE_FLOOR

    with atomic():
        product_ids = {line["product_id"] for line in lines}
        products = {
            p.id: p
            for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
        }

        bill = Bill(
            customer_name=_customer_name_or_default(customer_name),
            total_amount_cents=total,
            status=BILL_STATUS_PAID,
        )
        db.session.add(bill)

        for line in lines:
            product = products.get(line["product_id"])
            bill.items.append(BillItem(
                product_id=line["product_id"],
                product_name=line["name"],
                quantity=line["quantity"],
                price_cents=line["price_cents"],
                purchase_price_cents=product.purchase_price_cents if product else 0,
                total_cents=line["total_cents"],
                returned_quantity=0,
            ))
        db.session.flush()

        for line in lines:
            apply_stock_delta(line["product_id"], -line["quantity"], enforce_floor=enforce_floor)

        oversold = [p for p in products.values() if p.quantity < 0]

    for product in oversold:
        current_app.logger.warning(
            "Bill %s drove product %s (%s) to negative stock: %s",
            bill.id, product.id, product.name, product.quantity,
        )
    current_app.logger.info(
        "Saved bill %s for %r: %s items, total %s",
        bill.id, bill.customer_name, len(lines), bill.total_amount_cents,
    )
    _notify(bill.id, "saved")
    return bill


def get_bill(bill_id: int) -> Bill:
    bill = db.session.get(Bill, bill_id)
    if bill is None:
        raise NotFoundError("Bill not found")
    return bill


def list_recent_bills(limit: int | None = None) -> list[Bill]:
    """Most recent bills first, items eagerly loaded."""
    if limit is None:
        limit = current_app.config["RECENT_BILLS_LIMIT"]
    return (
        db.session.query(Bill)
        .order_by(Bill.created_at.desc(), Bill.id.desc())
        .limit(limit)
        .all()
    )


def rename_bill(bill_id: int, customer_name: Any) -> Bill:
    """Change the customer name only; status, totals and stock are untouched."""
    with atomic():
        bill = get_bill(bill_id)
        bill.customer_name = _customer_name_or_default(customer_name)

    _notify(bill_id, "renamed")
    return bill
