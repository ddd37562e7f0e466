"""
Return Processing Service

WHY: Customers bring back whole bills or some units of one line. Each return
puts the units back on the shelf and moves the bill forward through its
status lifecycle. Bill totals are sale records and are never reduced.

LIFECYCLE (per bill, forward only):
PAID -> PARTIAL   some units of some item returned
PAID/PARTIAL -> RETURNED   every item fully returned (full return, or the
                           last outstanding units via item returns)

STOCK RESTORATION RULES:
- Only the outstanding remainder (quantity - returned_quantity) is restocked.
- Deleting a RETURNED bill restores nothing: its stock is already back.
- Items whose product has since been deleted are marked returned, but there
  is no product row left to restock.
"""
from __future__ import annotations

from typing import Any

from flask import current_app

from ..extensions import db
from ..errors import NotFoundError, OverReturnError, AlreadyReturnedError
from ..models import (
    Bill,
    BillItem,
    Product,
    BILL_STATUS_PARTIAL,
    BILL_STATUS_RETURNED,
)
from ..signals import bill_changed, product_changed
from ..validation import coerce_int, enforce_positive
from .concurrency import atomic, lock_for_update
from .products_service import apply_stock_delta


# =============================================================================
# INTERNAL HELPERS
# =============================================================================

def _notify(bill_id: int, action: str, product_ids: set[int]) -> None:
    app = current_app._get_current_object()
    bill_changed.send(app, bill_id=bill_id, action=action)
    for product_id in sorted(product_ids):
        product_changed.send(app, product_id=product_id, action="restocked")


def _load_bill(bill_id: int) -> Bill:
    bill = lock_for_update(db.session.query(Bill).filter_by(id=bill_id)).first()
    if bill is None:
        raise NotFoundError("Bill not found")
    return bill


def _restock(item: BillItem, quantity: int) -> int | None:
    """
    Put `quantity` units of the item's product back in stock.

    Returns the product id restocked, or None when the product no longer exists.
    """
    if item.product_id is None or db.session.get(Product, item.product_id) is None:
        current_app.logger.warning(
            "Bill item %s: product %s no longer exists, %s units not restocked",
            item.id, item.product_id, quantity,
        )
        return None
    apply_stock_delta(item.product_id, quantity, enforce_floor=False)
    return item.product_id


def recompute_bill_status(bill: Bill) -> str:
    """
    Status implied by the bill's items after a return event.

    Never moves back to PAID: with no returned units the current status stands.
    """
    if bill.all_items_returned:
        return BILL_STATUS_RETURNED
    if bill.any_item_returned:
        return BILL_STATUS_PARTIAL
    return bill.status


# =============================================================================
# RETURNS
# =============================================================================

def return_bill_full(bill_id: int) -> Bill:
    """
    Return everything still outstanding on a bill.

    Items already fully returned are left untouched.

    Raises:
        NotFoundError: bill does not exist
        AlreadyReturnedError: bill status is already RETURNED
    """
    restocked: set[int] = set()
    units = 0

    with atomic():
        bill = _load_bill(bill_id)
        if bill.status == BILL_STATUS_RETURNED:
            raise AlreadyReturnedError("Bill already returned")

        bill.status = BILL_STATUS_RETURNED
        for item in bill.items:
            remaining = item.outstanding_quantity
            if remaining <= 0:
                continue
            item.returned_quantity = item.quantity
            product_id = _restock(item, remaining)
            if product_id is not None:
                restocked.add(product_id)
                units += remaining

    current_app.logger.info("Bill %s fully returned: %s units back in stock", bill_id, units)
    _notify(bill_id, "returned", restocked)
    return bill


def return_bill_item(item_id: int, return_qty: Any) -> BillItem:
    """
    Return some units of one bill item and advance the bill status.

    Raises:
        ValidationError: return_qty is not a positive integer
        NotFoundError: item does not exist
        OverReturnError: returned_quantity + return_qty would exceed quantity
    """
    quantity = enforce_positive(coerce_int(return_qty, "quantity"), "quantity")
    restocked: set[int] = set()

    with atomic():
        item = lock_for_update(db.session.query(BillItem).filter_by(id=item_id)).first()
        if item is None:
            raise NotFoundError("Item not found")

        if item.returned_quantity + quantity > item.quantity:
            raise OverReturnError(
                "Cannot return more than purchased",
                details={
                    "item_id": item.id,
                    "quantity": item.quantity,
                    "returned_quantity": item.returned_quantity,
                    "requested": quantity,
                },
            )

        item.returned_quantity += quantity
        product_id = _restock(item, quantity)
        if product_id is not None:
            restocked.add(product_id)

        bill = item.bill
        new_status = recompute_bill_status(bill)
        if new_status != bill.status:
            bill.status = new_status
        bill_id = bill.id

    current_app.logger.info(
        "Returned %s of bill item %s (bill %s now %s)", quantity, item_id, bill_id, bill.status,
    )
    _notify(bill_id, "item_returned", restocked)
    return item


# =============================================================================
# DELETION
# =============================================================================

def delete_bill(bill_id: int) -> int:
    """
    Delete a bill and its items, restocking whatever was never returned.

    Returns the number of units put back in stock (0 for a RETURNED bill).
    """
    restocked: set[int] = set()
    units = 0

    with atomic():
        bill = _load_bill(bill_id)

        if bill.status != BILL_STATUS_RETURNED:
            for item in bill.items:
                remaining = item.outstanding_quantity
                if remaining <= 0:
                    continue
                product_id = _restock(item, remaining)
                if product_id is not None:
                    restocked.add(product_id)
                    units += remaining

        for item in list(bill.items):
            db.session.delete(item)
        db.session.flush()
        db.session.expire(bill, ["items"])
        db.session.delete(bill)

    current_app.logger.info("Deleted bill %s: %s units back in stock", bill_id, units)
    _notify(bill_id, "deleted", restocked)
    return units
