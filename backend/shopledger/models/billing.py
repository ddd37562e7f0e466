from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..time_utils import local_now, to_iso


# =============================================================================
# BILL STATUS CONSTANTS
# =============================================================================

BILL_STATUS_PAID = "PAID"
BILL_STATUS_PARTIAL = "PARTIAL"
BILL_STATUS_RETURNED = "RETURNED"

BILL_STATUSES = (BILL_STATUS_PAID, BILL_STATUS_PARTIAL, BILL_STATUS_RETURNED)


class Bill(db.Model):
    """
    Recorded sale with one or more line items.

    total_amount_cents is the point-in-time sale amount as submitted by the
    till; it is never recomputed from items and never decremented on return.

    LIFECYCLE (forward only, driven by returns):
    PAID -> PARTIAL -> RETURNED
    PAID -> RETURNED
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.Index("ix_bills_created_at", "created_at"),
        db.CheckConstraint(
            "status IN ('PAID', 'PARTIAL', 'RETURNED')",
            name="ck_bills_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(255), nullable=True)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=BILL_STATUS_PAID, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=local_now)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    # No delete cascade: deleteBill removes items explicitly
    items = db.relationship(
        "BillItem",
        back_populates="bill",
        lazy="selectin",
        order_by="BillItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def all_items_returned(self) -> bool:
        return all(item.returned_quantity >= item.quantity for item in self.items)

    @property
    def any_item_returned(self) -> bool:
        return any(item.returned_quantity > 0 for item in self.items)

    def __repr__(self) -> str:
        return f"<Bill id={self.id} status={self.status} total={self.total_amount_cents}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "customer_name": self.customer_name,
            "total_amount_cents": self.total_amount_cents,
            "status": self.status,
            "created_at": to_iso(self.created_at),
            "version_id": self.version_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


@dataclass(frozen=True)
class SaleSnapshot:
    """
    What the shop knew about a product at the moment it was sold.

    product_id is a lookup key only: the product may have been renamed,
    repriced or deleted since.
    """
    product_id: int | None
    product_name: str
    unit_price_cents: int
    unit_cost_cents: int

    @property
    def cost_captured(self) -> bool:
        # 0 means the cost was not captured at sale time (legacy rows)
        return self.unit_cost_cents != 0


class BillItem(db.Model):
    """One product line within a bill, with its own return tracking."""
    __tablename__ = "bill_items"
    __table_args__ = (
        db.CheckConstraint(
            "returned_quantity >= 0 AND returned_quantity <= quantity",
            name="ck_bill_items_returned_quantity",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)

    # Weak reference: deliberately no ForeignKey to products.id
    product_id = db.Column(db.Integer, nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    # Immutable after creation; 0 = fall back to the live product cost
    purchase_price_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    returned_quantity = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    bill = db.relationship("Bill", back_populates="items")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def outstanding_quantity(self) -> int:
        return self.quantity - self.returned_quantity

    @property
    def snapshot(self) -> SaleSnapshot:
        return SaleSnapshot(
            product_id=self.product_id,
            product_name=self.product_name,
            unit_price_cents=self.price_cents,
            unit_cost_cents=self.purchase_price_cents,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_id": self.bill_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "purchase_price_cents": self.purchase_price_cents,
            "total_cents": self.total_cents,
            "returned_quantity": self.returned_quantity,
            "outstanding_quantity": self.outstanding_quantity,
            "version_id": self.version_id,
        }
