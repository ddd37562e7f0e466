from __future__ import annotations

from ..extensions import db
from ..time_utils import local_now, to_iso


class Product(db.Model):
    """
    Product master data: stock on hand and pricing.

    Names are unique by convention only. Quantity >= 0 is enforced by the
    mutation paths (see products_service), not by the schema, because the
    permissive sale policy may legitimately drive stock negative.

    PRICING:
    - price_cents: regular sale price
    - purchase_price_cents: cost basis; 0 on legacy rows means "unknown"
    - manual_price_cents: optional override, 0 means "unset"
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    purchase_price_cents = db.Column(db.Integer, nullable=False, default=0)
    manual_price_cents = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=local_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=local_now, onupdate=local_now)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def effective_price_cents(self) -> int:
        """Unit price a new cart line should default to."""
        if self.manual_price_cents and self.manual_price_cents > 0:
            return self.manual_price_cents
        return self.price_cents

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "purchase_price_cents": self.purchase_price_cents,
            "manual_price_cents": self.manual_price_cents,
            "effective_price_cents": self.effective_price_cents,
            "version_id": self.version_id,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }
