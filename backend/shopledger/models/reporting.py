from __future__ import annotations

from ..extensions import db
from ..time_utils import local_now, to_iso


class MonthlySnapshot(db.Model):
    """
    Month-end closing figures.

    One row per (month, year). Re-saving the same period overwrites the
    figures and stamps a fresh saved_at.
    """
    __tablename__ = "monthly_snapshots"
    __table_args__ = (
        db.UniqueConstraint("month", "year", name="uq_monthly_snapshots_period"),
        db.CheckConstraint("month >= 1 AND month <= 12", name="ck_monthly_snapshots_month"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)

    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    total_profit_cents = db.Column(db.Integer, nullable=False, default=0)
    total_returns_cents = db.Column(db.Integer, nullable=False, default=0)

    saved_at = db.Column(db.DateTime, nullable=False, default=local_now)

    def __repr__(self) -> str:
        return f"<MonthlySnapshot {self.year}-{self.month:02d}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "month": self.month,
            "year": self.year,
            "total_sales_cents": self.total_sales_cents,
            "total_profit_cents": self.total_profit_cents,
            "total_returns_cents": self.total_returns_cents,
            "saved_at": to_iso(self.saved_at),
        }
