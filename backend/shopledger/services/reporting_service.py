# Overview: Service-layer operations for reporting; sales/profit aggregation and month-end snapshots.

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Any

from flask import current_app

from ..extensions import db
from ..errors import ValidationError, NotFoundError
from ..models import Bill, Product, MonthlySnapshot
from ..signals import snapshot_saved
from ..time_utils import local_now, parse_iso_date, to_iso
from ..validation import coerce_int
from .concurrency import atomic


PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"
PERIOD_TYPES = (PERIOD_DAILY, PERIOD_WEEKLY, PERIOD_MONTHLY)

# Inclusive window end: 23:59:59.999
_END_OF_DAY = time(23, 59, 59, 999000)


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""


def _coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_date(value)
        except ValueError:
            raise ReportError("date must be an ISO-8601 date (YYYY-MM-DD)")
        if parsed is not None:
            return parsed
    raise ReportError("date is required")


def report_window(on: Any, period: str) -> tuple[datetime, datetime]:
    """
    Inclusive [start, end] wall-clock window for a report.

    - daily:   the day itself
    - weekly:  Monday..Sunday week containing the day (Sunday belongs to the
               week that started the previous Monday)
    - monthly: first..last calendar day of the month
    """
    day = _coerce_date(on)

    if period == PERIOD_DAILY:
        first, last = day, day
    elif period == PERIOD_WEEKLY:
        first = day - timedelta(days=day.weekday())
        last = first + timedelta(days=6)
    elif period == PERIOD_MONTHLY:
        first = day.replace(day=1)
        last = day.replace(day=calendar.monthrange(day.year, day.month)[1])
    else:
        raise ReportError("period must be daily, weekly, or monthly")

    return datetime.combine(first, time.min), datetime.combine(last, _END_OF_DAY)


def _fallback_costs(bills: list[Bill]) -> dict[int, int]:
    """Current purchase price for every product sold without a captured cost."""
    missing = {
        item.product_id
        for bill in bills
        for item in bill.items
        if item.purchase_price_cents == 0 and item.product_id is not None
    }
    if not missing:
        return {}
    rows = (
        db.session.query(Product.id, Product.purchase_price_cents)
        .filter(Product.id.in_(missing))
        .all()
    )
    return {row.id: row.purchase_price_cents for row in rows}


def sales_report(on: Any, period: str = PERIOD_DAILY) -> dict:
    """
    Sales, returns, cost of goods and profit for bills created in the window.

    Per item:
        gross    = quantity * price
        returned = returned_quantity * price
        cost     = (quantity - returned_quantity) * unit cost
    Unit cost is the cost captured at sale time, or the product's current
    purchase price when none was captured (0 if the product is gone).

    total_sales is net of returns (same figure as net_sales).
    """
    start, end = report_window(on, period)

    bills = (
        db.session.query(Bill)
        .filter(Bill.created_at >= start, Bill.created_at <= end)
        .order_by(Bill.created_at.asc(), Bill.id.asc())
        .all()
    )
    fallback = _fallback_costs(bills)

    gross_sales = 0
    returned_amount = 0
    product_value = 0
    breakdown: dict[int | None, dict] = {}

    for bill in bills:
        for item in bill.items:
            snap = item.snapshot
            unit_cost = snap.unit_cost_cents if snap.cost_captured else fallback.get(snap.product_id, 0)

            gross_value = item.quantity * snap.unit_price_cents
            returned_value = item.returned_quantity * snap.unit_price_cents
            net_quantity = item.quantity - item.returned_quantity
            cost = net_quantity * unit_cost

            gross_sales += gross_value
            returned_amount += returned_value
            product_value += cost

            row = breakdown.setdefault(snap.product_id, {
                "product_id": snap.product_id,
                "product_name": snap.product_name,
                "quantity_sold": 0,
                "quantity_returned": 0,
                "net_quantity": 0,
                "revenue_cents": 0,
                "cost_cents": 0,
                "profit_cents": 0,
            })
            row["quantity_sold"] += item.quantity
            row["quantity_returned"] += item.returned_quantity
            row["net_quantity"] += net_quantity
            row["revenue_cents"] += gross_value - returned_value
            row["cost_cents"] += cost

    for row in breakdown.values():
        row["profit_cents"] = row["revenue_cents"] - row["cost_cents"]

    net_sales = gross_sales - returned_amount
    profit = net_sales - product_value

    return {
        "period": period,
        "start": to_iso(start),
        "end": to_iso(end),
        "total_sales_cents": net_sales,
        "net_sales_cents": net_sales,
        "gross_sales_cents": gross_sales,
        "returned_amount_cents": returned_amount,
        "product_value_cents": product_value,
        "profit_cents": profit,
        "bill_count": len(bills),
        "bills": [bill.to_dict() for bill in bills],
        "products": sorted(breakdown.values(), key=lambda r: r["revenue_cents"], reverse=True),
    }


# =============================================================================
# MONTHLY SNAPSHOTS
# =============================================================================

def _clean_period(month: Any, year: Any) -> tuple[int, int]:
    clean_month = coerce_int(month, "month")
    clean_year = coerce_int(year, "year")
    if not 1 <= clean_month <= 12:
        raise ValidationError("month must be between 1 and 12")
    if not 1 <= clean_year <= 9999:
        raise ValidationError("year is out of range")
    return clean_month, clean_year


def save_monthly_snapshot(month: Any, year: Any, metrics: dict) -> MonthlySnapshot:
    """
    Upsert the closing figures for (month, year).

    metrics: total_sales_cents, total_profit_cents, total_returns_cents.
    An existing snapshot for the period is overwritten and re-stamped.
    """
    clean_month, clean_year = _clean_period(month, year)
    if not isinstance(metrics, dict):
        raise ValidationError("metrics must be an object")
    total_sales = coerce_int(metrics.get("total_sales_cents"), "total_sales_cents")
    total_profit = coerce_int(metrics.get("total_profit_cents"), "total_profit_cents")
    total_returns = coerce_int(metrics.get("total_returns_cents", 0), "total_returns_cents")

    with atomic():
        snapshot = (
            db.session.query(MonthlySnapshot)
            .filter_by(month=clean_month, year=clean_year)
            .first()
        )
        if snapshot is None:
            snapshot = MonthlySnapshot(month=clean_month, year=clean_year)
            db.session.add(snapshot)

        snapshot.total_sales_cents = total_sales
        snapshot.total_profit_cents = total_profit
        snapshot.total_returns_cents = total_returns
        snapshot.saved_at = local_now()

    current_app.logger.info(
        "Saved monthly snapshot %04d-%02d: sales %s, profit %s, returns %s",
        clean_year, clean_month, total_sales, total_profit, total_returns,
    )
    snapshot_saved.send(current_app._get_current_object(), month=clean_month, year=clean_year)
    return snapshot


def close_month(month: Any, year: Any) -> MonthlySnapshot:
    """Compute the monthly report for (month, year) and save it as the snapshot."""
    clean_month, clean_year = _clean_period(month, year)
    report = sales_report(date(clean_year, clean_month, 1), PERIOD_MONTHLY)
    return save_monthly_snapshot(clean_month, clean_year, {
        "total_sales_cents": report["total_sales_cents"],
        "total_profit_cents": report["profit_cents"],
        "total_returns_cents": report["returned_amount_cents"],
    })


def get_monthly_snapshot(month: Any, year: Any) -> MonthlySnapshot:
    clean_month, clean_year = _clean_period(month, year)
    snapshot = (
        db.session.query(MonthlySnapshot)
        .filter_by(month=clean_month, year=clean_year)
        .first()
    )
    if snapshot is None:
        raise NotFoundError(f"No snapshot for {clean_year:04d}-{clean_month:02d}")
    return snapshot


def list_monthly_snapshots() -> list[MonthlySnapshot]:
    return (
        db.session.query(MonthlySnapshot)
        .order_by(MonthlySnapshot.year.desc(), MonthlySnapshot.month.desc())
        .all()
    )
