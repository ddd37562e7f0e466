from flask import Blueprint, request

from ..decorators import operation_result
from ..services import reporting_service
from ..validation import require_json_object


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
@operation_result("Failed to generate sales report")
def sales_report():
    return reporting_service.sales_report(
        request.args.get("date"),
        request.args.get("period", reporting_service.PERIOD_DAILY),
    )


@reports_bp.get("/snapshots")
@operation_result("Failed to fetch snapshots")
def list_snapshots():
    return [s.to_dict() for s in reporting_service.list_monthly_snapshots()]


@reports_bp.post("/snapshots")
@operation_result("Failed to save snapshot")
def save_snapshot():
    data = require_json_object(request.get_json(silent=True))
    snapshot = reporting_service.save_monthly_snapshot(
        data.get("month"),
        data.get("year"),
        {
            "total_sales_cents": data.get("total_sales_cents"),
            "total_profit_cents": data.get("total_profit_cents"),
            "total_returns_cents": data.get("total_returns_cents", 0),
        },
    )
    return snapshot.to_dict()


@reports_bp.post("/snapshots/close")
@operation_result("Failed to close month")
def close_month():
    data = require_json_object(request.get_json(silent=True))
    return reporting_service.close_month(data.get("month"), data.get("year")).to_dict()
