# Overview: Flask API routes for billing and returns; parses input and returns JSON responses.

# backend/shopledger/routes/bills.py
"""
Bill ledger and return routes.

DESIGN:
- Saving a bill, full returns, item returns and deletion each run as one
  transaction in the service layer; a failure leaves nothing behind.
- Errors come back as {"success": false, "error": "..."}; nothing is retried.
"""
from flask import Blueprint, request

from ..decorators import operation_result
from ..services import billing_service, return_service
from ..validation import require_json_object

bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


def _payload() -> dict:
    return require_json_object(request.get_json(silent=True))


@bills_bp.post("")
@operation_result("Unknown error occurred while saving bill", status=201)
def save_bill_route():
    """
    Save a bill and decrement stock.

    Request body:
    {
        "customer_name": "Asha",  (optional, default: Walk-in Customer)
        "total_amount_cents": 10000,
        "items": [
            {"product_id": 1, "name": "Pen", "quantity": 10, "price_cents": 1000, "total_cents": 10000}
        ]
    }
    """
    data = _payload()
    bill = billing_service.save_bill(
        customer_name=data.get("customer_name"),
        total_amount_cents=data.get("total_amount_cents"),
        items=data.get("items"),
    )
    return bill.to_dict()


@bills_bp.get("")
@operation_result("Failed to fetch bills")
def list_bills_route():
    """Most recent bills (newest first) with their items."""
    return [bill.to_dict() for bill in billing_service.list_recent_bills()]


@bills_bp.get("/<int:bill_id>")
@operation_result("Failed to fetch bill")
def get_bill_route(bill_id: int):
    return billing_service.get_bill(bill_id).to_dict()


@bills_bp.put("/<int:bill_id>/customer")
@operation_result("Failed to rename bill")
def rename_bill_route(bill_id: int):
    """Request body: {"customer_name": "Asha"}"""
    data = _payload()
    return billing_service.rename_bill(bill_id, data.get("customer_name")).to_dict()


# =============================================================================
# RETURNS
# =============================================================================

@bills_bp.post("/<int:bill_id>/return")
@operation_result("Return failed")
def return_bill_route(bill_id: int):
    """Return everything still outstanding on the bill."""
    return return_service.return_bill_full(bill_id).to_dict()


@bills_bp.post("/items/<int:item_id>/return")
@operation_result("Failed to return item")
def return_bill_item_route(item_id: int):
    """Request body: {"quantity": 2}"""
    data = _payload()
    item = return_service.return_bill_item(item_id, data.get("quantity"))
    return {
        "item": item.to_dict(),
        "bill": item.bill.to_dict(include_items=False),
    }


@bills_bp.delete("/<int:bill_id>")
@operation_result("Failed to delete bill")
def delete_bill_route(bill_id: int):
    restored = return_service.delete_bill(bill_id)
    return {"bill_id": bill_id, "restored_quantity": restored}
