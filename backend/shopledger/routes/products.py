# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shopledger/routes/products.py
"""
Product store routes.

All responses use the uniform result shape:
    {"success": true, "data": ...} | {"success": false, "error": "..."}
"""
from flask import Blueprint, request

from ..decorators import operation_result
from ..services import products_service
from ..validation import require_json_object

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _payload() -> dict:
    return require_json_object(request.get_json(silent=True))


@products_bp.get("")
@operation_result("Failed to fetch products")
def list_products():
    """
    List products: letter-initial names alphabetically first, digit-initial names after.

    Query params:
    - q: str (optional) - case-insensitive name filter
    """
    products = products_service.list_products(search=request.args.get("q"))
    return [p.to_dict() for p in products]


@products_bp.get("/<int:product_id>")
@operation_result("Failed to fetch product")
def get_product(product_id: int):
    return products_service.get_product(product_id).to_dict()


@products_bp.post("")
@operation_result("Failed to add product", status=201)
def create_product_route():
    """
    Request body:
    {
        "name": "Pen",
        "quantity": 100,
        "price_cents": 1000,
        "purchase_price_cents": 600  (optional, default: 0)
    }
    """
    data = _payload()
    product = products_service.create_product(
        name=data.get("name"),
        quantity=data.get("quantity"),
        price_cents=data.get("price_cents"),
        purchase_price_cents=data.get("purchase_price_cents"),
    )
    return product.to_dict()


@products_bp.post("/<int:product_id>/stock")
@operation_result("Failed to update stock")
def adjust_stock_route(product_id: int):
    """Request body: {"delta": -1}"""
    data = _payload()
    return products_service.adjust_stock(product_id, data.get("delta")).to_dict()


@products_bp.put("/<int:product_id>/manual-price")
@operation_result("Failed to update manual price")
def set_manual_price_route(product_id: int):
    """Request body: {"manual_price_cents": 950}  (0 clears the override)"""
    data = _payload()
    return products_service.set_manual_price(product_id, data.get("manual_price_cents")).to_dict()


@products_bp.put("/<int:product_id>/name")
@operation_result("Failed to update product name")
def rename_product_route(product_id: int):
    data = _payload()
    return products_service.rename_product(product_id, data.get("name")).to_dict()


@products_bp.put("/<int:product_id>/quantity")
@operation_result("Failed to update product quantity")
def set_quantity_route(product_id: int):
    data = _payload()
    return products_service.set_quantity(product_id, data.get("quantity")).to_dict()


@products_bp.delete("/<int:product_id>")
@operation_result("Failed to delete product")
def delete_product_route(product_id: int):
    products_service.delete_product(product_id)
    return None
