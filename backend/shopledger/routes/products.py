# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shopledger/routes/products.py
"""
Product management routes.

SECURITY: All routes require a session.
- Deletion requires {"confirm": true} and the admin role
"""
from flask import Blueprint, request

from . import error_response, wants_confirmation
from ..decorators import require_session, require_role
from ..services import get_services
from ..services.inventory_service import stock_level

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _present(product: dict) -> dict:
    return dict(product, stock_level=stock_level(product))


@products_bp.get("")
@require_session
def list_products():
    """
    List products by name.

    Query params:
    - q: search text matched against name, Bengali name and category (optional)
    """
    rows = get_services().inventory.list_products(request.args.get("q"))
    return {"items": [_present(p) for p in rows], "count": len(rows)}, 200


@products_bp.get("/<product_id>")
@require_session
def get_product(product_id: str):
    product = get_services().inventory.get_product(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return _present(product), 200


@products_bp.post("")
@require_session
def create_product_route():
    payload = request.get_json(silent=True) or {}
    result = get_services().inventory.upsert_product(payload)
    if not result.success:
        return error_response(result)
    return _present(result.data), 201


@products_bp.put("/<product_id>")
@require_session
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}
    if "current_stock" in payload:
        return {"error": "current_stock changes go through /api/inventory/adjust"}, 400

    result = get_services().inventory.upsert_product(payload, product_id)
    if not result.success:
        return error_response(result)
    return _present(result.data), 200


@products_bp.delete("/<product_id>")
@require_session
@require_role("admin")
def delete_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}
    confirmed = wants_confirmation(payload, request.args)

    result = get_services().inventory.delete_product(product_id, confirm=lambda _msg: confirmed)
    if not result.success:
        return error_response(result)
    return {"ok": True}, 200
