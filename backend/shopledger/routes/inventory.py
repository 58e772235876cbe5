# backend/shopledger/routes/inventory.py
"""
Inventory routes.

SECURITY: All routes require a session.

Adjust flow:
1. adjust_stock(): stock write + linked ledger transaction (saga, compensated on failure)
2. record_log(): independent InventoryLog row carrying the transaction id

A failed log write does not undo step 1; the response reports it under "log".
"""
from flask import Blueprint, current_app, request

from . import error_response
from ..decorators import require_session
from ..services import get_services

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/adjust")
@require_session
def adjust_stock_route():
    """
    Body: {"product_id": "...", "direction": "in" | "out", "quantity": 3,
           "unit_price": 20, "description": "optional"}
    """
    payload = request.get_json(silent=True) or {}
    for key in ("product_id", "direction", "quantity", "unit_price"):
        if key not in payload:
            return {"error": f"Missing required fields: {key}"}, 400

    inventory = get_services().inventory
    try:
        result = inventory.adjust_stock(
            payload["product_id"],
            payload["direction"],
            payload["quantity"],
            payload["unit_price"],
            payload.get("description"),
        )
        if not result.success:
            return error_response(result)

        outcome = result.data
        log = inventory.record_log(
            outcome.product_id,
            outcome.direction,
            outcome.quantity,
            payload["unit_price"],
            transaction_id=outcome.transaction["id"],
        )
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return {"error": "Internal server error"}, 500

    body = outcome.to_dict()
    body["log"] = log.data if log.success else {"error": log.message}
    return body, 201


@inventory_bp.get("/logs")
@require_session
def list_logs_route():
    """
    Query params:
    - product_id (optional)
    - limit: int (default 50, max 500)
    """
    limit = request.args.get("limit", default=50, type=int)
    limit = max(1, min(limit, 500))
    rows = get_services().inventory.list_logs(product_id=request.args.get("product_id"), limit=limit)
    return {"items": rows, "count": len(rows), "limit": limit}, 200


@inventory_bp.get("/status")
@require_session
def stock_status_route():
    return get_services().inventory.stock_status(), 200
