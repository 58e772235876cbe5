# backend/shopledger/routes/categories.py
"""
Category routes.

SECURITY:
- Listing requires a session
- Create/update/reorder/delete require the admin role
"""
from flask import Blueprint, request

from . import error_response
from ..decorators import require_session, require_role
from ..services import get_services

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_session
def list_categories():
    """
    List categories by sort_order.

    Query params:
    - type: income | expense (optional)
    """
    items = get_services().categories.list()
    type_ = request.args.get("type")
    if type_:
        items = [c for c in items if c["type"] == type_]
    return {"items": items, "count": len(items)}, 200


@categories_bp.post("")
@require_session
@require_role("admin")
def create_category():
    payload = request.get_json(silent=True) or {}
    result = get_services().categories.upsert(payload)
    if not result.success:
        return error_response(result)
    return result.data, 201


@categories_bp.put("/<category_id>")
@require_session
@require_role("admin")
def update_category(category_id: str):
    payload = request.get_json(silent=True) or {}
    result = get_services().categories.upsert(payload, category_id)
    if not result.success:
        return error_response(result)
    return result.data, 200


@categories_bp.post("/reorder")
@require_session
@require_role("admin")
def reorder_categories():
    """
    Reorder categories.

    Body: {"ids": [...]} in the new order. Persistence failures are logged,
    not reported; the response reflects the optimistic order.
    """
    payload = request.get_json(silent=True) or {}
    ids = payload.get("ids") if isinstance(payload, dict) else None
    if not isinstance(ids, list) or not ids:
        return {"error": "ids must be a non-empty list"}, 400
    if not all(isinstance(i, str) for i in ids):
        return {"error": "ids must be strings"}, 400
    if len(set(ids)) != len(ids):
        return {"error": "ids must not repeat"}, 400

    registry = get_services().categories
    by_id = {c["id"]: c for c in registry.list() if c["id"]}
    unknown = [i for i in ids if i not in by_id]
    if unknown:
        return {"error": f"Unknown category ids: {', '.join(map(str, unknown))}"}, 400

    chosen = set(ids)
    rest = [c for c in by_id.values() if c["id"] not in chosen]
    items = registry.reorder([by_id[i] for i in ids] + rest)
    return {"items": items, "count": len(items)}, 200


@categories_bp.delete("/<category_id>")
@require_session
@require_role("admin")
def delete_category(category_id: str):
    result = get_services().categories.delete(category_id)
    if not result.success:
        return error_response(result)
    return {"ok": True}, 200
