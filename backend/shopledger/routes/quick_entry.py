# backend/shopledger/routes/quick_entry.py
"""
Quick-entry routes.

One-tap entries against a category, the one-slot undo/redo and the
multi-category bulk form. Every response carries the controller state so the
client can render the banner and its undo/redo affordance.
"""
from flask import Blueprint, current_app, request

from . import error_response
from ..decorators import require_session
from ..models import TRANSACTION_TYPES
from ..services import get_services

quick_entry_bp = Blueprint("quick_entry", __name__, url_prefix="/api/quick-entry")

BUSY_RESPONSE = ({"error": "An entry is already being saved"}, 409)


def _with_state(body: dict) -> dict:
    body["quick_entry"] = get_services().quick_entry.describe()
    return body


@quick_entry_bp.post("")
@require_session
def instant_entry_route():
    """
    Body: {"category": "<category name>", "amount": 50}
    """
    payload = request.get_json(silent=True) or {}
    name = payload.get("category")
    services = get_services()

    category = services.categories.get(name) if name else None
    if category is None:
        return {"error": f"Unknown category: {name}"}, 400

    try:
        result = services.quick_entry.instant_entry(category, payload.get("amount"))
    except Exception:
        current_app.logger.exception("Failed to save quick entry")
        return {"error": "Internal server error"}, 500
    if result is None:
        return BUSY_RESPONSE
    if not result.success:
        body, status = error_response(result)
        return _with_state(body), status
    return _with_state({"transaction": result.data}), 201


@quick_entry_bp.post("/bulk")
@require_session
def bulk_entry_route():
    """
    Body: {"type": "income", "entries": {"photocopy": {"amount": 120, "description": ""}, ...}}
    """
    payload = request.get_json(silent=True) or {}
    type_ = payload.get("type")
    entries = payload.get("entries")
    if type_ not in TRANSACTION_TYPES:
        return {"error": "type must be income or expense"}, 400
    if not isinstance(entries, dict) or not all(isinstance(v, dict) for v in entries.values()):
        return {"error": "entries must map category names to {amount, description}"}, 400

    result = get_services().quick_entry.bulk_entry(type_, entries)
    if result is None:
        return BUSY_RESPONSE
    if not result.success:
        body, status = error_response(result)
        return _with_state(body), status
    return _with_state({"items": result.data, "count": len(result.data)}), 201


@quick_entry_bp.post("/undo")
@require_session
def undo_route():
    result = get_services().quick_entry.undo()
    if result is None:
        return BUSY_RESPONSE
    if not result.success:
        body, status = error_response(result)
        return _with_state(body), status
    return _with_state({"ok": True}), 200


@quick_entry_bp.post("/redo")
@require_session
def redo_route():
    result = get_services().quick_entry.redo()
    if result is None:
        return BUSY_RESPONSE
    if not result.success:
        body, status = error_response(result)
        return _with_state(body), status
    return _with_state({"transaction": result.data}), 201


@quick_entry_bp.get("/status")
@require_session
def status_route():
    return get_services().quick_entry.describe(), 200


@quick_entry_bp.delete("/status")
@require_session
def dismiss_route():
    controller = get_services().quick_entry
    controller.dismiss()
    return controller.describe(), 200
