# Overview: Flask API routes for ledger operations; parses input and returns JSON responses.

from datetime import date, timedelta

from flask import Blueprint, current_app, request

from . import error_response, wants_confirmation
from ..decorators import require_session
from ..services import get_services
from ..services.ledger_service import PERIODS
from shopledger.time_utils import local_date, utcnow

"""
Time semantics:
- API accepts ISO-8601 datetimes with Z/offsets; backend normalizes to UTC-naive internally.
- Summary dates (YYYY-MM-DD) are calendar days in the shop timezone.
"""

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/transactions")


def _parse_day(raw, default: date) -> date:
    if not raw:
        return default
    return date.fromisoformat(raw)


def _today() -> date:
    return local_date(utcnow(), get_services().ledger.zone)


@ledger_bp.get("")
@require_session
def list_transactions_route():
    """
    List transactions, newest first.

    Query params:
    - type: income | expense (optional)
    - category: category name (optional)
    - limit: int (default 100, max 500)
    """
    rows = get_services().ledger.list()

    type_ = request.args.get("type")
    if type_:
        rows = [r for r in rows if r["type"] == type_]

    category = request.args.get("category")
    if category:
        rows = [r for r in rows if r["category"] == category]

    limit = request.args.get("limit", default=100, type=int)
    limit = max(1, min(limit, 500))

    return {"items": rows[:limit], "count": len(rows), "limit": limit}, 200


@ledger_bp.post("")
@require_session
def add_transactions_route():
    """
    Add one or more transactions in a single batch.

    Body: {"transactions": [draft, ...]} or a single draft object.
    """
    payload = request.get_json(silent=True)
    if isinstance(payload, dict) and "transactions" in payload:
        drafts = payload["transactions"]
    elif isinstance(payload, dict):
        drafts = [payload]
    else:
        drafts = payload
    if not isinstance(drafts, list) or not all(isinstance(d, dict) for d in drafts):
        return {"error": "Invalid JSON payload"}, 400

    try:
        result = get_services().ledger.add_many(drafts)
    except Exception:
        current_app.logger.exception("Failed to add transactions")
        return {"error": "Internal server error"}, 500
    if not result.success:
        return error_response(result)
    return {"items": result.data, "count": len(result.data)}, 201


@ledger_bp.patch("/<transaction_id>")
@require_session
def update_transaction_route(transaction_id: str):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict) or not payload:
        return {"error": "Invalid JSON payload"}, 400

    result = get_services().ledger.update(transaction_id, payload)
    if not result.success:
        return error_response(result)
    return result.data, 200


@ledger_bp.delete("/<transaction_id>")
@require_session
def delete_transaction_route(transaction_id: str):
    """
    Hard delete. Requires {"confirm": true} (or ?confirm=true); without it
    nothing is sent to the backend.
    """
    payload = request.get_json(silent=True) or {}
    confirmed = wants_confirmation(payload, request.args)

    result = get_services().ledger.delete(transaction_id, confirm=lambda _msg: confirmed)
    if not result.success:
        return error_response(result)
    return {"ok": True}, 200


@ledger_bp.get("/summary")
@require_session
def summary_route():
    """
    Totals for a period.

    Query params:
    - period: daily | monthly | yearly (default daily)
    - date: YYYY-MM-DD reference day (default today in the shop timezone)
    """
    period = request.args.get("period", "daily")
    if period not in PERIODS:
        return {"error": f"period must be one of {', '.join(PERIODS)}"}, 400
    try:
        ref = _parse_day(request.args.get("date"), _today())
    except ValueError:
        return {"error": "date must be YYYY-MM-DD"}, 400

    return get_services().ledger.period_summary(period, ref), 200


@ledger_bp.get("/daily")
@require_session
def daily_series_route():
    """
    One totals row per day in [start, end].

    Query params:
    - start: YYYY-MM-DD (default 6 days before end)
    - end: YYYY-MM-DD inclusive (default today)
    """
    try:
        end = _parse_day(request.args.get("end"), _today())
        start = _parse_day(request.args.get("start"), end - timedelta(days=6))
    except ValueError:
        return {"error": "start and end must be YYYY-MM-DD"}, 400
    if start > end:
        return {"error": "start must be on or before end"}, 400
    if (end - start).days > 366:
        return {"error": "range cannot exceed one year"}, 400

    items = get_services().ledger.daily_series(start, end + timedelta(days=1))
    return {"items": items, "count": len(items)}, 200
