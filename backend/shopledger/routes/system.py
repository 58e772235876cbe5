# backend/shopledger/routes/system.py
"""
System health endpoint.

Reports database connectivity and table counts for deployment debugging.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Category, Transaction, Product, InventoryLog
from ..services import get_services
from shopledger.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "categories": db.session.query(Category).count(),
            "transactions": db.session.query(Transaction).count(),
            "products": db.session.query(Product).count(),
            "inventory_logs": db.session.query(InventoryLog).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    services = get_services()
    body = {
        "status": database["status"],
        "time": to_utc_z(utcnow()),
        "database": database,
        "session": services.session.current.to_dict(),
        "pending_reorder_patches": len(services.categories.reconciliation.failed),
    }
    return body, 200 if database["status"] == "healthy" else 503
