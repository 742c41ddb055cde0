# backend/fixtrack/routes/system.py
"""
System health endpoint.

Reports store connectivity and the size of the main ledger tables, which
is enough to tell a missing schema from an empty one.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Order, Sale, Transaction, CashSession
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "orders": db.session.query(Order).count(),
            "sales": db.session.query(Sale).count(),
            "transactions": db.session.query(Transaction).count(),
            "cash_sessions": db.session.query(CashSession).count(),
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
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: store reachable and schema present
    - 503: store unreachable or schema missing
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503

    response = {
        "status": database_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {"database": database_health},
    }
    return response, http_status
