# Overview: Flask API routes for cash drawer sessions.

from flask import Blueprint, request, jsonify, current_app

from ..services import cash_session_service
from ..services.errors import LedgerError


sessions_bp = Blueprint("sessions", __name__, url_prefix="/api/sessions")


@sessions_bp.post("/")
def start_session_route():
    """
    Open a session.

    Request body:
    {
        "opening_balance": 100.0,
        "notes": "..."
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        session = cash_session_service.start_session(
            opening_balance=data.get("opening_balance", 0.0),
            notes=data.get("notes"),
            created_by=request.headers.get("X-Actor"),
        )
        return jsonify(session.to_dict()), 201
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to start cash session")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.get("/current")
def current_session_route():
    try:
        session = cash_session_service.get_current_session()
        return jsonify({"session": session.to_dict() if session else None}), 200
    except Exception:
        current_app.logger.exception("Failed to load current cash session")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.post("/<session_id>/close")
def close_session_route(session_id: str):
    """
    Close a session.

    Request body:
    {
        "counted_amount": 250.0,
        "withdrawal_amount": 200.0,
        "notes": "..."
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        session = cash_session_service.close_session(
            session_id,
            counted_amount=data.get("counted_amount"),
            withdrawal_amount=data.get("withdrawal_amount", 0.0),
            notes=data.get("notes"),
        )
        return jsonify(session.to_dict()), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to close cash session %s", session_id)
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.get("/last-closing-balance")
def last_closing_balance_route():
    try:
        return jsonify({"closing_balance": cash_session_service.get_last_closing_balance()}), 200
    except Exception:
        current_app.logger.exception("Failed to load last closing balance")
        return jsonify({"error": "Internal server error"}), 500
