# Overview: Flask API routes for catalog stock and stock movement history.

from flask import Blueprint, jsonify, current_app

from ..services import inventory_service
from ..services.errors import LedgerError
from ..extensions import db
from ..models import InventoryItem


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/<item_id>/history")
def item_history_route(item_id: str):
    """Current stock plus every movement (Purchased, Sold, Adjustment), newest first."""
    try:
        events = inventory_service.get_item_history(item_id)
        item = db.session.get(InventoryItem, item_id)
        return jsonify({
            "item": item.to_dict(),
            "history": [e.to_dict() for e in events],
        }), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load inventory history %s", item_id)
        return jsonify({"error": "Internal server error"}), 500
