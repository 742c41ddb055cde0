# Overview: Flask API routes for counterparty balances and balance history.

from flask import Blueprint, request, jsonify, current_app

from ..models import PartyKind
from ..services import balance_service
from ..services.errors import LedgerError


parties_bp = Blueprint("parties", __name__, url_prefix="/api/parties")

PARTY_KINDS = {"client": PartyKind.CLIENT, "supplier": PartyKind.SUPPLIER}
PARTY = "<any(client, supplier):party_code>"


@parties_bp.get(f"/{PARTY}/<party_id>/history")
def party_history_route(party_code: str, party_id: str):
    """Balance history (completions, payments, reversals, adjustments), newest first."""
    try:
        party_kind = PARTY_KINDS[party_code]
        party = balance_service.get_party(party_kind, party_id)
        events = balance_service.get_party_history(party_kind, party_id)
        return jsonify({
            "party": party.to_dict(),
            "history": [e.to_dict() for e in events],
        }), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load %s history %s", party_code, party_id)
        return jsonify({"error": "Internal server error"}), 500


@parties_bp.post(f"/{PARTY}/<party_id>/adjust")
def adjust_balance_route(party_code: str, party_id: str):
    """
    Manual balance correction.

    Request body:
    {
        "amount": -15.0,   (signed; positive increases what is owed)
        "notes": "Opening balance import"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        party = balance_service.adjust_balance(
            PARTY_KINDS[party_code],
            party_id,
            data.get("amount"),
            notes=data.get("notes"),
            actor=request.headers.get("X-Actor"),
        )
        return jsonify(party.to_dict()), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to adjust %s balance %s", party_code, party_id)
        return jsonify({"error": "Internal server error"}), 500
