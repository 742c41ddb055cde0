# Overview: Flask API routes for orders, sales and transactions; parses input and returns JSON responses.

# backend/fixtrack/routes/documents.py
"""
Document API Routes

One set of routes serves all three document kinds:

    /api/orders/...        purchase orders (supplier)
    /api/sales/...         customer sales (client)
    /api/transactions/...  generic party transactions

ERRORS:
- 400 invalid input
- 404 document, item, party or catalog item not found
- 409 duplicate number/id or transition not allowed
- 503 store unavailable after retries

The acting user, when known, is passed in the X-Actor header and lands in
history rows.
"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services import history_service, lifecycle_service, line_item_service, payment_service
from ..services.errors import LedgerError, ValidationError
from ..services.kinds import get_kind, TRANSACTIONS
from ..time_utils import parse_iso_datetime


documents_bp = Blueprint("documents", __name__, url_prefix="/api")

KIND = "<any(orders, sales, transactions):kind_code>"

HEADER_FIELDS = ("party_id", "party_kind", "transaction_type", "number", "status", "notes", "created_by")
ITEM_FIELDS = ("name", "quantity", "unit_price", "catalog_item_id", "notes")
PAYMENT_FIELDS = ("amount", "method", "received_by", "notes", "session_id")


def _actor():
    return request.headers.get("X-Actor")


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def _item_args(data: dict) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Each item must be a JSON object")
    args = {k: data[k] for k in ITEM_FIELDS if k in data}
    if data.get("id"):
        args["item_id"] = data["id"]
    return args


def _payment_args(data: dict) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Each payment must be a JSON object")
    args = {k: data[k] for k in PAYMENT_FIELDS if k in data}
    if data.get("id"):
        args["payment_id"] = data["id"]
    if data.get("date"):
        try:
            args["date"] = parse_iso_datetime(data["date"])
        except ValueError:
            raise ValidationError("date must be ISO-8601", details={"date": data["date"]})
    return args


def _error(e: LedgerError):
    return jsonify(e.to_dict()), e.http_status


def _document_dict(kind, document_id: str) -> dict:
    return db.session.get(kind.document_model, document_id).to_dict()


# =============================================================================
# HEADERS & LIFECYCLE
# =============================================================================

@documents_bp.post(f"/{KIND}/")
def create_document_route(kind_code: str):
    """
    Create a document.

    Request body:
    {
        "party_id": "...",
        "party_kind": "Client",          (transactions only, optional)
        "transaction_type": "Purchase",  (transactions only, required)
        "number": "",                    (optional, generated when empty)
        "status": "Draft",               (Draft | Completed)
        "notes": "..."
    }
    """
    try:
        kind = get_kind(kind_code)
        data = _payload()
        header = {k: data[k] for k in HEADER_FIELDS if data.get(k) is not None}
        if data.get("id"):
            header["document_id"] = data["id"]
        document = lifecycle_service.create_document(kind, actor=_actor(), **header)
        return jsonify(document.to_dict()), 201
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create %s", kind_code)
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.get(f"/{KIND}/")
def list_documents_route(kind_code: str):
    """Query params: status, type (transactions only)."""
    try:
        kind = get_kind(kind_code)
        documents = lifecycle_service.get_documents(
            kind,
            status=request.args.get("status"),
            transaction_type=request.args.get("type"),
        )
        return jsonify({"documents": [d.to_dict() for d in documents]}), 200
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to list %s", kind_code)
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.get(f"/{KIND}/<document_id>")
def get_document_route(kind_code: str, document_id: str):
    """Header plus items, payments and counterparty name."""
    try:
        kind = get_kind(kind_code)
        details = lifecycle_service.get_document_details(kind, document_id)
        if details is None:
            return jsonify({"error": f"{kind.label} not found"}), 404
        return jsonify(details), 200
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to load %s %s", kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.patch(f"/{KIND}/<document_id>")
def update_document_route(kind_code: str, document_id: str):
    """
    Update header fields.

    Request body (all optional): party_id, party_kind, status, notes.
    Totals and payment status are derived and ignored if sent.
    """
    try:
        kind = get_kind(kind_code)
        data = _payload()
        changes = {k: data[k] for k in ("party_id", "party_kind", "status", "notes") if k in data}
        document = lifecycle_service.update_header(kind, document_id, actor=_actor(), **changes)
        return jsonify(document.to_dict()), 200
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to update %s %s", kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.post(f"/{KIND}/<document_id>/complete")
def complete_document_route(kind_code: str, document_id: str):
    try:
        kind = get_kind(kind_code)
        document = lifecycle_service.complete_document(kind, document_id, actor=_actor())
        return jsonify(document.to_dict()), 200
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to complete %s %s", kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.get(f"/{KIND}/<document_id>/history")
def document_history_route(kind_code: str, document_id: str):
    try:
        kind = get_kind(kind_code)
        events = history_service.get_document_history(kind, document_id)
        return jsonify({"history": [e.to_dict() for e in events]}), 200
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to load history for %s %s", kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# LINE ITEMS
# =============================================================================

@documents_bp.post(f"/{KIND}/<document_id>/items")
def add_item_route(kind_code: str, document_id: str):
    """
    Request body:
    {
        "name": "Screen LCD",
        "quantity": 2,
        "unit_price": 45.0,
        "catalog_item_id": "...",  (optional)
        "notes": "..."             (optional)
    }
    """
    try:
        kind = get_kind(kind_code)
        item = line_item_service.add_item(kind, document_id, actor=_actor(), **_item_args(_payload()))
        return jsonify({"item": item.to_dict(), "document": _document_dict(kind, document_id)}), 201
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to add item to %s %s", kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.put(f"/{KIND}/<document_id>/items/<item_id>")
def update_item_route(kind_code: str, document_id: str, item_id: str):
    try:
        kind = get_kind(kind_code)
        data = _payload()
        changes = {k: data[k] for k in ITEM_FIELDS if k in data}
        item = line_item_service.update_item(kind, document_id, item_id, actor=_actor(), **changes)
        return jsonify({"item": item.to_dict(), "document": _document_dict(kind, document_id)}), 200
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to update item %s on %s %s", item_id, kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.delete(f"/{KIND}/<document_id>/items/<item_id>")
def remove_item_route(kind_code: str, document_id: str, item_id: str):
    try:
        kind = get_kind(kind_code)
        document = line_item_service.remove_item(kind, document_id, item_id, actor=_actor())
        return jsonify({"document": document.to_dict()}), 200
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to remove item %s from %s %s", item_id, kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PAYMENTS
# =============================================================================

@documents_bp.post(f"/{KIND}/<document_id>/payments")
def add_payment_route(kind_code: str, document_id: str):
    """
    Request body:
    {
        "amount": 20.0,
        "method": "Cash",        (Cash | Card | Bank Transfer | Check | Other)
        "date": "2026-01-05T10:00:00Z",  (optional)
        "received_by": "...",    (optional)
        "session_id": "...",     (optional, must be open)
        "notes": "..."
    }
    """
    try:
        kind = get_kind(kind_code)
        payment = payment_service.add_payment(kind, document_id, actor=_actor(), **_payment_args(_payload()))
        return jsonify({"payment": payment.to_dict(), "document": _document_dict(kind, document_id)}), 201
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to add payment to %s %s", kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.get(f"/{KIND}/<document_id>/payments")
def list_payments_route(kind_code: str, document_id: str):
    try:
        kind = get_kind(kind_code)
        payments = payment_service.get_payments(kind, document_id)
        return jsonify({"payments": [p.to_dict() for p in payments]}), 200
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to list payments for %s %s", kind_code, document_id)
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# ATOMIC SUBMISSION
# =============================================================================

@documents_bp.post("/transactions/submit")
def submit_transaction_route():
    """
    Create a transaction with items and payments in one step.

    Request body:
    {
        "transaction_type": "Sale",
        "party_id": "...",
        "status": "Completed",
        "items": [{"name": "...", "quantity": 1, "unit_price": 10.0, "catalog_item_id": "..."}],
        "payments": [{"amount": 10.0, "method": "Cash"}]
    }
    """
    try:
        data = _payload()
        header = {k: data[k] for k in HEADER_FIELDS if data.get(k) is not None}
        if data.get("id"):
            header["document_id"] = data["id"]
        items = [_item_args(line) for line in data.get("items") or []]
        payments = [_payment_args(p) for p in data.get("payments") or []]

        document = lifecycle_service.submit_transaction(items=items, payments=payments, actor=_actor(), **header)
        return jsonify(lifecycle_service.get_document_details(TRANSACTIONS, document.id)), 201
    except LedgerError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to submit transaction")
        return jsonify({"error": "Internal server error"}), 500
