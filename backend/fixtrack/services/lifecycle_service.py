# Overview: Service-layer document lifecycle (create, complete, revert, cancel, submit); encapsulates business logic and database work.

"""
Document Lifecycle Controller

One engine drives purchase orders, customer sales and generic transactions.
The DocumentKind passed in selects the tables; the document row supplies
counterparty kind, stock direction and number prefix.

STATES:
- Draft: items and payments accumulate; stock and balance untouched by items
- Completed: the document's items and total are applied to stock and to the
  counterparty balance exactly once
- Cancelled (transactions only): terminal; any applied effects are reversed
  on the way in

TRANSITIONS:
- Draft -> Completed: apply every catalog line to stock, +total to party
- Completed -> Completed: no-op
- Completed -> Draft: exact reversal (stock and balance)
- Completed -> Cancelled: exact reversal, then freeze
- party change while Completed: -total from the old party, +total to the new

Every public function is one atomic unit: it either commits all of its
statements or none.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import (
    DocumentEventType, DocumentStatus, PartyEventType, PartyKind, TransactionType,
)
from ..models.base import new_id
from ..models.enums import coerce_enum
from .balance_service import apply_party_balance, find_party_name, get_party
from .concurrency import begin_write, run_with_retry
from .errors import LifecycleError, ValidationError
from .history_service import record_document_event
from .inventory_service import apply_stock_delta, stock_event_for
from .kinds import TRANSACTIONS, DocumentKind, load_document
from .line_item_service import UNSET, add_item_locked, recalculate_document
from .numbering_service import next_document_number
from .payment_service import add_payment_locked


UNKNOWN_PARTY_NAMES = {
    PartyKind.CLIENT: "Unknown Client",
    PartyKind.SUPPLIER: "Unknown Supplier",
}


def _coerce(enum_cls, value, field: str):
    try:
        return coerce_enum(enum_cls, value)
    except ValueError:
        raise ValidationError(
            f"Invalid {field} '{value}'",
            details={"field": field, "allowed": [m.value for m in enum_cls]},
        )


def _resolve_party_kind(kind: DocumentKind, party_kind, transaction_type: TransactionType | None):
    """Orders and sales have a fixed counterparty kind; transactions default it from their type."""
    model = kind.document_model
    if kind is TRANSACTIONS:
        if party_kind is None:
            return PartyKind.CLIENT if transaction_type is TransactionType.SALE else PartyKind.SUPPLIER
        return _coerce(PartyKind, party_kind, "party_kind")

    fixed = model.party_kind
    if party_kind is not None and _coerce(PartyKind, party_kind, "party_kind") is not fixed:
        raise ValidationError(
            f"{kind.label} counterparty must be a {fixed.value.lower()}",
            details={"party_kind": str(party_kind)},
        )
    return fixed


def _completion_event(document) -> PartyEventType:
    if document.transaction_type is TransactionType.SALE:
        return PartyEventType.SALE_COMPLETED
    return PartyEventType.PURCHASE_COMPLETED


def _apply_document_effects(
    kind: DocumentKind,
    document,
    sign: int,
    *,
    party_kind,
    party_id: str,
    party_event: PartyEventType,
    reason: str,
    actor: str | None,
) -> None:
    """
    Apply (sign=+1) or reverse (sign=-1) the document's full effect.

    Stock: sign * stock_direction * quantity per catalog-linked line.
    Balance: sign * total_amount on the given party.
    """
    item_model = kind.item_model
    lines = (
        db.session.query(item_model)
        .filter(item_model.document_id == document.id, item_model.catalog_item_id.isnot(None))
        .all()
    )
    for line in lines:
        delta = sign * document.stock_direction * line.quantity
        apply_stock_delta(
            line.catalog_item_id,
            delta,
            stock_event_for(delta, reversal=sign < 0),
            notes=f"{reason}: {line.name}",
            related_id=document.id,
        )

    apply_party_balance(
        party_kind,
        party_id,
        sign * (document.total_amount or 0.0),
        party_event,
        notes=reason,
        related_id=document.id,
        actor=actor,
    )


def _complete_locked(kind: DocumentKind, document, actor: str | None = None):
    if document.status == DocumentStatus.COMPLETED:
        current_app.logger.debug("%s %s already completed", kind.label, document.number)
        return document
    if document.status == DocumentStatus.CANCELLED:
        raise LifecycleError(
            f"Cannot complete a cancelled {kind.label.lower()}",
            details={"document_id": document.id},
        )

    recalculate_document(kind, document)
    _apply_document_effects(
        kind,
        document,
        +1,
        party_kind=document.party_kind,
        party_id=document.party_id,
        party_event=_completion_event(document),
        reason=f"{kind.label} {document.number} completed",
        actor=actor,
    )
    document.status = DocumentStatus.COMPLETED
    record_document_event(
        kind,
        document,
        DocumentEventType.COMPLETED,
        f"{kind.label} completed with total {document.total_amount:.2f}",
        actor,
    )
    current_app.logger.info("%s %s completed (total %.2f)", kind.label, document.number, document.total_amount)
    return document


def _leave_completed_locked(kind: DocumentKind, document, target: DocumentStatus, actor: str | None):
    """Reverse a completed document's effects on its current party and move it to ``target``."""
    if target == DocumentStatus.CANCELLED:
        party_event, event, verb = PartyEventType.CANCELLED, DocumentEventType.CANCELLED, "cancelled"
    else:
        party_event, event, verb = PartyEventType.REVERTED_TO_DRAFT, DocumentEventType.REVERTED, "reverted to draft"

    _apply_document_effects(
        kind,
        document,
        -1,
        party_kind=document.party_kind,
        party_id=document.party_id,
        party_event=party_event,
        reason=f"{kind.label} {document.number} {verb}",
        actor=actor,
    )
    document.status = target
    record_document_event(kind, document, event, f"{kind.label} {verb}; total {document.total_amount:.2f} reversed", actor)
    current_app.logger.info("%s %s %s", kind.label, document.number, verb)


def _create_locked(
    kind: DocumentKind,
    *,
    party_id: str,
    party_kind=None,
    transaction_type=None,
    number: str | None = None,
    status=DocumentStatus.DRAFT,
    notes: str | None = None,
    created_by: str | None = None,
    document_id: str | None = None,
    actor: str | None = None,
):
    if not party_id:
        raise ValidationError("party_id is required")

    status = _coerce(DocumentStatus, status or DocumentStatus.DRAFT, "status")
    if status == DocumentStatus.CANCELLED and not kind.allows_cancel:
        raise LifecycleError(f"{kind.label} cannot be cancelled")

    model = kind.document_model
    fields = {}
    if kind is TRANSACTIONS:
        if transaction_type is None:
            raise ValidationError("transaction_type is required")
        transaction_type = _coerce(TransactionType, transaction_type, "transaction_type")
        fields["transaction_type"] = transaction_type
        fields["party_kind"] = _resolve_party_kind(kind, party_kind, transaction_type)
        resolved_party_kind = fields["party_kind"]
    else:
        resolved_party_kind = _resolve_party_kind(kind, party_kind, None)

    get_party(resolved_party_kind, party_id)

    document = model(
        id=document_id or new_id(),
        party_id=party_id,
        status=DocumentStatus.DRAFT,
        total_amount=0.0,
        paid_amount=0.0,
        notes=notes,
        created_by=created_by or actor,
        **fields,
    )
    document.number = number or next_document_number(model, document.number_prefix)
    db.session.add(document)
    # Surface a duplicate number or id before any dependent rows are written.
    db.session.flush()
    recalculate_document(kind, document)

    record_document_event(kind, document, DocumentEventType.CREATED, f"{kind.label} {document.number} created", actor)

    if status == DocumentStatus.COMPLETED:
        _complete_locked(kind, document, actor)
    elif status == DocumentStatus.CANCELLED:
        document.status = DocumentStatus.CANCELLED
        record_document_event(kind, document, DocumentEventType.CANCELLED, f"{kind.label} created as cancelled", actor)

    return document


# =============================================================================
# PUBLIC OPERATIONS
# =============================================================================

def create_document(kind: DocumentKind, **header):
    """
    Create a document header.

    Header fields: party_id (required), party_kind, transaction_type
    (transactions only, required there), number (generated when empty),
    status (Draft by default; Completed applies effects immediately),
    notes, created_by, document_id, actor.

    Raises:
        NotFoundError: counterparty missing
        ValidationError: bad enum value or missing field
        ConstraintError: number or id already used
    """
    def _op():
        begin_write()
        document = _create_locked(kind, **header)
        db.session.commit()
        return document

    return run_with_retry(_op)


def get_documents(kind: DocumentKind, status=None, transaction_type=None) -> list:
    """Documents of ``kind`` newest first, optionally filtered by status and (transactions) type."""
    model = kind.document_model
    query = db.session.query(model)
    if status:
        query = query.filter(model.status == _coerce(DocumentStatus, status, "status"))
    if transaction_type and kind is TRANSACTIONS:
        query = query.filter(model.transaction_type == _coerce(TransactionType, transaction_type, "transaction_type"))
    return query.order_by(model.created_at.desc(), model.number.desc()).all()


def get_document_details(kind: DocumentKind, document_id: str) -> dict | None:
    """Header, items, payments and counterparty name; None if the document does not exist."""
    model = kind.document_model
    document = db.session.get(model, document_id)
    if document is None:
        return None

    item_model = kind.item_model
    payment_model = kind.payment_model
    items = db.session.query(item_model).filter(item_model.document_id == document.id).all()
    payments = (
        db.session.query(payment_model)
        .filter(payment_model.document_id == document.id)
        .order_by(payment_model.date.desc())
        .all()
    )
    party_name = find_party_name(document.party_kind, document.party_id)

    data = document.to_dict()
    data["party_name"] = party_name or UNKNOWN_PARTY_NAMES[document.party_kind]
    data["items"] = [item.to_dict() for item in items]
    data["payments"] = [payment.to_dict() for payment in payments]
    return data


def complete_document(kind: DocumentKind, document_id: str, *, actor: str | None = None):
    """Draft -> Completed. Calling it on a completed document changes nothing."""
    def _op():
        begin_write()
        document = load_document(kind, document_id, lock=True)
        _complete_locked(kind, document, actor)
        db.session.commit()
        return document

    return run_with_retry(_op)


def update_header(
    kind: DocumentKind,
    document_id: str,
    *,
    party_id=UNSET,
    party_kind=UNSET,
    status=UNSET,
    notes=UNSET,
    actor: str | None = None,
):
    """
    Edit header fields; status and counterparty changes drive the state machine.

    Totals and payment status are derived and cannot be set here.

    Raises:
        NotFoundError: document or new counterparty missing
        ValidationError: bad enum value
        LifecycleError: document cancelled, or cancel requested on a kind without it
    """
    def _op():
        begin_write()
        document = load_document(kind, document_id, lock=True)
        if document.status == DocumentStatus.CANCELLED:
            raise LifecycleError(
                f"{kind.label} {document.number} is cancelled",
                details={"document_id": document.id},
            )

        new_status = document.status if status is UNSET else _coerce(DocumentStatus, status, "status")
        if new_status == DocumentStatus.CANCELLED and not kind.allows_cancel:
            raise LifecycleError(f"{kind.label} cannot be cancelled", details={"document_id": document.id})

        new_party_kind = document.party_kind
        if party_kind is not UNSET and party_kind is not None:
            new_party_kind = _resolve_party_kind(kind, party_kind, document.transaction_type)
        new_party_id = document.party_id if party_id is UNSET or not party_id else party_id
        party_changed = (new_party_id, new_party_kind) != (document.party_id, document.party_kind)
        if party_changed:
            get_party(new_party_kind, new_party_id)

        was_completed = document.is_completed
        changes = []

        if was_completed and new_status != DocumentStatus.COMPLETED:
            _leave_completed_locked(kind, document, new_status, actor)
            changes.append(f"status Completed -> {new_status.value}")
        elif was_completed and party_changed:
            recalculate_document(kind, document)
            total = document.total_amount or 0.0
            reason = f"{kind.label} {document.number} reassigned"
            apply_party_balance(
                document.party_kind, document.party_id, -total,
                PartyEventType.REASSIGNED, notes=f"{reason} to {new_party_id}",
                related_id=document.id, actor=actor,
            )
            apply_party_balance(
                new_party_kind, new_party_id, total,
                PartyEventType.REASSIGNED, notes=f"{reason} from {document.party_id}",
                related_id=document.id, actor=actor,
            )

        if party_changed:
            changes.append(f"party {document.party_id} -> {new_party_id}")
            document.party_id = new_party_id
            if kind is TRANSACTIONS:
                document.party_kind = new_party_kind

        if notes is not UNSET:
            document.notes = notes
            changes.append("notes")

        if not was_completed and new_status != document.status:
            if new_status == DocumentStatus.COMPLETED:
                _complete_locked(kind, document, actor)
            else:
                document.status = new_status
                if new_status == DocumentStatus.CANCELLED:
                    record_document_event(kind, document, DocumentEventType.CANCELLED, f"{kind.label} cancelled", actor)
            changes.append(f"status Draft -> {new_status.value}")

        record_document_event(
            kind,
            document,
            DocumentEventType.UPDATED,
            "Updated: " + (", ".join(changes) if changes else "no changes"),
            actor,
        )
        db.session.commit()
        return document

    return run_with_retry(_op)


def submit_transaction(*, items=(), payments=(), actor: str | None = None, **header):
    """
    Create a transaction with its items and payments in one atomic unit.

    ``header`` takes the create_document fields. When its status is
    Completed the transaction is completed after the items are in place, so
    stock and balance see the full derived total exactly once. Each payment
    then reduces the counterparty balance as usual. Any failure leaves no
    rows behind.
    """
    requested = _coerce(DocumentStatus, header.pop("status", None) or DocumentStatus.DRAFT, "status")
    if requested == DocumentStatus.CANCELLED:
        raise LifecycleError("Cannot submit a cancelled transaction")

    def _op():
        begin_write()
        document = _create_locked(TRANSACTIONS, actor=actor, **header)
        for line in items:
            add_item_locked(TRANSACTIONS, document, actor=actor, **line)
        if requested == DocumentStatus.COMPLETED:
            _complete_locked(TRANSACTIONS, document, actor)
        for payment in payments:
            add_payment_locked(TRANSACTIONS, document, actor=actor, **payment)
        db.session.commit()
        return document

    return run_with_retry(_op)
