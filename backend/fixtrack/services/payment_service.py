# Overview: Service-layer payment ledger for documents; encapsulates business logic and database work.

"""
Payment Ledger

Payments are append-only. Adding one:
1. inserts the payment row
2. recomputes paid_amount and payment_status on the document
3. reduces the counterparty balance by the amount
4. appends a document history event

All four steps run in one atomic unit.
"""

from __future__ import annotations

import math

from sqlalchemy import func

from ..extensions import db
from ..models import (
    CashSession, DocumentEventType, DocumentStatus, PartyEventType, PartyKind,
    PaymentMethod, PaymentStatus, SessionStatus,
)
from ..models.base import new_id
from ..models.enums import coerce_enum
from .balance_service import apply_party_balance
from .concurrency import begin_write, run_with_retry
from .errors import LifecycleError, NotFoundError, ValidationError
from .history_service import record_document_event
from .kinds import DocumentKind, load_document


def derive_payment_status(paid: float, total: float) -> PaymentStatus:
    """
    Payment status as a pure function of (paid, total).

    Paid wins whenever paid covers total, so an empty document reads Paid.
    """
    paid = paid or 0.0
    if paid >= total:
        return PaymentStatus.PAID
    if paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def refresh_payment_status(kind: DocumentKind, document) -> PaymentStatus:
    """Recompute paid_amount from the payment rows and derive payment_status."""
    model = kind.payment_model
    paid = (
        db.session.query(func.coalesce(func.sum(model.amount), 0.0))
        .filter(model.document_id == document.id)
        .scalar()
    )
    document.paid_amount = round(paid or 0.0, 2)
    document.payment_status = derive_payment_status(document.paid_amount, document.total_amount or 0.0)
    return document.payment_status


def validate_payment_amount(amount) -> float:
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("amount must be a number", details={"amount": amount})
    if not math.isfinite(amount):
        raise ValidationError("amount must be finite", details={"amount": str(amount)})
    if amount <= 0:
        raise ValidationError("amount must be positive", details={"amount": amount})
    return amount


def _payment_event_for(party_kind) -> PartyEventType:
    if coerce_enum(PartyKind, party_kind) is PartyKind.CLIENT:
        return PartyEventType.PAYMENT_RECEIVED
    return PartyEventType.PAYMENT_MADE


def add_payment_locked(
    kind: DocumentKind,
    document,
    *,
    amount,
    method=PaymentMethod.CASH,
    date=None,
    received_by: str | None = None,
    notes: str | None = None,
    session_id: str | None = None,
    payment_id: str | None = None,
    actor: str | None = None,
):
    """Payment steps without commit; shared by add_payment and document submission."""
    amount = validate_payment_amount(amount)
    try:
        method = coerce_enum(PaymentMethod, method or PaymentMethod.CASH)
    except ValueError:
        raise ValidationError(
            f"Invalid payment method '{method}'",
            details={"allowed": [m.value for m in PaymentMethod]},
        )

    if document.status == DocumentStatus.CANCELLED:
        raise LifecycleError(
            f"Cannot add payments to a cancelled {kind.label.lower()}",
            details={"document_id": document.id},
        )

    if session_id:
        session = db.session.get(CashSession, session_id)
        if not session:
            raise NotFoundError("Cash session not found", details={"session_id": session_id})
        if session.status != SessionStatus.OPEN:
            raise LifecycleError("Cash session is closed", details={"session_id": session_id})

    payment = kind.payment_model(
        id=payment_id or new_id(),
        document_id=document.id,
        amount=amount,
        method=method,
        received_by=received_by or actor,
        notes=notes,
        session_id=session_id,
    )
    if date is not None:
        payment.date = date
    db.session.add(payment)

    refresh_payment_status(kind, document)

    apply_party_balance(
        document.party_kind,
        document.party_id,
        -amount,
        _payment_event_for(document.party_kind),
        notes=f"Payment for {kind.label.lower()} {document.number}",
        related_id=document.id,
        actor=actor,
    )

    record_document_event(
        kind,
        document,
        DocumentEventType.PAYMENT_ADDED,
        f"Payment of {amount:.2f} ({method.value}) added",
        actor,
    )
    return payment


def add_payment(kind: DocumentKind, document_id: str, *, actor: str | None = None, **payment):
    """
    Record a payment against a document.

    Args:
        kind: document kind
        document_id: owning document
        actor: user recorded on history rows
        payment: amount, method, date, received_by, notes, session_id, payment_id

    Raises:
        NotFoundError: document or cash session missing
        ValidationError: non-positive amount or unknown method
        LifecycleError: document cancelled or session closed
        ConstraintError: payment_id already used
    """
    def _op():
        begin_write()
        document = load_document(kind, document_id, lock=True)
        created = add_payment_locked(kind, document, actor=actor, **payment)
        db.session.commit()
        return created

    return run_with_retry(_op)


def get_payments(kind: DocumentKind, document_id: str) -> list:
    """Payments for a document, newest first."""
    load_document(kind, document_id)
    model = kind.payment_model
    return (
        db.session.query(model)
        .filter(model.document_id == document_id)
        .order_by(model.date.desc())
        .all()
    )
