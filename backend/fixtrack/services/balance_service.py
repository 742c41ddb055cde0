# Overview: Service-layer counterparty balance adjustments; encapsulates business logic and database work.

"""
Party Balance Adjuster

Sign convention (credit_balance):
- Client:   > 0 means the client owes the business
- Supplier: > 0 means the business owes the supplier

A document taking effect adds its total; a payment subtracts its amount;
reversals apply the negated amount. Amounts smaller than BALANCE_EPSILON
still move the balance but leave no history row.
"""

from __future__ import annotations

import math

from flask import current_app

from ..extensions import db
from ..models import (
    Client, ClientHistory, Supplier, SupplierHistory,
    PartyKind, PartyEventType,
)
from ..models.enums import coerce_enum
from .concurrency import begin_write, lock_for_update, run_with_retry
from .errors import NotFoundError, ValidationError


PARTY_MODELS = {
    PartyKind.CLIENT: (Client, ClientHistory),
    PartyKind.SUPPLIER: (Supplier, SupplierHistory),
}


def _party_models(party_kind):
    try:
        return PARTY_MODELS[coerce_enum(PartyKind, party_kind)]
    except ValueError:
        raise ValidationError(
            f"Invalid party kind '{party_kind}'",
            details={"allowed": [k.value for k in PartyKind]},
        )


def get_party(party_kind, party_id: str, *, lock: bool = False):
    """Load a client or supplier; NotFoundError if missing."""
    party_model, _ = _party_models(party_kind)
    query = db.session.query(party_model).filter_by(id=party_id)
    if lock:
        query = lock_for_update(query)
    party = query.first()
    if not party:
        raise NotFoundError(
            f"{party_model.party_kind.value} not found",
            details={"party_id": party_id, "party_kind": party_model.party_kind.value},
        )
    return party


def find_party_name(party_kind, party_id: str) -> str | None:
    party_model, _ = _party_models(party_kind)
    party = db.session.get(party_model, party_id)
    return party.name if party else None


def apply_party_balance(
    party_kind,
    party_id: str,
    amount: float,
    event_type: PartyEventType,
    notes: str | None = None,
    related_id: str | None = None,
    actor: str | None = None,
):
    """
    Add ``amount`` to the party's credit_balance (NULL counts as 0).

    Returns the appended history row, or None when |amount| is below the
    configured epsilon (the balance is still written in that case).

    Does not commit; runs inside the caller's atomic unit.
    """
    _, history_model = _party_models(party_kind)
    party = get_party(party_kind, party_id, lock=True)

    party.credit_balance = (party.credit_balance or 0.0) + amount

    epsilon = current_app.config.get("BALANCE_EPSILON", 0.001)
    if abs(amount) < epsilon:
        current_app.logger.debug(
            "Balance change %.6f for %s %s below %.3f; history not recorded (%s)",
            amount, party.party_kind.value, party_id, epsilon, event_type.value,
        )
        return None

    entry = history_model(
        party_id=party.id,
        event_type=event_type,
        amount=amount,
        notes=notes,
        related_id=related_id,
        changed_by=actor,
    )
    db.session.add(entry)
    return entry


def adjust_balance(party_kind, party_id: str, amount: float, notes: str | None = None, actor: str | None = None):
    """Manual correction of a party balance, outside any document."""
    if amount is None:
        raise ValidationError("amount is required")
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("amount must be a number", details={"amount": amount})
    if not math.isfinite(amount):
        raise ValidationError("amount must be finite", details={"amount": str(amount)})

    def _op():
        begin_write()
        apply_party_balance(
            party_kind,
            party_id,
            amount,
            PartyEventType.MANUAL_ADJUSTMENT,
            notes=notes or "Manual balance adjustment",
            actor=actor,
        )
        db.session.commit()
        return get_party(party_kind, party_id)

    return run_with_retry(_op)


def get_party_history(party_kind, party_id: str) -> list:
    """Balance history for one party, newest first."""
    _, history_model = _party_models(party_kind)
    get_party(party_kind, party_id)
    return (
        db.session.query(history_model)
        .filter(history_model.party_id == party_id)
        .order_by(history_model.date.desc())
        .all()
    )
