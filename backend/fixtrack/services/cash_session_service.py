# Overview: Service-layer cash drawer sessions; encapsulates business logic and database work.

"""
Cash sessions

A session opens with an opening balance and closes with the counted cash
and any withdrawal. On close, every payment not yet attached to a session
(across orders, sales and transactions) is attached to the closing one.
"""

from __future__ import annotations

import math

from flask import current_app

from ..extensions import db
from ..models import CashSession, SessionStatus
from ..time_utils import utcnow
from .concurrency import begin_write, lock_for_update, run_with_retry
from .errors import LifecycleError, NotFoundError, ValidationError
from .kinds import KINDS


def _amount(value, field: str) -> float:
    try:
        amount = float(value or 0.0)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", details={field: value})
    if not math.isfinite(amount):
        raise ValidationError(f"{field} must be finite", details={field: str(value)})
    return amount


def get_current_session() -> CashSession | None:
    """The open session, if any."""
    return (
        db.session.query(CashSession)
        .filter(CashSession.status == SessionStatus.OPEN)
        .order_by(CashSession.start_time.desc())
        .first()
    )


def start_session(opening_balance=0.0, notes: str | None = None, created_by: str | None = None) -> CashSession:
    """
    Open a new cash session.

    Raises:
        LifecycleError: a session is already open
    """
    opening_balance = _amount(opening_balance, "opening_balance")

    def _op():
        begin_write()
        current = get_current_session()
        if current:
            raise LifecycleError(
                "A session is already open. Please close it first.",
                details={"session_id": current.id},
            )
        session = CashSession(
            opening_balance=opening_balance,
            notes=notes,
            created_by=created_by,
            status=SessionStatus.OPEN,
        )
        db.session.add(session)
        db.session.commit()
        current_app.logger.info("Cash session %s opened with %.2f", session.id, opening_balance)
        return session

    return run_with_retry(_op)


def close_session(
    session_id: str,
    counted_amount,
    withdrawal_amount=0.0,
    notes: str | None = None,
) -> CashSession:
    """
    Close an open session: closing_balance = counted - withdrawal.

    Existing notes are kept when none are given.

    Raises:
        NotFoundError: unknown session
        LifecycleError: session already closed
    """
    counted = _amount(counted_amount, "counted_amount")
    withdrawal = _amount(withdrawal_amount, "withdrawal_amount")

    def _op():
        begin_write()
        session = lock_for_update(db.session.query(CashSession).filter_by(id=session_id)).first()
        if not session:
            raise NotFoundError("Cash session not found", details={"session_id": session_id})
        if session.status != SessionStatus.OPEN:
            raise LifecycleError("Cash session is already closed", details={"session_id": session_id})

        session.end_time = utcnow()
        session.counted_amount = counted
        session.withdrawal_amount = withdrawal
        session.closing_balance = counted - withdrawal
        session.status = SessionStatus.CLOSED
        if notes is not None:
            session.notes = notes

        attached = 0
        for kind in KINDS.values():
            model = kind.payment_model
            attached += (
                db.session.query(model)
                .filter(model.session_id.is_(None))
                .update({model.session_id: session.id}, synchronize_session=False)
            )

        db.session.commit()
        current_app.logger.info(
            "Cash session %s closed at %.2f (%d payments attached)",
            session.id, session.closing_balance, attached,
        )
        return session

    return run_with_retry(_op)


def get_last_closing_balance() -> float:
    """Closing balance of the most recently closed session, 0.0 if none."""
    last = (
        db.session.query(CashSession)
        .filter(CashSession.status == SessionStatus.CLOSED)
        .order_by(CashSession.end_time.desc())
        .first()
    )
    if not last or last.closing_balance is None:
        return 0.0
    return last.closing_balance
