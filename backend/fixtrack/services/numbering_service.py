# Overview: Yearly human-readable document numbers (PREFIX-YYYY-NNN).

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..time_utils import utcnow


def next_document_number(model, prefix: str, *, year: int | None = None) -> str:
    """
    Return the next free number for ``prefix`` in ``year`` (default: current UTC year).

    The greatest existing ``PREFIX-YYYY-*`` number in the model's table is
    incremented and zero-padded. Ordering is by length first so that numbers
    past 999 still sort after 999. A missing or non-numeric suffix restarts
    the sequence at 1.

    Runs inside the caller's atomic unit; concurrent writers that still
    collide are rejected by the unique constraint on ``number``.
    """
    year = year or utcnow().year
    pad = current_app.config.get("NUMBER_PAD", 3)
    stem = f"{prefix}-{year}-"

    last = (
        db.session.query(model.number)
        .filter(model.number.like(f"{stem}%"))
        .order_by(func.length(model.number).desc(), model.number.desc())
        .limit(1)
        .scalar()
    )

    seq = 1
    if last:
        suffix = last[len(stem):]
        if suffix.isdigit():
            seq = int(suffix) + 1

    return f"{stem}{seq:0{pad}d}"
