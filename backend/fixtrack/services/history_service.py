# Overview: Append-only audit events for documents.

from __future__ import annotations

from ..extensions import db
from ..models import DocumentEventType
from .kinds import DocumentKind, load_document


def record_document_event(
    kind: DocumentKind,
    document,
    event_type: DocumentEventType,
    details: str | None = None,
    actor: str | None = None,
):
    """Append one history row; flushed with the caller's unit, never committed here."""
    event = kind.history_model(
        document_id=document.id,
        event_type=event_type,
        details=details,
        changed_by=actor,
    )
    db.session.add(event)
    return event


def get_document_history(kind: DocumentKind, document_id: str) -> list:
    load_document(kind, document_id)
    model = kind.history_model
    return (
        db.session.query(model)
        .filter(model.document_id == document_id)
        .order_by(model.date.desc())
        .all()
    )
