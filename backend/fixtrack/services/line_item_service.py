# Overview: Service-layer line-item ledger for documents; encapsulates business logic and database work.

"""
Line-Item Ledger

Every item mutation recomputes the document's total_amount from the item
rows and then its payment status. While the document is Completed the
mutation also takes effect immediately:

- stock moves by stock_direction * quantity for catalog-linked lines
  (the old quantity is reversed before the new one is applied)
- the counterparty balance moves by (new_total - old_total)

Cancelled documents are frozen.
"""

from __future__ import annotations

import math

from sqlalchemy import func

from ..extensions import db
from ..models import DocumentEventType, DocumentStatus, InventoryItem, PartyEventType
from ..models.base import new_id
from .balance_service import apply_party_balance
from .concurrency import begin_write, run_with_retry
from .errors import LifecycleError, NotFoundError, ValidationError
from .history_service import record_document_event
from .inventory_service import apply_stock_delta, stock_event_for
from .kinds import DocumentKind, load_document
from .payment_service import refresh_payment_status


UNSET = object()


def line_total(quantity: int, unit_price: float) -> float:
    return round(quantity * unit_price, 2)


def validate_line(quantity, unit_price) -> tuple[int, float]:
    """Coerce and check quantity (positive integer) and unit price (non-negative)."""
    try:
        quantity_int = int(quantity)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError("quantity must be an integer", details={"quantity": quantity})
    if quantity_int != quantity and not isinstance(quantity, str):
        raise ValidationError("quantity must be an integer", details={"quantity": quantity})
    if quantity_int <= 0:
        raise ValidationError("quantity must be positive", details={"quantity": quantity})

    try:
        price = float(unit_price)
    except (TypeError, ValueError):
        raise ValidationError("unit_price must be a number", details={"unit_price": unit_price})
    if not math.isfinite(price):
        raise ValidationError("unit_price must be finite", details={"unit_price": str(unit_price)})
    if price < 0:
        raise ValidationError("unit_price cannot be negative", details={"unit_price": unit_price})

    return quantity_int, price


def recalculate_document(kind: DocumentKind, document) -> float:
    """Recompute total_amount from item rows, then payment status. Returns the new total."""
    model = kind.item_model
    total = (
        db.session.query(func.coalesce(func.sum(model.total_price), 0.0))
        .filter(model.document_id == document.id)
        .scalar()
    )
    document.total_amount = round(total or 0.0, 2)
    refresh_payment_status(kind, document)
    return document.total_amount


def ensure_mutable(kind: DocumentKind, document) -> None:
    if document.status == DocumentStatus.CANCELLED:
        raise LifecycleError(
            f"{kind.label} {document.number} is cancelled",
            details={"document_id": document.id},
        )


def _ensure_catalog_item(catalog_item_id: str | None) -> None:
    if catalog_item_id and not db.session.get(InventoryItem, catalog_item_id):
        raise NotFoundError("Catalog item not found", details={"catalog_item_id": catalog_item_id})


def _apply_total_change(kind: DocumentKind, document, old_total: float, new_total: float, actor):
    delta = new_total - old_total
    if delta == 0:
        return
    apply_party_balance(
        document.party_kind,
        document.party_id,
        delta,
        PartyEventType.BALANCE_ADJUSTED,
        notes=f"{kind.label} {document.number} total changed from {old_total:.2f} to {new_total:.2f}",
        related_id=document.id,
        actor=actor,
    )


def add_item_locked(
    kind: DocumentKind,
    document,
    *,
    name: str,
    quantity,
    unit_price,
    catalog_item_id: str | None = None,
    notes: str | None = None,
    item_id: str | None = None,
    actor: str | None = None,
):
    """Item insertion without commit; shared by add_item and document submission."""
    if not name:
        raise ValidationError("name is required")
    quantity, unit_price = validate_line(quantity, unit_price)
    ensure_mutable(kind, document)
    _ensure_catalog_item(catalog_item_id)

    old_total = document.total_amount or 0.0

    item = kind.item_model(
        id=item_id or new_id(),
        document_id=document.id,
        catalog_item_id=catalog_item_id or None,
        name=name,
        quantity=quantity,
        unit_price=unit_price,
        total_price=line_total(quantity, unit_price),
        notes=notes,
    )
    db.session.add(item)
    new_total = recalculate_document(kind, document)

    if document.is_completed:
        if item.catalog_item_id:
            delta = document.stock_direction * quantity
            apply_stock_delta(
                item.catalog_item_id,
                delta,
                stock_event_for(delta),
                notes=f"{name} added to {kind.label.lower()} {document.number}",
                related_id=document.id,
            )
        _apply_total_change(kind, document, old_total, new_total, actor)

    record_document_event(
        kind,
        document,
        DocumentEventType.ITEM_ADDED,
        f"Added {quantity} x {name} @ {unit_price:.2f}",
        actor,
    )
    return item


def add_item(kind: DocumentKind, document_id: str, *, actor: str | None = None, **item):
    """
    Add a line item to a document.

    Args:
        item: name, quantity, unit_price, catalog_item_id, notes, item_id

    Raises:
        NotFoundError: document or catalog item missing
        ValidationError: bad quantity/price/name
        LifecycleError: document cancelled
        ConstraintError: item_id already used
    """
    def _op():
        begin_write()
        document = load_document(kind, document_id, lock=True)
        created = add_item_locked(kind, document, actor=actor, **item)
        db.session.commit()
        return created

    return run_with_retry(_op)


def update_item(
    kind: DocumentKind,
    document_id: str,
    item_id: str,
    *,
    name=UNSET,
    quantity=UNSET,
    unit_price=UNSET,
    catalog_item_id=UNSET,
    notes=UNSET,
    actor: str | None = None,
):
    """
    Edit an existing line item. Omitted fields keep their current value.

    Raises:
        NotFoundError: document, item or new catalog item missing
        ValidationError: bad quantity/price/name
        LifecycleError: document cancelled
    """
    def _op():
        begin_write()
        document = load_document(kind, document_id, lock=True)
        model = kind.item_model
        item = db.session.query(model).filter_by(id=item_id, document_id=document.id).first()
        if not item:
            raise NotFoundError(
                "Line item not found",
                details={"document_id": document_id, "item_id": item_id},
            )
        ensure_mutable(kind, document)

        new_quantity, new_price = validate_line(
            item.quantity if quantity is UNSET else quantity,
            item.unit_price if unit_price is UNSET else unit_price,
        )
        new_catalog = item.catalog_item_id if catalog_item_id is UNSET else (catalog_item_id or None)
        if name is not UNSET and not name:
            raise ValidationError("name is required")
        _ensure_catalog_item(new_catalog)

        old_quantity = item.quantity
        old_catalog = item.catalog_item_id
        old_total = document.total_amount or 0.0

        if name is not UNSET:
            item.name = name
        if notes is not UNSET:
            item.notes = notes
        item.quantity = new_quantity
        item.unit_price = new_price
        item.catalog_item_id = new_catalog
        item.total_price = line_total(new_quantity, new_price)

        new_total = recalculate_document(kind, document)

        if document.is_completed:
            direction = document.stock_direction
            label = f"{item.name} updated on {kind.label.lower()} {document.number}"
            if old_catalog and old_catalog == new_catalog:
                net = direction * (new_quantity - old_quantity)
                apply_stock_delta(old_catalog, net, stock_event_for(net, reversal=True), label, document.id)
            else:
                if old_catalog:
                    apply_stock_delta(
                        old_catalog, -direction * old_quantity,
                        stock_event_for(0, reversal=True), label, document.id,
                    )
                if new_catalog:
                    delta = direction * new_quantity
                    apply_stock_delta(new_catalog, delta, stock_event_for(delta), label, document.id)
            _apply_total_change(kind, document, old_total, new_total, actor)

        record_document_event(
            kind,
            document,
            DocumentEventType.ITEM_UPDATED,
            f"Updated {item.name}: {old_quantity} -> {new_quantity} @ {new_price:.2f}",
            actor,
        )
        db.session.commit()
        return item

    return run_with_retry(_op)


def remove_item(kind: DocumentKind, document_id: str, item_id: str, *, actor: str | None = None):
    """
    Delete a line item and return the refreshed document.

    A missing item id leaves stock and balances untouched but the total and
    payment status are still recomputed from the remaining rows.
    """
    def _op():
        begin_write()
        document = load_document(kind, document_id, lock=True)
        ensure_mutable(kind, document)

        model = kind.item_model
        item = db.session.query(model).filter_by(id=item_id, document_id=document.id).first()
        old_total = document.total_amount or 0.0

        removed = None
        if item:
            removed = (item.name, item.quantity, item.catalog_item_id)
            db.session.delete(item)

        new_total = recalculate_document(kind, document)

        if removed:
            name, quantity, catalog_item_id = removed
            if document.is_completed:
                if catalog_item_id:
                    apply_stock_delta(
                        catalog_item_id,
                        -document.stock_direction * quantity,
                        stock_event_for(0, reversal=True),
                        f"{name} removed from {kind.label.lower()} {document.number}",
                        document.id,
                    )
                _apply_total_change(kind, document, old_total, new_total, actor)
            record_document_event(
                kind,
                document,
                DocumentEventType.ITEM_REMOVED,
                f"Removed {quantity} x {name}",
                actor,
            )

        db.session.commit()
        return document

    return run_with_retry(_op)
