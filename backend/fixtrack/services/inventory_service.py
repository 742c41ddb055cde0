# Overview: Service-layer stock adjustments for catalog items; encapsulates business logic and database work.

"""
Inventory Adjuster

Applies signed quantity deltas to catalog stock and appends one
inventory_history row per movement. Callers decide the sign:

- purchase lines move stock in (+quantity) when their document takes effect
- sale lines move stock out (-quantity)
- reversals apply the exact negated delta

Only lines with a catalog reference ever reach this module; ad-hoc lines
never touch stock. Functions here do not commit: they run inside the
caller's atomic unit.
"""

from __future__ import annotations

from ..extensions import db
from ..models import InventoryItem, InventoryHistory, InventoryEventType
from .concurrency import lock_for_update
from .errors import NotFoundError


def stock_event_for(delta: int, reversal: bool = False) -> InventoryEventType:
    """Event tag for a movement: forward movements are Purchased/Sold, corrections are Adjustment."""
    if reversal:
        return InventoryEventType.ADJUSTMENT
    return InventoryEventType.PURCHASED if delta > 0 else InventoryEventType.SOLD


def apply_stock_delta(
    catalog_item_id: str,
    delta: int,
    event_type: InventoryEventType,
    notes: str | None = None,
    related_id: str | None = None,
) -> InventoryHistory | None:
    """
    Add ``delta`` to the item's quantity_in_stock (NULL counts as 0).

    Returns the history row, or None when ``delta`` is zero (nothing moved,
    nothing recorded).

    Raises:
        NotFoundError: catalog item does not exist
    """
    if not delta:
        return None

    item = lock_for_update(
        db.session.query(InventoryItem).filter_by(id=catalog_item_id)
    ).first()
    if not item:
        raise NotFoundError("Catalog item not found", details={"catalog_item_id": catalog_item_id})

    item.quantity_in_stock = (item.quantity_in_stock or 0) + delta

    entry = InventoryHistory(
        item_id=item.id,
        event_type=event_type,
        quantity_change=delta,
        notes=notes,
        related_id=related_id,
    )
    db.session.add(entry)
    return entry


def get_item_history(catalog_item_id: str) -> list[InventoryHistory]:
    """Stock movements for one item, newest first."""
    if not db.session.get(InventoryItem, catalog_item_id):
        raise NotFoundError("Catalog item not found", details={"catalog_item_id": catalog_item_id})
    return (
        db.session.query(InventoryHistory)
        .filter_by(item_id=catalog_item_id)
        .order_by(InventoryHistory.date.desc())
        .all()
    )
