# Overview: Catalog items with their stock counters and stock movement history.

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .base import new_id
from .enums import InventoryEventType, enum_column_type


class InventoryItem(db.Model):
    """
    Catalog item (part, device, accessory).

    quantity_in_stock is NULL for items that are not stock-tracked; the ledger
    treats NULL as 0 the first time a movement is applied.
    """
    __tablename__ = "inventory_items"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    brand = db.Column(db.String(120), nullable=True)
    item_type = db.Column("type", db.String(64), nullable=True)
    barcode = db.Column(db.String(64), nullable=True, unique=True)
    buying_price = db.Column(db.Float, nullable=True)
    selling_price = db.Column(db.Float, nullable=True)
    quantity_in_stock = db.Column(db.Integer, nullable=True, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=True, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    history = db.relationship(
        "InventoryHistory",
        backref="item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="dynamic",
    )

    @property
    def is_low_stock(self) -> bool:
        if self.quantity_in_stock is None or not self.low_stock_threshold:
            return False
        return self.quantity_in_stock <= self.low_stock_threshold

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "type": self.item_type,
            "barcode": self.barcode,
            "buying_price": self.buying_price,
            "selling_price": self.selling_price,
            "quantity_in_stock": self.quantity_in_stock,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryHistory(db.Model):
    """Append-only stock movement; quantity_change is signed."""
    __tablename__ = "inventory_history"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    item_id = db.Column(
        db.String(36),
        db.ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    event_type = db.Column(enum_column_type(InventoryEventType), nullable=False)
    quantity_change = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    related_id = db.Column(db.String(36), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "date": to_utc_z(self.date),
            "event_type": self.event_type.value,
            "quantity_change": self.quantity_change,
            "notes": self.notes,
            "related_id": self.related_id,
        }
