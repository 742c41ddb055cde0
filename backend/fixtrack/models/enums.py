# Overview: Closed vocabularies for document, payment, party and stock fields.

from __future__ import annotations

import enum

from ..extensions import db


class DocumentStatus(str, enum.Enum):
    DRAFT = "Draft"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentStatus(str, enum.Enum):
    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


class PartyKind(str, enum.Enum):
    CLIENT = "Client"
    SUPPLIER = "Supplier"


class TransactionType(str, enum.Enum):
    SALE = "Sale"
    PURCHASE = "Purchase"

    @property
    def stock_direction(self) -> int:
        """Sign applied to line quantities when the document takes effect."""
        return 1 if self is TransactionType.PURCHASE else -1


class PaymentMethod(str, enum.Enum):
    CASH = "Cash"
    CARD = "Card"
    BANK_TRANSFER = "Bank Transfer"
    CHECK = "Check"
    OTHER = "Other"


class DocumentEventType(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    COMPLETED = "completed"
    REVERTED = "reverted"
    CANCELLED = "cancelled"
    ITEM_ADDED = "item_added"
    ITEM_UPDATED = "item_updated"
    ITEM_REMOVED = "item_removed"
    PAYMENT_ADDED = "payment_added"


class PartyEventType(str, enum.Enum):
    SALE_COMPLETED = "Sale Completed"
    PURCHASE_COMPLETED = "Purchase Completed"
    PAYMENT_RECEIVED = "Payment Received"
    PAYMENT_MADE = "Payment Made"
    BALANCE_ADJUSTED = "Balance Adjusted"
    MANUAL_ADJUSTMENT = "Manual Adjustment"
    REVERTED_TO_DRAFT = "Reverted to Draft"
    CANCELLED = "Cancelled"
    REASSIGNED = "Reassigned"


class InventoryEventType(str, enum.Enum):
    PURCHASED = "Purchased"
    SOLD = "Sold"
    ADJUSTMENT = "Adjustment"


class SessionStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


def enum_column_type(enum_cls: type[enum.Enum]) -> db.Enum:
    """
    Column type that stores the enum's value (not its member name).

    A CHECK constraint is emitted so the store itself rejects values outside
    the vocabulary, even for rows written without going through the ORM.
    """
    return db.Enum(
        enum_cls,
        native_enum=False,
        create_constraint=True,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


def coerce_enum(enum_cls: type[enum.Enum], value):
    """Return the enum member for ``value`` (member or raw value); ValueError if unknown."""
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)
