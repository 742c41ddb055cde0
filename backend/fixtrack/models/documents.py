# Overview: Commercial documents (purchase orders, customer sales, party transactions) with items, payments and audit history.

"""
Three document kinds share one shape:

  header  - number, counterparty, status, payment status, derived totals
  items   - quantity/price lines, optionally tied to a catalog item
  payment - money received (sales) or paid out (purchases)
  history - append-only audit trail per document

Totals on the header are derived values: total_amount is the sum of item
total_price, paid_amount the sum of payment amounts. Only the ledger
services write them.
"""

from __future__ import annotations

from sqlalchemy.orm import declared_attr

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .base import new_id
from .enums import (
    DocumentEventType,
    DocumentStatus,
    PartyKind,
    PaymentMethod,
    PaymentStatus,
    TransactionType,
    enum_column_type,
)


class DocumentMixin:
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    number = db.Column(db.String(32), nullable=False, unique=True)
    party_id = db.Column(db.String(36), nullable=False, index=True)

    status = db.Column(enum_column_type(DocumentStatus), nullable=False, default=DocumentStatus.DRAFT)
    payment_status = db.Column(enum_column_type(PaymentStatus), nullable=False, default=PaymentStatus.UNPAID)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    paid_amount = db.Column(db.Float, nullable=False, default=0.0)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    @property
    def stock_direction(self) -> int:
        return self.transaction_type.stock_direction

    @property
    def is_completed(self) -> bool:
        return self.status == DocumentStatus.COMPLETED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "party_id": self.party_id,
            "party_kind": self.party_kind.value,
            "transaction_type": self.transaction_type.value,
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class LineItemMixin:
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Float, nullable=False, default=0.0)
    total_price = db.Column(db.Float, nullable=False, default=0.0)
    notes = db.Column(db.Text, nullable=True)

    @declared_attr
    def catalog_item_id(cls):
        return db.Column(
            db.String(36),
            db.ForeignKey("inventory_items.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_id": self.document_id,
            "catalog_item_id": self.catalog_item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "notes": self.notes,
        }


class PaymentMixin:
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    amount = db.Column(db.Float, nullable=False)
    method = db.Column(enum_column_type(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    received_by = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    @declared_attr
    def session_id(cls):
        return db.Column(
            db.String(36),
            db.ForeignKey("daily_sessions.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_id": self.document_id,
            "amount": self.amount,
            "method": self.method.value,
            "date": to_utc_z(self.date),
            "received_by": self.received_by,
            "notes": self.notes,
            "session_id": self.session_id,
        }


class DocumentHistoryMixin:
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    event_type = db.Column(enum_column_type(DocumentEventType), nullable=False)
    details = db.Column(db.Text, nullable=True)
    changed_by = db.Column(db.String(128), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_id": self.document_id,
            "date": to_utc_z(self.date),
            "event_type": self.event_type.value,
            "details": self.details,
            "changed_by": self.changed_by,
        }


def _document_fk(table: str, column: str):
    return db.Column(
        column,
        db.String(36),
        db.ForeignKey(f"{table}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def _owned(model: str, order_by: str):
    return db.relationship(
        model,
        backref="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=order_by,
    )


# =============================================================================
# PURCHASE ORDERS (supplier, stock in)
# =============================================================================

class Order(DocumentMixin, db.Model):
    """Purchase order issued to a supplier."""
    __tablename__ = "orders"

    party_kind = PartyKind.SUPPLIER
    transaction_type = TransactionType.PURCHASE
    number_prefix = "ORD"

    items = _owned("OrderItem", "OrderItem.name")
    payments = _owned("OrderPayment", "OrderPayment.date")

    __mapper_args__ = {"version_id_col": DocumentMixin.version_id}


class OrderItem(LineItemMixin, db.Model):
    __tablename__ = "order_items"
    document_id = _document_fk("orders", "order_id")


class OrderPayment(PaymentMixin, db.Model):
    __tablename__ = "order_payments"
    document_id = _document_fk("orders", "order_id")


class OrderHistory(DocumentHistoryMixin, db.Model):
    __tablename__ = "order_history"
    document_id = _document_fk("orders", "order_id")


# =============================================================================
# CUSTOMER SALES (client, stock out)
# =============================================================================

class Sale(DocumentMixin, db.Model):
    """Sale to a client (repairs, parts, devices)."""
    __tablename__ = "customer_sales"

    party_kind = PartyKind.CLIENT
    transaction_type = TransactionType.SALE
    number_prefix = "SALE"

    items = _owned("SaleItem", "SaleItem.name")
    payments = _owned("SalePayment", "SalePayment.date")

    __mapper_args__ = {"version_id_col": DocumentMixin.version_id}


class SaleItem(LineItemMixin, db.Model):
    __tablename__ = "sale_items"
    document_id = _document_fk("customer_sales", "sale_id")


class SalePayment(PaymentMixin, db.Model):
    __tablename__ = "sale_payments"
    document_id = _document_fk("customer_sales", "sale_id")


class SaleHistory(DocumentHistoryMixin, db.Model):
    __tablename__ = "sale_history"
    document_id = _document_fk("customer_sales", "sale_id")


# =============================================================================
# GENERIC TRANSACTIONS (either direction, either party kind)
# =============================================================================

class Transaction(DocumentMixin, db.Model):
    """
    Free-form party transaction.

    Unlike orders and sales, direction and counterparty kind are stored per
    row, and Cancelled is a reachable status.
    """
    __tablename__ = "transactions"

    NUMBER_PREFIXES = {
        TransactionType.SALE: "SALE",
        TransactionType.PURCHASE: "PUR",
    }

    transaction_type = db.Column(enum_column_type(TransactionType), nullable=False)
    party_kind = db.Column("party_type", enum_column_type(PartyKind), nullable=False)

    items = _owned("TransactionItem", "TransactionItem.name")
    payments = _owned("TransactionPayment", "TransactionPayment.date")

    __mapper_args__ = {"version_id_col": DocumentMixin.version_id}

    @property
    def number_prefix(self) -> str:
        return self.NUMBER_PREFIXES[self.transaction_type]


class TransactionItem(LineItemMixin, db.Model):
    __tablename__ = "transaction_items"
    document_id = _document_fk("transactions", "transaction_id")


class TransactionPayment(PaymentMixin, db.Model):
    __tablename__ = "transaction_payments"
    document_id = _document_fk("transactions", "transaction_id")


class TransactionHistory(DocumentHistoryMixin, db.Model):
    __tablename__ = "transaction_history"
    document_id = _document_fk("transactions", "transaction_id")
