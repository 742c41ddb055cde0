# Overview: Counterparty records (clients, suppliers) and their balance history.

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .base import new_id
from .enums import PartyEventType, PartyKind, enum_column_type


class PartyMixin:
    """
    Columns shared by clients and suppliers.

    ``credit_balance`` is nullable: rows created outside the ledger may never
    have been given a balance, and readers coalesce NULL to 0.
    """
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    credit_balance = db.Column(db.Float, nullable=True, default=0.0)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.party_kind.value,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "notes": self.notes,
            "credit_balance": self.credit_balance or 0.0,
            "created_at": to_utc_z(self.created_at),
        }


class Client(PartyMixin, db.Model):
    """Customer; a positive balance means the client owes the business."""
    __tablename__ = "clients"

    party_kind = PartyKind.CLIENT

    history = db.relationship(
        "ClientHistory",
        backref="client",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="dynamic",
    )


class Supplier(PartyMixin, db.Model):
    """Vendor; a positive balance means the business owes the supplier."""
    __tablename__ = "suppliers"

    party_kind = PartyKind.SUPPLIER

    contact_person = db.Column(db.String(200), nullable=True)

    history = db.relationship(
        "SupplierHistory",
        backref="supplier",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="dynamic",
    )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["contact_person"] = self.contact_person
        return data


class PartyHistoryMixin:
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    event_type = db.Column(enum_column_type(PartyEventType), nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0.0)
    notes = db.Column(db.Text, nullable=True)
    related_id = db.Column(db.String(36), nullable=True)
    changed_by = db.Column(db.String(128), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "party_id": self.party_id,
            "date": to_utc_z(self.date),
            "event_type": self.event_type.value,
            "amount": self.amount,
            "notes": self.notes,
            "related_id": self.related_id,
            "changed_by": self.changed_by,
        }


class ClientHistory(PartyHistoryMixin, db.Model):
    __tablename__ = "client_history"

    party_id = db.Column(
        "client_id",
        db.String(36),
        db.ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class SupplierHistory(PartyHistoryMixin, db.Model):
    __tablename__ = "supplier_history"

    party_id = db.Column(
        "supplier_id",
        db.String(36),
        db.ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
