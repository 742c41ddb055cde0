# Overview: Daily cash drawer sessions that group payments taken between open and close.

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .base import new_id
from .enums import SessionStatus, enum_column_type


class CashSession(db.Model):
    """
    One open/close cycle of the cash drawer.

    At most one session is open at a time. Closing a session records the
    counted cash and any withdrawal; closing_balance carries forward as the
    next session's suggested opening balance.
    """
    __tablename__ = "daily_sessions"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    start_time = db.Column(db.DateTime, nullable=False, default=utcnow)
    end_time = db.Column(db.DateTime, nullable=True)
    opening_balance = db.Column(db.Float, nullable=False, default=0.0)
    closing_balance = db.Column(db.Float, nullable=True)
    counted_amount = db.Column(db.Float, nullable=True)
    withdrawal_amount = db.Column(db.Float, nullable=True)
    status = db.Column(enum_column_type(SessionStatus), nullable=False, default=SessionStatus.OPEN, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(128), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "opening_balance": self.opening_balance,
            "closing_balance": self.closing_balance,
            "counted_amount": self.counted_amount,
            "withdrawal_amount": self.withdrawal_amount,
            "status": self.status.value,
            "notes": self.notes,
            "created_by": self.created_by,
        }
