# Overview: Registry of document kinds; binds each kind to its header, item, payment and history models.

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import (
    Order, OrderItem, OrderPayment, OrderHistory,
    Sale, SaleItem, SalePayment, SaleHistory,
    Transaction, TransactionItem, TransactionPayment, TransactionHistory,
)
from .concurrency import lock_for_update
from .errors import NotFoundError


@dataclass(frozen=True)
class DocumentKind:
    """
    Parameters of the one document lifecycle engine.

    Party kind, stock direction and number prefix are read from the document
    row itself (fixed per class for orders and sales, stored per row for
    transactions), so they are not duplicated here.
    """
    code: str
    label: str
    document_model: type
    item_model: type
    payment_model: type
    history_model: type
    allows_cancel: bool = False


ORDERS = DocumentKind("orders", "Order", Order, OrderItem, OrderPayment, OrderHistory)
SALES = DocumentKind("sales", "Sale", Sale, SaleItem, SalePayment, SaleHistory)
TRANSACTIONS = DocumentKind(
    "transactions", "Transaction",
    Transaction, TransactionItem, TransactionPayment, TransactionHistory,
    allows_cancel=True,
)

KINDS = {kind.code: kind for kind in (ORDERS, SALES, TRANSACTIONS)}


def get_kind(code: str) -> DocumentKind:
    kind = KINDS.get(code)
    if kind is None:
        raise NotFoundError(f"Unknown document kind '{code}'", details={"kinds": sorted(KINDS)})
    return kind


def load_document(kind: DocumentKind, document_id: str, *, lock: bool = False):
    """Fetch a document header of ``kind``; NotFoundError if missing."""
    query = db.session.query(kind.document_model).filter_by(id=document_id)
    if lock:
        query = lock_for_update(query)
    document = query.first()
    if not document:
        raise NotFoundError(
            f"{kind.label} not found",
            details={"kind": kind.code, "document_id": document_id},
        )
    return document
