from .enums import (
    DocumentStatus, PaymentStatus, PartyKind, TransactionType, PaymentMethod,
    DocumentEventType, PartyEventType, InventoryEventType, SessionStatus,
)
from .parties import Client, Supplier, ClientHistory, SupplierHistory
from .inventory import InventoryItem, InventoryHistory
from .cash_sessions import CashSession
from .documents import (
    Order, OrderItem, OrderPayment, OrderHistory,
    Sale, SaleItem, SalePayment, SaleHistory,
    Transaction, TransactionItem, TransactionPayment, TransactionHistory,
)

__all__ = [
    'DocumentStatus', 'PaymentStatus', 'PartyKind', 'TransactionType', 'PaymentMethod',
    'DocumentEventType', 'PartyEventType', 'InventoryEventType', 'SessionStatus',
    'Client', 'Supplier', 'ClientHistory', 'SupplierHistory',
    'InventoryItem', 'InventoryHistory',
    'CashSession',
    'Order', 'OrderItem', 'OrderPayment', 'OrderHistory',
    'Sale', 'SaleItem', 'SalePayment', 'SaleHistory',
    'Transaction', 'TransactionItem', 'TransactionPayment', 'TransactionHistory',
]
