# Overview: Pytest coverage for the payment ledger.

from datetime import datetime

import pytest

from fixtrack.models import (
    ClientHistory, DocumentEventType, OrderHistory, OrderPayment, PartyEventType,
    PaymentMethod, PaymentStatus, SupplierHistory,
)
from fixtrack.services import cash_session_service, lifecycle_service, line_item_service, payment_service
from fixtrack.services.errors import ConstraintError, LifecycleError, NotFoundError, ValidationError
from fixtrack.services.kinds import ORDERS, SALES


@pytest.fixture
def completed_order(db_session, supplier, catalog_item):
    """Scenario A order: 10 x 2.00, completed."""
    order = lifecycle_service.create_document(ORDERS, party_id=supplier.id)
    line_item_service.add_item(
        ORDERS, order.id, name="Screen", quantity=10, unit_price=2.0, catalog_item_id=catalog_item.id,
    )
    lifecycle_service.complete_document(ORDERS, order.id)
    return order


class TestAddPayment:
    def test_full_payment_settles_order(self, db_session, supplier, completed_order):
        """Paying the full total marks the order Paid and clears the supplier balance."""
        assert supplier.credit_balance == pytest.approx(20.0)

        payment = payment_service.add_payment(ORDERS, completed_order.id, amount=20.0, method="Bank Transfer")

        assert payment.method == PaymentMethod.BANK_TRANSFER
        assert completed_order.paid_amount == 20.0
        assert completed_order.payment_status == PaymentStatus.PAID
        assert supplier.credit_balance == pytest.approx(0.0)

        made = db_session.query(SupplierHistory).filter_by(event_type=PartyEventType.PAYMENT_MADE).one()
        assert made.amount == pytest.approx(-20.0)
        assert made.related_id == completed_order.id

        events = [e.event_type for e in db_session.query(OrderHistory).filter_by(document_id=completed_order.id)]
        assert DocumentEventType.PAYMENT_ADDED in events

    def test_partial_then_full(self, db_session, customer):
        sale = lifecycle_service.create_document(SALES, party_id=customer.id)
        line_item_service.add_item(SALES, sale.id, name="Screen repair", quantity=1, unit_price=80.0)
        lifecycle_service.complete_document(SALES, sale.id)

        payment_service.add_payment(SALES, sale.id, amount=30.0)
        assert sale.payment_status == PaymentStatus.PARTIAL
        assert customer.credit_balance == pytest.approx(50.0)

        payment_service.add_payment(SALES, sale.id, amount=50.0, method=PaymentMethod.CARD)
        assert sale.paid_amount == 80.0
        assert sale.payment_status == PaymentStatus.PAID
        assert customer.credit_balance == pytest.approx(0.0)

        received = db_session.query(ClientHistory).filter_by(event_type=PartyEventType.PAYMENT_RECEIVED).count()
        assert received == 2

    def test_payment_on_draft_still_reduces_balance(self, db_session, customer):
        """Deposits on a draft are credited to the client straight away."""
        sale = lifecycle_service.create_document(SALES, party_id=customer.id)
        line_item_service.add_item(SALES, sale.id, name="Diagnostics", quantity=1, unit_price=25.0)

        payment_service.add_payment(SALES, sale.id, amount=10.0)
        assert customer.credit_balance == pytest.approx(-10.0)

        lifecycle_service.complete_document(SALES, sale.id)
        assert customer.credit_balance == pytest.approx(15.0)

    @pytest.mark.parametrize("amount", [0, -5, "abc", None, float("inf"), float("-inf"), float("nan"), "Infinity"])
    def test_rejects_invalid_amount(self, db_session, supplier, completed_order, amount):
        with pytest.raises(ValidationError):
            payment_service.add_payment(ORDERS, completed_order.id, amount=amount)
        assert db_session.query(OrderPayment).count() == 0
        assert supplier.credit_balance == pytest.approx(20.0)

    def test_rejects_unknown_method(self, db_session, completed_order):
        with pytest.raises(ValidationError):
            payment_service.add_payment(ORDERS, completed_order.id, amount=5.0, method="Barter")

    def test_unknown_document(self, db_session):
        with pytest.raises(NotFoundError):
            payment_service.add_payment(ORDERS, "missing", amount=5.0)

    def test_duplicate_payment_id(self, db_session, supplier, completed_order):
        payment_service.add_payment(ORDERS, completed_order.id, amount=5.0, payment_id="pay-1")
        with pytest.raises(ConstraintError):
            payment_service.add_payment(ORDERS, completed_order.id, amount=5.0, payment_id="pay-1")

        assert completed_order.paid_amount == 5.0
        assert supplier.credit_balance == pytest.approx(15.0)


class TestPaymentSessions:
    def test_payment_links_to_open_session(self, db_session, completed_order):
        session = cash_session_service.start_session(opening_balance=50.0)
        payment = payment_service.add_payment(ORDERS, completed_order.id, amount=5.0, session_id=session.id)
        assert payment.session_id == session.id

    def test_closed_session_rejected(self, db_session, completed_order):
        session = cash_session_service.start_session()
        cash_session_service.close_session(session.id, counted_amount=0.0)
        with pytest.raises(LifecycleError):
            payment_service.add_payment(ORDERS, completed_order.id, amount=5.0, session_id=session.id)

    def test_unknown_session_rejected(self, db_session, completed_order):
        with pytest.raises(NotFoundError):
            payment_service.add_payment(ORDERS, completed_order.id, amount=5.0, session_id="missing")


class TestGetPayments:
    def test_newest_first(self, db_session, completed_order):
        payment_service.add_payment(ORDERS, completed_order.id, amount=5.0, date=datetime(2026, 1, 2, 9, 0))
        payment_service.add_payment(ORDERS, completed_order.id, amount=7.0, date=datetime(2026, 1, 3, 9, 0))

        payments = payment_service.get_payments(ORDERS, completed_order.id)
        assert [p.amount for p in payments] == [7.0, 5.0]

    def test_unknown_document(self, db_session):
        with pytest.raises(NotFoundError):
            payment_service.get_payments(ORDERS, "missing")
