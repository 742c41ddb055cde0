# Overview: Pytest coverage for yearly document numbering.

import pytest

from fixtrack.models import Order, Transaction, TransactionType, PartyKind
from fixtrack.services import lifecycle_service
from fixtrack.services.errors import ConstraintError
from fixtrack.services.kinds import ORDERS, TRANSACTIONS
from fixtrack.services.numbering_service import next_document_number
from fixtrack.time_utils import utcnow


YEAR = utcnow().year


def _seed_order(db_session, number):
    db_session.add(Order(number=number, party_id="seed"))
    db_session.commit()


class TestNextDocumentNumber:
    """Sequence generation from the highest existing number."""

    def test_first_number_of_year(self, db_session):
        assert next_document_number(Order, "ORD") == f"ORD-{YEAR}-001"

    def test_three_orders_in_call_order(self, db_session, supplier):
        """Fresh year: ORD-YYYY-001, -002, -003."""
        numbers = [
            lifecycle_service.create_document(ORDERS, party_id=supplier.id).number
            for _ in range(3)
        ]
        assert numbers == [f"ORD-{YEAR}-001", f"ORD-{YEAR}-002", f"ORD-{YEAR}-003"]

    def test_increments_highest_not_latest(self, db_session):
        _seed_order(db_session, f"ORD-{YEAR}-007")
        _seed_order(db_session, f"ORD-{YEAR}-002")
        assert next_document_number(Order, "ORD") == f"ORD-{YEAR}-008"

    def test_other_years_ignored(self, db_session):
        _seed_order(db_session, f"ORD-{YEAR - 1}-050")
        assert next_document_number(Order, "ORD") == f"ORD-{YEAR}-001"

    def test_explicit_year(self, db_session):
        _seed_order(db_session, "ORD-2020-041")
        assert next_document_number(Order, "ORD", year=2020) == "ORD-2020-042"

    def test_counts_past_999(self, db_session):
        _seed_order(db_session, f"ORD-{YEAR}-999")
        assert next_document_number(Order, "ORD") == f"ORD-{YEAR}-1000"

        _seed_order(db_session, f"ORD-{YEAR}-1000")
        assert next_document_number(Order, "ORD") == f"ORD-{YEAR}-1001"

    def test_unparseable_suffix_restarts(self, db_session):
        _seed_order(db_session, f"ORD-{YEAR}-manual")
        assert next_document_number(Order, "ORD") == f"ORD-{YEAR}-001"


class TestNumberingThroughCreate:
    """Numbers assigned by create_document."""

    def test_transaction_prefix_follows_type(self, db_session, customer, supplier):
        sale = lifecycle_service.create_document(
            TRANSACTIONS, party_id=customer.id, transaction_type=TransactionType.SALE,
        )
        purchase = lifecycle_service.create_document(
            TRANSACTIONS, party_id=supplier.id, transaction_type="Purchase",
        )
        assert sale.number == f"SALE-{YEAR}-001"
        assert purchase.number == f"PUR-{YEAR}-001"
        assert purchase.party_kind == PartyKind.SUPPLIER

    def test_caller_number_kept(self, db_session, supplier):
        order = lifecycle_service.create_document(ORDERS, party_id=supplier.id, number="ORD-CUSTOM-1")
        assert order.number == "ORD-CUSTOM-1"

    def test_empty_number_generated(self, db_session, supplier):
        order = lifecycle_service.create_document(ORDERS, party_id=supplier.id, number="")
        assert order.number == f"ORD-{YEAR}-001"

    def test_duplicate_number_rejected(self, db_session, supplier):
        lifecycle_service.create_document(ORDERS, party_id=supplier.id, number="ORD-X")
        with pytest.raises(ConstraintError):
            lifecycle_service.create_document(ORDERS, party_id=supplier.id, number="ORD-X")

        assert db_session.query(Order).count() == 1
        assert db_session.query(Transaction).count() == 0
