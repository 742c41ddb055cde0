# Overview: Pytest coverage for counterparty balance adjustments.

import pytest

from fixtrack.models import Client, ClientHistory, PartyEventType, PartyKind, SupplierHistory
from fixtrack.services import balance_service
from fixtrack.services.errors import NotFoundError, ValidationError


class TestApplyPartyBalance:
    def test_adds_amount_and_records_history(self, db_session, supplier):
        entry = balance_service.apply_party_balance(
            PartyKind.SUPPLIER, supplier.id, 20.0, PartyEventType.PURCHASE_COMPLETED,
            notes="Order ORD-1 completed", related_id="doc-1", actor="maria",
        )
        db_session.commit()

        assert supplier.credit_balance == pytest.approx(20.0)
        assert entry.amount == 20.0
        stored = db_session.query(SupplierHistory).one()
        assert stored.related_id == "doc-1"
        assert stored.changed_by == "maria"

    def test_below_threshold_updates_balance_without_history(self, db_session, customer):
        entry = balance_service.apply_party_balance(
            "Client", customer.id, 0.0004, PartyEventType.BALANCE_ADJUSTED,
        )
        db_session.commit()

        assert entry is None
        assert customer.credit_balance == pytest.approx(0.0004)
        assert db_session.query(ClientHistory).count() == 0

    def test_at_threshold_records_history(self, db_session, customer):
        balance_service.apply_party_balance(PartyKind.CLIENT, customer.id, -0.001, PartyEventType.BALANCE_ADJUSTED)
        db_session.commit()
        assert db_session.query(ClientHistory).count() == 1

    def test_null_balance_treated_as_zero(self, db_session):
        legacy = Client(name="Imported client", credit_balance=None)
        db_session.add(legacy)
        db_session.commit()

        balance_service.apply_party_balance(PartyKind.CLIENT, legacy.id, 15.5, PartyEventType.SALE_COMPLETED)
        db_session.commit()

        assert legacy.credit_balance == pytest.approx(15.5)

    def test_unknown_party(self, db_session):
        with pytest.raises(NotFoundError):
            balance_service.apply_party_balance(PartyKind.SUPPLIER, "missing", 1.0, PartyEventType.BALANCE_ADJUSTED)

    def test_invalid_party_kind(self, db_session):
        with pytest.raises(ValidationError):
            balance_service.get_party("Vendor", "x")


class TestManualAdjustment:
    def test_adjust_balance_commits_with_history(self, db_session, customer):
        party = balance_service.adjust_balance(PartyKind.CLIENT, customer.id, "-12.5", notes="Goodwill credit")

        assert party.credit_balance == pytest.approx(-12.5)
        history = balance_service.get_party_history(PartyKind.CLIENT, customer.id)
        assert [h.event_type for h in history] == [PartyEventType.MANUAL_ADJUSTMENT]
        assert history[0].notes == "Goodwill credit"

    def test_adjust_requires_number(self, db_session, customer):
        with pytest.raises(ValidationError):
            balance_service.adjust_balance(PartyKind.CLIENT, customer.id, "lots")

    @pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan"), "-Infinity"])
    def test_adjust_rejects_non_finite(self, db_session, customer, amount):
        with pytest.raises(ValidationError):
            balance_service.adjust_balance(PartyKind.CLIENT, customer.id, amount)
        assert customer.credit_balance == pytest.approx(0.0)
        assert db_session.query(ClientHistory).count() == 0

    def test_history_for_unknown_party(self, db_session):
        with pytest.raises(NotFoundError):
            balance_service.get_party_history(PartyKind.CLIENT, "missing")
