# Overview: Pytest coverage for the JSON API surface and its error mapping.

import pytest

from fixtrack.models import Order
from fixtrack.time_utils import utcnow


YEAR = utcnow().year


@pytest.fixture
def api(client, db_session):
    return client


class TestDocumentRoutes:
    def test_order_flow(self, api, supplier, catalog_item):
        resp = api.post("/api/orders/", json={"party_id": supplier.id, "notes": "Weekly restock"})
        assert resp.status_code == 201
        order = resp.get_json()
        assert order["number"] == f"ORD-{YEAR}-001"
        assert order["status"] == "Draft"

        resp = api.post(
            f"/api/orders/{order['id']}/items",
            json={"name": "Screen", "quantity": 10, "unit_price": 2.0, "catalog_item_id": catalog_item.id},
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["document"]["total_amount"] == 20.0
        item_id = body["item"]["id"]

        resp = api.post(f"/api/orders/{order['id']}/complete", headers={"X-Actor": "maria"})
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "Completed"

        resp = api.post(f"/api/orders/{order['id']}/payments", json={"amount": 20.0, "method": "Cash"})
        assert resp.status_code == 201
        assert resp.get_json()["document"]["payment_status"] == "Paid"

        resp = api.put(f"/api/orders/{order['id']}/items/{item_id}", json={"quantity": 5})
        assert resp.status_code == 200
        assert resp.get_json()["document"]["total_amount"] == 10.0

        resp = api.get(f"/api/orders/{order['id']}")
        assert resp.status_code == 200
        details = resp.get_json()
        assert details["party_name"] == "Parts Wholesale"
        assert len(details["items"]) == 1
        assert len(details["payments"]) == 1

        resp = api.get(f"/api/orders/{order['id']}/history")
        events = {e["event_type"] for e in resp.get_json()["history"]}
        assert {"created", "item_added", "completed", "payment_added", "item_updated"} <= events

        resp = api.delete(f"/api/orders/{order['id']}/items/{item_id}")
        assert resp.status_code == 200
        assert resp.get_json()["document"]["total_amount"] == 0.0

    def test_revert_via_patch(self, api, customer):
        sale = api.post("/api/sales/", json={"party_id": customer.id}).get_json()
        api.post(f"/api/sales/{sale['id']}/items", json={"name": "Labour", "quantity": 1, "unit_price": 30.0})
        api.post(f"/api/sales/{sale['id']}/complete")

        resp = api.patch(f"/api/sales/{sale['id']}", json={"status": "Draft", "total_amount": 999})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "Draft"
        assert body["total_amount"] == 30.0
        assert customer.credit_balance == pytest.approx(0.0)

    def test_list_with_filters(self, api, customer, supplier):
        api.post("/api/transactions/", json={"party_id": customer.id, "transaction_type": "Sale"})
        api.post("/api/transactions/", json={"party_id": supplier.id, "transaction_type": "Purchase"})

        resp = api.get("/api/transactions/?type=Purchase")
        assert resp.status_code == 200
        documents = resp.get_json()["documents"]
        assert [d["number"] for d in documents] == [f"PUR-{YEAR}-001"]

        resp = api.get("/api/transactions/?status=Bogus")
        assert resp.status_code == 400

    def test_submit(self, api, customer, other_catalog_item):
        resp = api.post("/api/transactions/submit", json={
            "transaction_type": "Sale",
            "party_id": customer.id,
            "status": "Completed",
            "items": [{"name": "Port", "quantity": 1, "unit_price": 15.0, "catalog_item_id": other_catalog_item.id}],
            "payments": [{"amount": 15.0, "method": "Card", "date": "2026-03-01T10:00:00Z"}],
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["payment_status"] == "Paid"
        assert body["payments"][0]["date"] == "2026-03-01T10:00:00Z"
        assert other_catalog_item.quantity_in_stock == 19


class TestErrorMapping:
    def test_unknown_kind_is_404(self, api):
        assert api.get("/api/invoices/").status_code == 404

    def test_missing_document_is_404(self, api):
        assert api.get("/api/orders/missing").status_code == 404
        resp = api.post("/api/orders/missing/complete")
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "not_found"

    def test_validation_is_400(self, api, supplier):
        order = api.post("/api/orders/", json={"party_id": supplier.id}).get_json()
        resp = api.post(f"/api/orders/{order['id']}/items", json={"name": "Bad", "quantity": 0, "unit_price": 1})
        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"quantity": 0}

    def test_non_finite_json_numbers_are_400(self, api, supplier, catalog_item):
        order = api.post("/api/orders/", json={"party_id": supplier.id}).get_json()
        api.post(
            f"/api/orders/{order['id']}/items",
            json={"name": "Screen", "quantity": 2, "unit_price": 5.0, "catalog_item_id": catalog_item.id},
        )
        api.post(f"/api/orders/{order['id']}/complete")

        # Flask's JSON parser accepts these literals
        bodies = [
            ("/payments", '{"amount": Infinity}'),
            ("/items", '{"name": "Screen", "quantity": 1, "unit_price": Infinity}'),
            ("/items", '{"name": "Screen", "quantity": 1, "unit_price": NaN}'),
        ]
        for suffix, raw in bodies:
            resp = api.post(f"/api/orders/{order['id']}{suffix}", data=raw, content_type="application/json")
            assert resp.status_code == 400
            assert resp.get_json()["code"] == "validation_error"

        details = api.get(f"/api/orders/{order['id']}").get_json()
        assert details["total_amount"] == 10.0
        assert details["paid_amount"] == 0.0
        assert supplier.credit_balance == pytest.approx(10.0)
        assert catalog_item.quantity_in_stock == 2

    def test_duplicate_number_is_409(self, api, supplier, db_session):
        api.post("/api/orders/", json={"party_id": supplier.id, "number": "ORD-MANUAL"})
        resp = api.post("/api/orders/", json={"party_id": supplier.id, "number": "ORD-MANUAL"})
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "constraint_violation"
        assert db_session.query(Order).count() == 1

    def test_cancel_order_is_409(self, api, supplier):
        order = api.post("/api/orders/", json={"party_id": supplier.id}).get_json()
        resp = api.patch(f"/api/orders/{order['id']}", json={"status": "Cancelled"})
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "lifecycle_error"


class TestSupportingRoutes:
    def test_party_history_and_adjust(self, api, customer):
        resp = api.post(f"/api/parties/client/{customer.id}/adjust", json={"amount": 25.0, "notes": "Opening"})
        assert resp.status_code == 200
        assert resp.get_json()["credit_balance"] == 25.0

        resp = api.get(f"/api/parties/client/{customer.id}/history")
        body = resp.get_json()
        assert body["party"]["name"] == "Alex Martin"
        assert [h["event_type"] for h in body["history"]] == ["Manual Adjustment"]

        assert api.get("/api/parties/client/missing/history").status_code == 404

    def test_inventory_history(self, api, supplier, catalog_item):
        order = api.post("/api/orders/", json={"party_id": supplier.id}).get_json()
        api.post(
            f"/api/orders/{order['id']}/items",
            json={"name": "Screen", "quantity": 3, "unit_price": 10.0, "catalog_item_id": catalog_item.id},
        )
        api.post(f"/api/orders/{order['id']}/complete")

        resp = api.get(f"/api/inventory/{catalog_item.id}/history")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["item"]["quantity_in_stock"] == 3
        assert body["history"][0]["event_type"] == "Purchased"

    def test_sessions(self, api):
        resp = api.post("/api/sessions/", json={"opening_balance": 80.0})
        assert resp.status_code == 201
        session_id = resp.get_json()["id"]

        assert api.post("/api/sessions/", json={}).status_code == 409
        assert api.get("/api/sessions/current").get_json()["session"]["id"] == session_id

        resp = api.post(f"/api/sessions/{session_id}/close", json={"counted_amount": 120.0, "withdrawal_amount": 100.0})
        assert resp.status_code == 200
        assert resp.get_json()["closing_balance"] == 20.0
        assert api.get("/api/sessions/last-closing-balance").get_json() == {"closing_balance": 20.0}

    def test_health(self, api):
        resp = api.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"
