"""
Credit customer ledger tests.

Verifies:
- Customers start at zero and list with their ledgers
- Payments reduce the balance and append a ledger entry atomically
- Overpayments and non-positive amounts are rejected without writes
- Stored balances reconcile against the ledger
"""

import pytest

from shopdesk.models import CreditCustomer, CreditTransaction
from shopdesk.services import customer_service, sales_service
from shopdesk.services.customer_service import LedgerError


def _credit_sale(product, customer, quantity=1):
    return sales_service.create_sale(
        items=[{"product_id": product.id, "quantity": quantity}],
        payment_method="credit",
        customer_id=customer.id,
    )


class TestCustomerRoutes:

    def test_create_and_list(self, client, cashier_headers):
        resp = client.post(
            "/api/credit-customers",
            json={"name": "Sita Devi", "phone": "9000000001", "email": ""},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json["total_credit_cents"] == 0
        assert resp.json["email"] is None
        assert resp.json["transactions"] == []

        resp = client.get("/api/credit-customers", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1

    def test_create_requires_phone(self, client, admin_headers):
        resp = client.post("/api/credit-customers", json={"name": "No Phone"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_balance_is_not_writable(self, client, admin_headers, customer):
        resp = client.put(
            f"/api/credit-customers/{customer.id}",
            json={"total_credit_cents": 0},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_viewer_has_no_access(self, client, viewer_headers):
        assert client.get("/api/credit-customers", headers=viewer_headers).status_code == 403

    def test_payment_route(self, client, cashier_headers, customer, rice):
        _credit_sale(rice, customer, quantity=2)

        resp = client.post(
            f"/api/credit-customers/{customer.id}/payments",
            json={"amount_cents": 5000},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json["transaction"]["type"] == "payment"
        assert resp.json["transaction"]["description"] == "Payment received"
        assert resp.json["customer"]["total_credit_cents"] == 24000 - 5000
        assert resp.json["customer"]["ledger_balance_cents"] == 19000

    def test_overpayment_route(self, client, cashier_headers, customer, rice):
        _credit_sale(rice, customer)
        resp = client.post(
            f"/api/credit-customers/{customer.id}/payments",
            json={"amount_cents": 12001},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.json["details"]["total_credit_cents"] == 12000

    def test_payment_unknown_customer(self, client, cashier_headers):
        resp = client.post(
            "/api/credit-customers/nobody/payments",
            json={"amount_cents": 100},
            headers=cashier_headers,
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize("amount", [0, -5, "10", 1.5, None])
    def test_payment_amount_validation(self, client, cashier_headers, customer, amount):
        resp = client.post(
            f"/api/credit-customers/{customer.id}/payments",
            json={"amount_cents": amount},
            headers=cashier_headers,
        )
        assert resp.status_code == 400

    def test_delete_customer_with_sales_conflicts(self, client, admin_headers, customer, rice):
        _credit_sale(rice, customer)
        resp = client.delete(f"/api/credit-customers/{customer.id}", headers=admin_headers)
        assert resp.status_code == 409

    def test_delete_customer_removes_ledger(self, client, admin_headers, customer, db_session):
        resp = client.delete(f"/api/credit-customers/{customer.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db_session.query(CreditCustomer).count() == 0


class TestLedgerService:

    def test_payment_is_atomic_with_balance(self, customer, rice, db_session):
        _credit_sale(rice, customer)
        result = customer_service.record_payment(customer.id, 2000, "Part payment")

        db_session.refresh(customer)
        assert customer.total_credit_cents == 10000
        assert result["transaction"]["amount_cents"] == 2000
        assert [tx["type"] for tx in result["customer"]["transactions"]] == ["payment", "sale"]

    def test_overpayment_writes_nothing(self, customer, rice, db_session):
        _credit_sale(rice, customer)
        with pytest.raises(LedgerError):
            customer_service.record_payment(customer.id, 999999)

        db_session.refresh(customer)
        assert customer.total_credit_cents == 12000
        assert db_session.query(CreditTransaction).filter_by(type="payment").count() == 0

    def test_summary(self, customer, rice, db_session):
        other = CreditCustomer(name="Zero Balance", phone="1", total_credit_cents=0)
        db_session.add(other)
        db_session.commit()
        _credit_sale(rice, customer)

        assert customer_service.credit_summary() == {
            "total_credit_cents": 12000,
            "customers_with_credit": 1,
        }

    def test_reconcile_repairs_drift(self, customer, rice, db_session):
        _credit_sale(rice, customer)
        db_session.refresh(customer)
        customer.total_credit_cents = 1
        db_session.commit()

        drifted = customer_service.reconcile_balances()
        assert drifted == [{
            "customer_id": customer.id,
            "name": "Ramesh Kumar",
            "stored_cents": 1,
            "ledger_cents": 12000,
        }]

        customer_service.reconcile_balances(fix=True)
        db_session.refresh(customer)
        assert customer.total_credit_cents == 12000
        assert customer_service.reconcile_balances() == []
