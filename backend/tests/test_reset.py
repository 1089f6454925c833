"""
Data reset tests.

Verifies:
- Each kind clears its tables and the tables that depend on them
- Credit customer reset keeps sales but drops their customer link
- Accounts, permissions and settings survive a full reset
- Bad selections are rejected before anything is deleted
"""

import pytest

from shopdesk.models import (
    CreditCustomer,
    CreditTransaction,
    Product,
    Profile,
    Refund,
    RolePermission,
    Sale,
    SaleItem,
)
from shopdesk.services import refund_service, reset_service, sales_service, settings_service
from shopdesk.services.reset_service import ResetError


@pytest.fixture
def trading_day(rice, soap, customer):
    cash = sales_service.create_sale(items=[{"product_id": rice.id, "quantity": 2}], payment_method="cash")
    sales_service.create_sale(
        items=[{"product_id": soap.id, "quantity": 1}],
        payment_method="credit",
        customer_id=customer.id,
    )
    refund_service.create_refund(
        sale_id=cash.id,
        items=[{"sale_item_id": cash.items[0].id, "quantity": 1}],
        reason="Spilled",
    )


def test_reset_refunds_only(trading_day, db_session):
    result = reset_service.reset_selected_data(["refunds"])

    assert result["kinds"] == ["refunds"]
    assert result["deleted"] == {"refund_items": 1, "refunds": 1}
    assert db_session.query(Sale).count() == 2


def test_reset_sales_takes_refunds_along(trading_day, db_session):
    result = reset_service.reset_selected_data(["sales"])

    assert result["deleted"]["sales"] == 2
    assert result["deleted"]["sale_items"] == 2
    assert db_session.query(Refund).count() == 0
    assert db_session.query(Product).count() == 2
    # Ledger is its own record
    assert db_session.query(CreditTransaction).count() == 1
    assert db_session.query(CreditCustomer).count() == 1


def test_reset_products_clears_line_items_only(trading_day, db_session):
    result = reset_service.reset_selected_data(["products"])

    assert result["deleted"] == {"refund_items": 1, "sale_items": 2, "products": 2}
    assert db_session.query(Product).count() == 0
    assert db_session.query(SaleItem).count() == 0
    assert db_session.query(Sale).count() == 2
    assert db_session.query(Refund).count() == 1
    assert db_session.query(CreditCustomer).count() == 1
    assert db_session.query(CreditTransaction).count() == 1


def test_reset_credit_customers_detaches_sales(trading_day, db_session):
    result = reset_service.reset_selected_data(["credit_customers"])

    assert result["deleted"]["credit_customers"] == 1
    assert result["deleted"]["credit_transactions"] == 1
    assert result["deleted"]["sales_detached"] == 1

    credit_sale = db_session.query(Sale).filter_by(payment_method="credit").one()
    assert credit_sale.customer_id is None
    assert credit_sale.total_cents == 4500


def test_kinds_run_in_fixed_order(trading_day):
    result = reset_service.reset_selected_data(["products", "refunds", "sales"])
    assert result["kinds"] == ["refunds", "sales", "products"]


def test_full_reset_keeps_accounts_and_settings(trading_day, admin_user, db_session):
    settings_service.update_settings({"name": "Kept"})

    reset_service.reset_all_data()

    for model in (Sale, SaleItem, Refund, CreditCustomer, CreditTransaction, Product):
        assert db_session.query(model).count() == 0
    assert db_session.query(Profile).count() == 1
    assert db_session.query(RolePermission).count() > 0
    assert settings_service.get_settings()["name"] == "Kept"


@pytest.mark.parametrize("kinds", [[], None, "sales"])
def test_empty_selection(kinds):
    with pytest.raises(ResetError, match="Select at least one data type to reset"):
        reset_service.reset_selected_data(kinds)


def test_unknown_kind_deletes_nothing(trading_day, db_session):
    with pytest.raises(ResetError, match="Unknown data type: users") as exc:
        reset_service.reset_selected_data(["sales", "users"])
    assert exc.value.details["allowed"] == ["refunds", "sales", "credit_customers", "products"]
    assert db_session.query(Sale).count() == 2


def test_non_text_kind_is_rejected(trading_day, db_session):
    with pytest.raises(ResetError, match="Unknown data type") as exc:
        reset_service.reset_selected_data([["sales"]])
    assert "allowed" in exc.value.details
    assert db_session.query(Sale).count() == 2


class TestResetRoute:

    def test_admin_resets_selected(self, client, admin_headers, trading_day):
        resp = client.post("/api/admin/reset", json={"kinds": ["refunds"]}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["kinds"] == ["refunds"]

    def test_admin_resets_all(self, client, admin_headers, trading_day, db_session):
        resp = client.post("/api/admin/reset", json={"all": True}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["kinds"] == ["refunds", "sales", "credit_customers", "products"]
        assert db_session.query(Product).count() == 0

    def test_kinds_must_be_a_list(self, client, admin_headers):
        resp = client.post("/api/admin/reset", json={"kinds": "sales"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_kind_is_400(self, client, admin_headers):
        resp = client.post("/api/admin/reset", json={"kinds": ["everything"]}, headers=admin_headers)
        assert resp.status_code == 400

    def test_manager_cannot_reset(self, client, manager_headers):
        resp = client.post("/api/admin/reset", json={"all": True}, headers=manager_headers)
        assert resp.status_code == 403

    def test_nested_kind_is_400(self, client, admin_headers):
        resp = client.post("/api/admin/reset", json={"kinds": [["sales"]]}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"].startswith("Unknown data type")
