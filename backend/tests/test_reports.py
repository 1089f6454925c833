"""
Dashboard and profit analysis tests.
"""

from datetime import timedelta

import pytest

from shopdesk.models import Sale
from shopdesk.services import refund_service, reporting_service, sales_service
from shopdesk.services.reporting_service import ReportError
from shopdesk.time_utils import utcnow


def _sell(product, quantity, **kwargs):
    return sales_service.create_sale(
        items=[{"product_id": product.id, "quantity": quantity}],
        payment_method=kwargs.pop("payment_method", "cash"),
        **kwargs,
    )


class TestDashboard:

    def test_today_figures(self, rice, soap, customer):
        _sell(rice, 2)
        _sell(soap, 1, payment_method="credit", customer_id=customer.id)

        stats = reporting_service.dashboard_stats(low_stock_threshold=10)

        assert stats["date"] == utcnow().date().isoformat()
        assert stats["today_sales"] == 2
        assert stats["today_revenue_cents"] == 24000 + 4500
        assert stats["today_profit_cents"] == (12000 - 9550) * 2 + (4500 - 3000)
        assert stats["low_stock_count"] == 1
        assert stats["total_credit_cents"] == 4500
        assert stats["customers_with_credit"] == 1

    def test_older_sales_are_not_today(self, rice, db_session):
        sale = _sell(rice, 1)
        sale.date = utcnow() - timedelta(days=2)
        db_session.commit()

        stats = reporting_service.dashboard_stats()
        assert stats["today_sales"] == 0
        assert stats["today_revenue_cents"] == 0

    def test_route_uses_configured_threshold(self, client, cashier_headers, rice, soap):
        resp = client.get("/api/reports/dashboard", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["low_stock_threshold"] == 10
        assert resp.json["low_stock_count"] == 1


class TestProfitAnalysis:

    def test_profit_with_refund(self, rice):
        sale = _sell(rice, 4)
        refund_service.create_refund(
            sale_id=sale.id,
            items=[{"sale_item_id": sale.items[0].id, "quantity": 1}],
            reason="Returned",
        )

        report = reporting_service.profit_analysis()

        assert report["revenue_cents"] == 48000
        assert report["cost_cents"] == 38200
        assert report["gross_profit_cents"] == 9800
        assert report["profit_margin_percent"] == pytest.approx(20.42, abs=0.01)
        assert report["refunded_revenue_cents"] == 12000
        assert report["refunded_cost_cents"] == 9550
        assert report["refund_loss_cents"] == 2450
        assert report["net_profit_cents"] == 9800 - 2450

    def test_window_excludes_old_sales(self, rice, db_session):
        old = _sell(rice, 1)
        _sell(rice, 1)
        db_session.query(Sale).filter_by(id=old.id).update({Sale.date: utcnow() - timedelta(days=45)})
        db_session.commit()

        report = reporting_service.profit_analysis()
        assert report["revenue_cents"] == 12000

        wide = reporting_service.profit_analysis(start=utcnow() - timedelta(days=60), end=utcnow())
        assert wide["revenue_cents"] == 24000

    def test_empty_period(self, db_session):
        report = reporting_service.profit_analysis()
        assert report["revenue_cents"] == 0
        assert report["profit_margin_percent"] == 0.0
        assert report["net_profit_cents"] == 0

    def test_inverted_range(self, db_session):
        now = utcnow()
        with pytest.raises(ReportError):
            reporting_service.profit_analysis(start=now, end=now - timedelta(days=1))

    def test_route(self, client, manager_headers, rice):
        _sell(rice, 1)
        resp = client.get("/api/reports/profit", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["gross_profit_cents"] == 2450

        resp = client.get("/api/reports/profit?start=2026-02-01&end=2026-01-01", headers=manager_headers)
        assert resp.status_code == 400

        resp = client.get("/api/reports/profit?start=soon", headers=manager_headers)
        assert resp.status_code == 400

    def test_cashier_cannot_see_profit(self, client, cashier_headers):
        assert client.get("/api/reports/profit", headers=cashier_headers).status_code == 403
