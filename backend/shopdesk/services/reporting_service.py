# Overview: Dashboard figures and profit analysis over sales and refunds.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Refund, RefundItem, Sale, SaleItem
from shopdesk.time_utils import day_bounds, to_utc_z, utcnow
from .customer_service import credit_summary


DEFAULT_PROFIT_WINDOW = timedelta(days=30)


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _sales_totals(start: datetime, end: datetime, *, end_inclusive: bool) -> tuple[int, int, int]:
    """(sale count, revenue cents, cost cents) for sales dated in the window."""
    date_filter = [Sale.date >= start, Sale.date <= end if end_inclusive else Sale.date < end]

    count, revenue = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_cents), 0),
    ).filter(*date_filter).one()

    cost = db.session.query(
        func.coalesce(func.sum(SaleItem.cost_cents * SaleItem.quantity), 0),
    ).join(Sale, Sale.id == SaleItem.sale_id).filter(*date_filter).scalar()

    return int(count), int(revenue), int(cost)


def dashboard_stats(low_stock_threshold: int = 10) -> dict:
    """
    Today's trading plus stock and credit alerts.

    "Today" is the current UTC calendar day. Profit is
    sum((price - cost) * quantity) over today's sale items.
    """
    today = utcnow().date()
    start, end = day_bounds(today)
    count, revenue, cost = _sales_totals(start, end, end_inclusive=False)

    low_stock = db.session.query(func.count(Product.id)).filter(Product.stock < low_stock_threshold).scalar()
    credit = credit_summary()

    return {
        "date": today.isoformat(),
        "today_sales": count,
        "today_revenue_cents": revenue,
        "today_profit_cents": revenue - cost,
        "low_stock_count": int(low_stock),
        "low_stock_threshold": low_stock_threshold,
        "total_credit_cents": credit["total_credit_cents"],
        "customers_with_credit": credit["customers_with_credit"],
    }


def profit_analysis(start: datetime | None = None, end: datetime | None = None) -> dict:
    """
    Profit for sales and refunds dated within [start, end].

    Defaults to the last 30 days ending now. Refunds reduce profit by the
    margin they gave back: net = gross - (refunded revenue - refunded cost).
    """
    end = end or utcnow()
    start = start or (end - DEFAULT_PROFIT_WINDOW)
    if start > end:
        raise ReportError("start must be before end")

    _, revenue, cost = _sales_totals(start, end, end_inclusive=True)
    gross = revenue - cost

    refund_filter = [Refund.date >= start, Refund.date <= end]
    refunded_revenue = db.session.query(
        func.coalesce(func.sum(Refund.total_cents), 0),
    ).filter(*refund_filter).scalar()
    refunded_cost = db.session.query(
        func.coalesce(func.sum(RefundItem.cost_cents * RefundItem.quantity), 0),
    ).join(Refund, Refund.id == RefundItem.refund_id).filter(*refund_filter).scalar()

    refunded_revenue = int(refunded_revenue)
    refunded_cost = int(refunded_cost)

    return {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "revenue_cents": revenue,
        "cost_cents": cost,
        "gross_profit_cents": gross,
        "profit_margin_percent": round(gross * 100 / revenue, 2) if revenue > 0 else 0.0,
        "refunded_revenue_cents": refunded_revenue,
        "refunded_cost_cents": refunded_cost,
        "refund_loss_cents": refunded_revenue - refunded_cost,
        "net_profit_cents": gross - (refunded_revenue - refunded_cost),
    }
