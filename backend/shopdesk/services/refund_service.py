# Overview: Refunds against recorded sales, with restocking.

"""
Refund Service

A refund names the sale, the sale items being returned and how many of
each. Quantities are checked against what was sold minus what earlier
refunds already returned, so a sale can be refunded in parts but never
beyond what was sold.

Returned units go back on the shelf unless restock=False (damaged goods).
When every unit of a sale has been returned the sale is flagged refunded.
Refunds do not touch the credit ledger.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Refund, RefundItem, Sale, Product
from shopdesk.time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction


class RefundError(Exception):
    """Raised for refund operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def refunded_quantities(sale_id: str) -> dict[str, int]:
    """Units already returned per sale item of one sale."""
    rows = (
        db.session.query(RefundItem.sale_item_id, func.coalesce(func.sum(RefundItem.quantity), 0))
        .join(Refund, Refund.id == RefundItem.refund_id)
        .filter(Refund.sale_id == sale_id)
        .filter(RefundItem.sale_item_id.isnot(None))
        .group_by(RefundItem.sale_item_id)
        .all()
    )
    return {sale_item_id: int(qty) for sale_item_id, qty in rows}


def refundable_items(sale: Sale) -> list[dict]:
    """Each item of a sale with how many units can still be returned."""
    already = refunded_quantities(sale.id)
    result = []
    for item in sale.items:
        data = item.to_dict()
        data["refunded_quantity"] = already.get(item.id, 0)
        data["refundable_quantity"] = item.quantity - data["refunded_quantity"]
        result.append(data)
    return result


def _normalize_lines(items) -> dict[str, int]:
    if not isinstance(items, list) or not items:
        raise RefundError("Select at least one item to refund")

    requested: dict[str, int] = {}
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise RefundError("Each refund line must be an object", details={"line": index})
        sale_item_id = item.get("sale_item_id")
        quantity = item.get("quantity")
        if not sale_item_id or not isinstance(sale_item_id, str):
            raise RefundError("sale_item_id is required", details={"line": index})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise RefundError("quantity must be a positive integer", details={"line": index})
        if sale_item_id in requested:
            raise RefundError("Duplicate sale item in refund", details={"sale_item_id": sale_item_id})
        requested[sale_item_id] = quantity
    return requested


def create_refund(
    *,
    sale_id: str,
    items: list[dict],
    reason: str,
    user_id: str | None = None,
    restock: bool = True,
) -> Refund:
    """
    Record a refund and put returned stock back.

    Args:
        sale_id: Sale being refunded
        items: [{"sale_item_id": str, "quantity": int}, ...]
        reason: Required free text
        user_id: Who processed the refund
        restock: Return units to product stock

    Raises:
        RefundError: Unknown sale or item, bad quantities, or more units
            than remain refundable; nothing is written
    """
    reason = (reason or "").strip() if isinstance(reason, str) else ""
    if not reason:
        raise RefundError("Please provide a reason for the refund")

    requested = _normalize_lines(items)

    def _op():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise RefundError("Sale not found")

        sale_items = {item.id: item for item in sale.items}
        unknown = sorted(sid for sid in requested if sid not in sale_items)
        if unknown:
            raise RefundError("Item does not belong to this sale", details={"sale_item_ids": unknown})

        already = refunded_quantities(sale.id)
        over = []
        for sale_item_id, qty in requested.items():
            item = sale_items[sale_item_id]
            remaining = item.quantity - already.get(sale_item_id, 0)
            if qty > remaining:
                over.append({
                    "sale_item_id": sale_item_id,
                    "product_name": item.product_name,
                    "requested_quantity": qty,
                    "refundable_quantity": remaining,
                })
        if over:
            raise RefundError("Refund quantity exceeds quantity sold", details={"items": over})

        refund = Refund(
            sale_id=sale.id,
            total_cents=sum(sale_items[sid].price_cents * qty for sid, qty in requested.items()),
            reason=reason,
            created_by=user_id,
            date=utcnow(),
        )
        db.session.add(refund)
        db.session.flush()

        restock_totals: dict[str, int] = {}
        for sale_item_id, qty in requested.items():
            item = sale_items[sale_item_id]
            db.session.add(RefundItem(
                refund_id=refund.id,
                sale_item_id=item.id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=qty,
                price_cents=item.price_cents,
                cost_cents=item.cost_cents,
            ))
            if item.product_id:
                restock_totals[item.product_id] = restock_totals.get(item.product_id, 0) + qty

        if restock and restock_totals:
            products = lock_for_update(
                db.session.query(Product).filter(Product.id.in_(sorted(restock_totals)))
            ).all()
            # Products deleted since the sale are skipped
            for product in products:
                product.stock += restock_totals[product.id]

        if all(
            already.get(item.id, 0) + requested.get(item.id, 0) >= item.quantity
            for item in sale.items
        ):
            sale.refunded = True

        db.session.flush()
        return refund

    refund = run_in_transaction(_op)
    db.session.refresh(refund)
    return refund


def list_refunds(start: datetime | None = None, end: datetime | None = None) -> list[Refund]:
    query = db.session.query(Refund).options(selectinload(Refund.items))
    if start:
        query = query.filter(Refund.date >= start)
    if end:
        query = query.filter(Refund.date <= end)
    return query.order_by(Refund.date.desc(), Refund.id.asc()).all()


def get_refund(refund_id: str) -> Refund | None:
    return (
        db.session.query(Refund)
        .options(selectinload(Refund.items))
        .filter(Refund.id == refund_id)
        .first()
    )
