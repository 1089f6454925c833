"""
Sales Service - counter sale orchestration

A sale touches four tables: the sale row, one item per cart line, the stock
of every product sold and, for credit sales, the customer's ledger and
running balance. All of it is written in one transaction; a failure at any
step leaves no trace.

Validation happens before the first write:
- cart is non-empty, quantities are positive integers
- payment method is known; credit needs an existing customer, other
  methods carry none
- every product exists and has enough stock (summed across lines)
- cash received, when given, covers the total
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Sale, SaleItem, Product, CreditCustomer
from ..models.customers import CREDIT_TYPE_SALE
from ..models.sales import PAYMENT_CASH, PAYMENT_CREDIT, PAYMENT_METHODS
from shopdesk.time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction
from .customer_service import LedgerError, append_credit_entry


CREDIT_SALE_DESCRIPTION = "Sale on credit"


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _normalize_lines(items) -> list[tuple[str, int]]:
    if not isinstance(items, list) or not items:
        raise SaleError("Cart is empty")

    lines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise SaleError("Each cart line must be an object", details={"line": index})
        product_id = item.get("product_id")
        quantity = item.get("quantity")
        if not product_id or not isinstance(product_id, str):
            raise SaleError("product_id is required", details={"line": index})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise SaleError("quantity must be a positive integer", details={"line": index})
        lines.append((product_id, quantity))
    return lines


def _validate_stock(products: dict[str, Product], lines: list[tuple[str, int]]) -> dict[str, int]:
    product_totals: dict[str, int] = {}
    for product_id, qty in lines:
        product_totals[product_id] = product_totals.get(product_id, 0) + qty

    insufficient = []
    for product_id, qty in product_totals.items():
        on_hand = products[product_id].stock
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "product_name": products[product_id].name,
                "requested_quantity": qty,
                "stock": on_hand,
            })

    if insufficient:
        raise SaleError("Not enough stock", details={"items": insufficient})
    return product_totals


def create_sale(
    *,
    items: list[dict],
    payment_method: str,
    customer_id: str | None = None,
    cash_received_cents: int | None = None,
    user_id: str | None = None,
) -> Sale:
    """
    Record a completed sale.

    Args:
        items: Cart lines, each {"product_id": str, "quantity": int}
        payment_method: cash, card, upi or credit
        customer_id: Required for credit, forbidden otherwise
        cash_received_cents: Cash tendered (cash sales only); change is
            stored on the sale
        user_id: Cashier attribution

    Returns:
        The committed Sale with its items

    Raises:
        SaleError: On any validation failure; nothing is written
    """
    if payment_method not in PAYMENT_METHODS:
        raise SaleError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    lines = _normalize_lines(items)

    if payment_method == PAYMENT_CREDIT and not customer_id:
        raise SaleError("Please select a customer for credit sale")
    if payment_method != PAYMENT_CREDIT and customer_id:
        raise SaleError("Only credit sales can reference a customer")

    if cash_received_cents is not None:
        if payment_method != PAYMENT_CASH:
            raise SaleError("cash_received_cents only applies to cash sales")
        if isinstance(cash_received_cents, bool) or not isinstance(cash_received_cents, int) or cash_received_cents < 0:
            raise SaleError("cash_received_cents must be a non-negative integer")

    def _op():
        product_ids = sorted({product_id for product_id, _ in lines})
        products = {
            p.id: p
            for p in lock_for_update(db.session.query(Product).filter(Product.id.in_(product_ids))).all()
        }
        missing = [pid for pid in product_ids if pid not in products]
        if missing:
            raise SaleError("Product not found", details={"product_ids": missing})

        product_totals = _validate_stock(products, lines)

        total_cents = sum(products[pid].price_cents * qty for pid, qty in lines)

        change_cents = None
        if cash_received_cents is not None:
            if cash_received_cents < total_cents:
                raise SaleError(
                    "Cash received is less than the sale total",
                    details={"total_cents": total_cents, "cash_received_cents": cash_received_cents},
                )
            change_cents = cash_received_cents - total_cents

        if payment_method == PAYMENT_CREDIT:
            if not db.session.query(CreditCustomer.id).filter_by(id=customer_id).first():
                raise SaleError("Customer not found")

        sale = Sale(
            date=utcnow(),
            total_cents=total_cents,
            payment_method=payment_method,
            customer_id=customer_id if payment_method == PAYMENT_CREDIT else None,
            refunded=False,
            cash_received_cents=cash_received_cents,
            change_cents=change_cents,
            created_by=user_id,
        )
        db.session.add(sale)
        db.session.flush()

        # price/cost are copied now; later product edits do not touch them
        for product_id, qty in lines:
            product = products[product_id]
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=product.id,
                product_name=product.name,
                quantity=qty,
                price_cents=product.price_cents,
                cost_cents=product.cost_cents,
            ))

        for product_id, qty in product_totals.items():
            products[product_id].stock -= qty

        if payment_method == PAYMENT_CREDIT and total_cents > 0:
            try:
                append_credit_entry(customer_id, CREDIT_TYPE_SALE, total_cents, CREDIT_SALE_DESCRIPTION)
            except LedgerError as e:
                raise SaleError(str(e), details=e.details)

        db.session.flush()
        return sale

    sale = run_in_transaction(_op)
    db.session.refresh(sale)
    return sale


def get_sale(sale_id: str) -> Sale | None:
    return (
        db.session.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.id == sale_id)
        .first()
    )


def list_sales(start: datetime | None = None, end: datetime | None = None) -> list[Sale]:
    """Sales newest first with their items, optionally limited to [start, end]."""
    query = db.session.query(Sale).options(selectinload(Sale.items))
    if start:
        query = query.filter(Sale.date >= start)
    if end:
        query = query.filter(Sale.date <= end)
    return query.order_by(Sale.date.desc(), Sale.id.asc()).all()


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_sales(
    term: str,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Sale]:
    """
    Find sales for the refund screen.

    Matches a sale id prefix, the payment method, or the name of any product
    on the sale (case-insensitive). '%' and '_' in the term match literally.
    start/end limit the result the same way as list_sales().
    """
    term = (term or "").strip()
    if not term:
        return list_sales(start=start, end=end)

    escaped = _escape_like(term)
    pattern = f"%{escaped}%"
    item_match = (
        db.session.query(SaleItem.sale_id)
        .filter(SaleItem.product_name.ilike(pattern, escape="\\"))
    )
    query = (
        db.session.query(Sale)
        .options(selectinload(Sale.items))
        .filter(or_(
            Sale.id.like(f"{escaped}%", escape="\\"),
            Sale.payment_method.ilike(pattern, escape="\\"),
            Sale.id.in_(item_match),
        ))
    )
    if start:
        query = query.filter(Sale.date >= start)
    if end:
        query = query.filter(Sale.date <= end)
    return query.order_by(Sale.date.desc(), Sale.id.asc()).all()
