# Overview: Bulk deletion of business data (admin reset).

"""
Data Reset Service

Kinds and what each one clears (children first, so foreign keys hold):

- refunds:          refund_items, refunds
- sales:            refund_items, refunds, sale_items, sales
- credit_customers: credit_transactions, customer links on remaining sales,
                    credit_customers
- products:         refund_items, sale_items, products

Selected kinds always run in the order above. The whole reset is one
transaction: if any step fails nothing is deleted.

Accounts, roles, permissions and shop settings are never touched.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import (
    CreditCustomer,
    CreditTransaction,
    Product,
    Refund,
    RefundItem,
    Sale,
    SaleItem,
)


KIND_REFUNDS = "refunds"
KIND_SALES = "sales"
KIND_CREDIT_CUSTOMERS = "credit_customers"
KIND_PRODUCTS = "products"

# Execution order
DATA_KINDS = (KIND_REFUNDS, KIND_SALES, KIND_CREDIT_CUSTOMERS, KIND_PRODUCTS)


class ResetError(Exception):
    """Raised when a reset request is invalid or fails."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _delete_all(model, counts: dict[str, int]) -> None:
    deleted = db.session.query(model).delete(synchronize_session=False)
    table = model.__tablename__
    counts[table] = counts.get(table, 0) + deleted


def _reset_refunds(counts: dict[str, int]) -> None:
    _delete_all(RefundItem, counts)
    _delete_all(Refund, counts)


def _reset_sales(counts: dict[str, int]) -> None:
    _delete_all(RefundItem, counts)
    _delete_all(Refund, counts)
    _delete_all(SaleItem, counts)
    _delete_all(Sale, counts)


def _reset_credit_customers(counts: dict[str, int]) -> None:
    _delete_all(CreditTransaction, counts)
    # Sales outlive their customer; they keep their totals but lose the link
    detached = (
        db.session.query(Sale)
        .filter(Sale.customer_id.isnot(None))
        .update({Sale.customer_id: None}, synchronize_session=False)
    )
    counts["sales_detached"] = counts.get("sales_detached", 0) + detached
    _delete_all(CreditCustomer, counts)


def _reset_products(counts: dict[str, int]) -> None:
    _delete_all(RefundItem, counts)
    _delete_all(SaleItem, counts)
    _delete_all(Product, counts)


_RESETTERS = {
    KIND_REFUNDS: _reset_refunds,
    KIND_SALES: _reset_sales,
    KIND_CREDIT_CUSTOMERS: _reset_credit_customers,
    KIND_PRODUCTS: _reset_products,
}


def reset_selected_data(kinds) -> dict:
    """
    Delete the selected kinds of business data.

    Args:
        kinds: Iterable of names from DATA_KINDS (order does not matter)

    Returns:
        {"kinds": [...executed in order], "deleted": {table: rows}}

    Raises:
        ResetError: Empty or unknown selection, or a database failure
            (everything rolled back)
    """
    if isinstance(kinds, str) or not kinds:
        raise ResetError("Select at least one data type to reset")

    kinds = list(kinds)
    invalid = [k for k in kinds if not isinstance(k, str)]
    if invalid:
        raise ResetError(
            f"Unknown data type: {', '.join(repr(k) for k in invalid)}",
            details={"allowed": list(DATA_KINDS)},
        )

    requested = set(kinds)
    unknown = sorted(k for k in requested if k not in DATA_KINDS)
    if unknown:
        raise ResetError(
            f"Unknown data type: {', '.join(unknown)}",
            details={"allowed": list(DATA_KINDS)},
        )

    ordered = [kind for kind in DATA_KINDS if kind in requested]
    counts: dict[str, int] = {}
    try:
        for kind in ordered:
            _RESETTERS[kind](counts)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Data reset failed: kinds=%s", ",".join(ordered))
        raise ResetError("Failed to reset data", details={"kinds": ordered}) from e

    current_app.logger.info("Data reset: kinds=%s deleted=%s", ",".join(ordered), counts)
    return {"kinds": ordered, "deleted": counts}


def reset_all_data() -> dict:
    return reset_selected_data(DATA_KINDS)
