# Overview: Service-layer operations for credit customers and their ledger.

"""
Credit Customer Ledger Service

Every change to a customer's balance is an append to credit_transactions
plus an update of the denormalized total_credit_cents, written together in
one transaction so the two cannot diverge.

TRANSACTION TYPES:
- sale: credit sale, balance goes up
- payment: customer pays back, balance goes down
"""

from __future__ import annotations

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CreditCustomer, CreditTransaction
from ..models.customers import CREDIT_TYPE_PAYMENT, CREDIT_TRANSACTION_TYPES
from ..validation import ConflictError
from .concurrency import lock_for_update, run_in_transaction
from shopdesk.time_utils import utcnow


CUSTOMER_MUTABLE_FIELDS = {"name", "phone", "email"}


class LedgerError(Exception):
    """Raised for credit ledger operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def get_customer(customer_id: str) -> CreditCustomer | None:
    return db.session.query(CreditCustomer).filter_by(id=customer_id).first()


def list_customers() -> list[dict]:
    """Customers ordered by name, each with its ledger newest first."""
    customers = db.session.query(CreditCustomer).order_by(CreditCustomer.name.asc(), CreditCustomer.id.asc()).all()
    return [c.to_dict(include_transactions=True) for c in customers]


def create_customer(patch: dict) -> dict:
    customer = CreditCustomer(total_credit_cents=0)
    for key, value in patch.items():
        if key in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, key, value)
    db.session.add(customer)
    db.session.commit()
    return customer.to_dict(include_transactions=True)


def update_customer(customer_id: str, patch: dict) -> dict | None:
    """Update contact details. The balance only moves through the ledger."""
    customer = get_customer(customer_id)
    if not customer:
        return None
    for key, value in patch.items():
        if key in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, key, value)
    db.session.commit()
    return customer.to_dict(include_transactions=True)


def delete_customer(customer_id: str) -> bool:
    """
    Delete a customer and its ledger.

    Raises:
        ConflictError: If sales still reference the customer
    """
    customer = get_customer(customer_id)
    if not customer:
        return False

    db.session.delete(customer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Customer has credit sales on record and cannot be deleted.")
    return True


def append_credit_entry(
    customer_id: str,
    entry_type: str,
    amount_cents: int,
    description: str,
) -> CreditTransaction:
    """
    Append a ledger entry and move the running balance, without committing.

    Callers own the transaction (see run_in_transaction). The customer row is
    locked and version-checked so concurrent writers cannot lose an update.
    """
    if entry_type not in CREDIT_TRANSACTION_TYPES:
        raise LedgerError(f"Unknown credit transaction type: {entry_type}")
    if amount_cents <= 0:
        raise LedgerError("Amount must be positive")

    customer = lock_for_update(db.session.query(CreditCustomer).filter_by(id=customer_id)).first()
    if not customer:
        raise LedgerError("Customer not found")

    if entry_type == CREDIT_TYPE_PAYMENT:
        if amount_cents > customer.total_credit_cents:
            raise LedgerError(
                "Payment exceeds outstanding credit",
                details={
                    "amount_cents": amount_cents,
                    "total_credit_cents": customer.total_credit_cents,
                },
            )
        customer.total_credit_cents -= amount_cents
    else:
        customer.total_credit_cents += amount_cents

    entry = CreditTransaction(
        customer_id=customer.id,
        amount_cents=amount_cents,
        type=entry_type,
        description=description,
        date=utcnow(),
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def record_payment(customer_id: str, amount_cents: int, description: str | None = None) -> dict:
    """
    Record a repayment from a credit customer.

    Rejected before any write when the amount is not positive or exceeds the
    current balance.
    """
    def _op():
        entry = append_credit_entry(
            customer_id,
            CREDIT_TYPE_PAYMENT,
            amount_cents,
            description or "Payment received",
        )
        return entry

    entry = run_in_transaction(_op)
    customer = get_customer(customer_id)
    return {
        "transaction": entry.to_dict(),
        "customer": customer.to_dict(include_transactions=True),
    }


def credit_summary() -> dict:
    """Outstanding credit across all customers."""
    total, with_credit = db.session.query(
        func.coalesce(func.sum(CreditCustomer.total_credit_cents), 0),
        func.coalesce(func.sum(case((CreditCustomer.total_credit_cents > 0, 1), else_=0)), 0),
    ).one()
    return {
        "total_credit_cents": int(total),
        "customers_with_credit": int(with_credit),
    }


def reconcile_balances(*, fix: bool = False) -> list[dict]:
    """
    Compare each stored balance with the sum of its ledger.

    Returns one entry per customer whose balance drifted. With fix=True the
    stored balance is rewritten from the ledger.
    """
    drifted = []
    customers = db.session.query(CreditCustomer).order_by(CreditCustomer.name.asc()).all()
    for customer in customers:
        ledger = customer.ledger_balance_cents()
        if ledger == customer.total_credit_cents:
            continue
        drifted.append({
            "customer_id": customer.id,
            "name": customer.name,
            "stored_cents": customer.total_credit_cents,
            "ledger_cents": ledger,
        })
        if fix:
            customer.total_credit_cents = ledger

    if fix and drifted:
        db.session.commit()
    return drifted
