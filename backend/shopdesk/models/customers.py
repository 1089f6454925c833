from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z, utcnow
from .common import new_id


CREDIT_TYPE_SALE = "sale"
CREDIT_TYPE_PAYMENT = "payment"
CREDIT_TRANSACTION_TYPES = (CREDIT_TYPE_SALE, CREDIT_TYPE_PAYMENT)


class CreditCustomer(db.Model):
    """
    Customer who buys on credit (udhar).

    total_credit_cents is a denormalized running balance. It is only written
    in the same transaction that appends a CreditTransaction, and
    ledger_balance_cents() recomputes it from the ledger for reconciliation.
    """
    __tablename__ = "credit_customers"
    __table_args__ = (
        db.Index("ix_credit_customers_name", "name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=True)

    total_credit_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def ledger_balance_cents(self) -> int:
        balance = 0
        for tx in self.transactions:
            if tx.type == CREDIT_TYPE_SALE:
                balance += tx.amount_cents
            elif tx.type == CREDIT_TYPE_PAYMENT:
                balance -= tx.amount_cents
        return balance

    def to_dict(self, include_transactions: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "total_credit_cents": self.total_credit_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_transactions:
            transactions = sorted(self.transactions, key=lambda tx: tx.date, reverse=True)
            data["transactions"] = [tx.to_dict() for tx in transactions]
            data["ledger_balance_cents"] = self.ledger_balance_cents()
        return data


class CreditTransaction(db.Model):
    """
    Append-only ledger of credit balance changes.

    TRANSACTION TYPES:
    - sale: credit sale, increases the balance owed
    - payment: customer paid back, decreases the balance owed
    """
    __tablename__ = "credit_transactions"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_credit_transactions_amount_positive"),
        db.Index("ix_credit_transactions_customer_date", "customer_id", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(
        db.String(36),
        db.ForeignKey("credit_customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount_cents = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    description = db.Column(db.Text, nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    customer = db.relationship(
        "CreditCustomer",
        backref=db.backref("transactions", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "amount_cents": self.amount_cents,
            "type": self.type,
            "description": self.description,
            "date": to_utc_z(self.date),
        }
