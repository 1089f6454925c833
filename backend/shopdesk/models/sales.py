from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z, utcnow
from .common import new_id


PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_UPI = "upi"
PAYMENT_CREDIT = "credit"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_UPI, PAYMENT_CREDIT)


class Sale(db.Model):
    """
    Completed counter sale.

    A sale is written together with its items, the stock decrements and (for
    credit) the ledger entry in a single transaction; see sales_service.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_date", "date"),
        # Only credit sales reference a customer. A credit sale can lose its
        # customer when credit customers are reset.
        db.CheckConstraint(
            "payment_method = 'credit' OR customer_id IS NULL",
            name="ck_sales_customer_only_for_credit",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    total_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False, index=True)
    customer_id = db.Column(db.String(36), db.ForeignKey("credit_customers.id"), nullable=True, index=True)
    refunded = db.Column(db.Boolean, nullable=False, default=False)

    # Cash tender (only for cash sales where the cashier entered the amount received)
    cash_received_cents = db.Column(db.Integer, nullable=True)
    change_cents = db.Column(db.Integer, nullable=True)

    created_by = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # passive_deletes="all": deleting a customer with sales must fail, not detach them
    customer = db.relationship("CreditCustomer", backref=db.backref("sales", lazy=True, passive_deletes="all"))

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "date": to_utc_z(self.date),
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "customer_id": self.customer_id,
            "refunded": self.refunded,
            "cash_received_cents": self.cash_received_cents,
            "change_cents": self.change_cents,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Line item of a sale. price/cost are snapshots taken at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=True, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship(
        "Sale",
        backref=db.backref("items", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )
    product = db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "cost_cents": self.cost_cents,
            "line_total_cents": self.line_total_cents,
        }
