from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z, utcnow
from .common import new_id


class Refund(db.Model):
    """
    Refund against an earlier sale.

    total_cents is the sum of price * quantity over the refunded items. The
    refunded quantity of a sale item across all refunds never exceeds what
    was sold (enforced in refund_service).
    """
    __tablename__ = "refunds"
    __table_args__ = (
        db.Index("ix_refunds_date", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)
    total_cents = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=False)

    created_by = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("refunds", lazy=True))

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "sale_id": self.sale_id,
            "total_cents": self.total_cents,
            "reason": self.reason,
            "created_by": self.created_by,
            "date": to_utc_z(self.date),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class RefundItem(db.Model):
    """Refunded line. Snapshots are copied from the originating SaleItem."""
    __tablename__ = "refund_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_refund_items_quantity_positive"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    refund_id = db.Column(db.String(36), db.ForeignKey("refunds.id", ondelete="CASCADE"), nullable=False, index=True)
    sale_item_id = db.Column(db.String(36), db.ForeignKey("sale_items.id"), nullable=True, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False)

    refund = db.relationship(
        "Refund",
        backref=db.backref("items", lazy=True, cascade="all, delete-orphan", passive_deletes=True),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "refund_id": self.refund_id,
            "sale_item_id": self.sale_item_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "cost_cents": self.cost_cents,
        }
