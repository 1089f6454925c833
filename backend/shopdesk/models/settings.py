from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z
from .common import new_id


DEFAULT_SHOP_SETTINGS = {
    "name": "My Shop",
    "logo": None,
    "currency": "₹",
    "tax_rate_bps": 0,
    "printer_name": None,
    "printer_width": "80mm",
    "auto_print": False,
}


class ShopSettings(db.Model):
    """Singleton shop configuration row."""
    __tablename__ = "shop_settings"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False, default=DEFAULT_SHOP_SETTINGS["name"])
    logo = db.Column(db.Text, nullable=True)
    currency = db.Column(db.String(8), nullable=False, default=DEFAULT_SHOP_SETTINGS["currency"])

    # Basis points: 1800 = 18.00%
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    printer_name = db.Column(db.String(255), nullable=True)
    printer_width = db.Column(db.String(16), nullable=True, default=DEFAULT_SHOP_SETTINGS["printer_width"])
    auto_print = db.Column(db.Boolean, nullable=False, default=False)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "logo": self.logo,
            "currency": self.currency,
            "tax_rate_bps": self.tax_rate_bps,
            "printer_name": self.printer_name,
            "printer_width": self.printer_width,
            "auto_print": self.auto_print,
            "updated_at": to_utc_z(self.updated_at),
        }
