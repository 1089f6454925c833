# Overview: Flask API routes for recording and browsing sales.

"""Sales API routes (POS checkout, Sales History, Refund lookup)"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service
from ..services.refund_service import refundable_items
from ..services.sales_service import SaleError
from ..pages import PAGE_POS, PAGE_REFUND, PAGE_SALES
from ..time_utils import parse_iso_datetime
from ..decorators import require_auth, require_page, require_any_page


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_range_args():
    start = parse_iso_datetime(request.args.get("start"))
    end = parse_iso_datetime(request.args.get("end"))
    return start, end


@sales_bp.post("")
@require_auth
@require_page(PAGE_POS)
def create_sale_route():
    """
    Complete a checkout.

    Body:
    {
        "items": [{"product_id": "...", "quantity": 2}, ...],
        "payment_method": "cash" | "card" | "upi" | "credit",
        "customer_id": "..."          // credit only
        "cash_received_cents": 50000  // cash only, optional
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        sale = sales_service.create_sale(
            items=data.get("items"),
            payment_method=data.get("payment_method"),
            customer_id=data.get("customer_id"),
            cash_received_cents=data.get("cash_received_cents"),
            user_id=g.current_user.id,
        )

        return jsonify({"sale": sale.to_dict()}), 201

    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
@require_any_page(PAGE_SALES, PAGE_REFUND)
def list_sales_route():
    """
    Sales newest first.

    Query params:
    - start, end: ISO-8601 datetimes (optional)
    - q: search by sale id prefix, payment method or product name
    """
    try:
        start, end = _parse_range_args()
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 datetimes"}), 400

    term = request.args.get("q")
    if term:
        sales = sales_service.search_sales(term, start=start, end=end)
    else:
        sales = sales_service.list_sales(start=start, end=end)

    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<sale_id>")
@require_auth
@require_any_page(PAGE_SALES, PAGE_REFUND)
def get_sale_route(sale_id: str):
    """Sale with items, each annotated with how much can still be refunded."""
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404

    data = sale.to_dict(include_items=False)
    data["items"] = refundable_items(sale)
    return jsonify({"sale": data}), 200
