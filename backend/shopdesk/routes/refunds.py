# Overview: Flask API routes for refunds.

"""Refund API routes (Refund page creates, Refund History lists)"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import refund_service
from ..services.refund_service import RefundError
from ..pages import PAGE_REFUND, PAGE_REFUNDS
from ..time_utils import parse_iso_datetime
from ..decorators import require_auth, require_page, require_any_page


refunds_bp = Blueprint("refunds", __name__, url_prefix="/api/refunds")


@refunds_bp.post("")
@require_auth
@require_page(PAGE_REFUND)
def create_refund_route():
    """
    Refund part or all of a sale.

    Body:
    {
        "sale_id": "...",
        "items": [{"sale_item_id": "...", "quantity": 1}, ...],
        "reason": "Damaged packaging",
        "restock": true   // optional, default true
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        sale_id = data.get("sale_id")
        if not sale_id:
            return jsonify({"error": "sale_id required"}), 400

        restock = data.get("restock", True)
        if not isinstance(restock, bool):
            return jsonify({"error": "restock must be a boolean"}), 400

        refund = refund_service.create_refund(
            sale_id=sale_id,
            items=data.get("items"),
            reason=data.get("reason"),
            user_id=g.current_user.id,
            restock=restock,
        )
        return jsonify({"refund": refund.to_dict()}), 201

    except RefundError as e:
        status = 404 if str(e) == "Sale not found" else 400
        return jsonify({"error": str(e), "details": e.details}), status
    except Exception:
        current_app.logger.exception("Failed to create refund")
        return jsonify({"error": "Internal server error"}), 500


@refunds_bp.get("")
@require_auth
@require_page(PAGE_REFUNDS)
def list_refunds_route():
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 datetimes"}), 400

    refunds = refund_service.list_refunds(start=start, end=end)
    return jsonify({"items": [r.to_dict() for r in refunds], "count": len(refunds)}), 200


@refunds_bp.get("/<refund_id>")
@require_auth
@require_any_page(PAGE_REFUNDS, PAGE_REFUND)
def get_refund_route(refund_id: str):
    refund = refund_service.get_refund(refund_id)
    if not refund:
        return jsonify({"error": "Refund not found"}), 404
    return jsonify({"refund": refund.to_dict()}), 200
