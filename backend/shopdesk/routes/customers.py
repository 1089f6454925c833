# Overview: Flask API routes for credit customers and their ledger.

"""
Credit customer routes (Credit Customers page).

Balances only move through the ledger: credit sales (POST /api/sales) push
them up, payments recorded here bring them down.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import customer_service
from ..services.customer_service import LedgerError
from ..models import CreditCustomer
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..pages import PAGE_CREDIT_CUSTOMERS, PAGE_DASHBOARD, PAGE_POS
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_positive_int,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_page, require_any_page, require_role


CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "email"},
    required_on_create={"name", "phone"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/credit-customers")


@customers_bp.get("")
@require_auth
@require_any_page(PAGE_CREDIT_CUSTOMERS, PAGE_POS)
def list_customers_route():
    """Customers by name with their ledgers (the POS picks credit customers from here)."""
    items = customer_service.list_customers()
    return jsonify({"items": items, "count": len(items)}), 200


@customers_bp.get("/summary")
@require_auth
@require_any_page(PAGE_CREDIT_CUSTOMERS, PAGE_DASHBOARD)
def credit_summary_route():
    return jsonify(customer_service.credit_summary()), 200


@customers_bp.get("/<customer_id>")
@require_auth
@require_page(PAGE_CREDIT_CUSTOMERS)
def get_customer_route(customer_id: str):
    customer = customer_service.get_customer(customer_id)
    if not customer:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify(customer.to_dict(include_transactions=True)), 200


@customers_bp.post("")
@require_auth
@require_page(PAGE_CREDIT_CUSTOMERS)
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=CreditCustomer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(customer_service.create_customer(patch)), 201


@customers_bp.put("/<customer_id>")
@require_auth
@require_page(PAGE_CREDIT_CUSTOMERS)
def update_customer_route(customer_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=CreditCustomer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    updated = customer_service.update_customer(customer_id, patch)
    if not updated:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify(updated), 200


@customers_bp.delete("/<customer_id>")
@require_auth
@require_page(PAGE_CREDIT_CUSTOMERS)
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def delete_customer_route(customer_id: str):
    try:
        deleted = customer_service.delete_customer(customer_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    if not deleted:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify({"ok": True}), 200


@customers_bp.post("/<customer_id>/payments")
@require_auth
@require_page(PAGE_CREDIT_CUSTOMERS)
def record_payment_route(customer_id: str):
    """
    Record a repayment.

    Body: {"amount_cents": int, "description": str (optional)}
    """
    try:
        data = request.get_json(silent=True) or {}
        amount_cents = require_positive_int(data.get("amount_cents"), "amount_cents")
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            return jsonify({"error": "description must be a string"}), 400

        result = customer_service.record_payment(
            customer_id,
            amount_cents,
            (description or "").strip() or None,
        )
        return jsonify(result), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except LedgerError as e:
        status = 404 if str(e) == "Customer not found" else 400
        return jsonify({"error": str(e), "details": e.details}), status
    except Exception:
        current_app.logger.exception("Failed to record credit payment")
        return jsonify({"error": "Internal server error"}), 500
