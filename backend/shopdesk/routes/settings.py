from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_page, require_role
from ..services import settings_service
from ..models import ShopSettings
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..pages import PAGE_SETTINGS
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_settings,
    ValidationError,
)


SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields={"name", "logo", "currency", "tax_rate_bps", "printer_name", "printer_width", "auto_print"},
)

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def get_settings_route():
    # Any signed-in role
    return jsonify(settings_service.get_settings()), 200


@settings_bp.put("")
@require_auth
@require_page(PAGE_SETTINGS)
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def update_settings_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=ShopSettings, payload=payload, policy=SETTINGS_POLICY, partial=True)
        enforce_rules_settings(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(settings_service.update_settings(patch)), 200
