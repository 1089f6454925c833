# Overview: Flask API routes for the role/page access matrix.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import permission_service
from ..models.auth import ROLE_ADMIN, ROLES
from ..pages import PAGE_DEFINITIONS
from ..validation import ValidationError
from ..decorators import require_auth, require_role


permissions_bp = Blueprint("permissions", __name__, url_prefix="/api/permissions")


@permissions_bp.get("/navigation")
@require_auth
def navigation_route():
    """Pages the caller may open, for building the sidebar."""
    return jsonify({
        "role": g.role,
        "allowed_pages": permission_service.allowed_pages(g.role),
        "navigation": permission_service.navigation(g.role),
    }), 200


@permissions_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_permissions_route():
    rows = permission_service.list_permissions()
    return jsonify({
        "items": [row.to_dict() for row in rows],
        "count": len(rows),
        "roles": list(ROLES),
        "pages": [{"path": path, "label": label} for path, label in PAGE_DEFINITIONS],
    }), 200


@permissions_bp.put("")
@require_auth
@require_role(ROLE_ADMIN)
def update_permission_route():
    """
    Grant or revoke a page for a role.

    Body: {"role": "cashier", "page_path": "/refund", "can_access": true}
    """
    data = request.get_json(silent=True) or {}
    try:
        permission = permission_service.update_permission(
            data.get("role"),
            data.get("page_path"),
            data.get("can_access"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update permission")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"permission": permission.to_dict()}), 200
