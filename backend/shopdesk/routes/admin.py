# Overview: Flask API routes for account roles and the data reset tool (admin only).

from flask import Blueprint, request, jsonify, g, current_app

from ..services import permission_service, reset_service
from ..services.reset_service import DATA_KINDS, ResetError
from ..models.auth import ROLE_ADMIN
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth, require_role


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_auth
@require_role(ROLE_ADMIN)
def list_users():
    users = permission_service.list_users()
    return jsonify({"items": users, "count": len(users)}), 200


@admin_bp.put("/users/<user_id>/role")
@require_auth
@require_role(ROLE_ADMIN)
def set_user_role(user_id: str):
    """Body: {"role": "manager"}"""
    data = request.get_json(silent=True) or {}
    try:
        user = permission_service.set_user_role(user_id, data.get("role"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"user": user}), 200


@admin_bp.post("/reset")
@require_auth
@require_role(ROLE_ADMIN)
def reset_data():
    """
    Delete business data.

    Body: {"kinds": ["sales", "refunds"]} or {"all": true}
    """
    data = request.get_json(silent=True) or {}
    try:
        if data.get("all") is True:
            result = reset_service.reset_all_data()
        else:
            kinds = data.get("kinds")
            if not isinstance(kinds, list):
                return jsonify({
                    "error": "kinds must be a list",
                    "details": {"allowed": list(DATA_KINDS)},
                }), 400
            result = reset_service.reset_selected_data(kinds)
    except ResetError as e:
        status = 500 if str(e) == "Failed to reset data" else 400
        return jsonify({"error": str(e), "details": e.details}), status

    current_app.logger.info("Reset requested by %s", g.current_user.username)
    return jsonify(result), 200
