# backend/shopdesk/routes/system.py
"""
System endpoints: health, backend database configuration, live schema.

The backend override chosen on the Setup page is stored in the instance
folder and picked up on the next start; the response always says which
database is active now and which one is saved for next time.
"""

import time
from flask import Blueprint, current_app, jsonify, request, g

from ..extensions import db
from ..models import Product, Profile, RolePermission
from ..models.auth import ROLE_ADMIN
from ..pages import PAGE_DATABASE_SCHEMA, PAGE_SETUP
from ..services import backend_config_service, schema_service
from ..services.backend_config_service import BackendConfigError
from ..decorators import require_auth, require_page, require_role
from shopdesk.time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        details = {
            "products": db.session.query(Product).count(),
            "users": db.session.query(Profile).count(),
            "role_permissions": db.session.query(RolePermission).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2), "details": details}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Database error"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    if healthy and database_health["details"]["role_permissions"] == 0:
        database_health["warning"] = "Permissions not seeded; run: flask system init"

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat() + "Z",
        "backend_source": current_app.config.get("BACKEND_SOURCE"),
        "checks": {"database": database_health},
    }, (200 if healthy else 503)


def _override_path() -> str:
    return backend_config_service.override_path(
        current_app.instance_path,
        current_app.config["BACKEND_CONFIG_FILENAME"],
    )


def _backend_config_payload() -> dict:
    active = backend_config_service.ResolvedBackend(
        current_app.config["SQLALCHEMY_DATABASE_URI"],
        current_app.config.get("BACKEND_SOURCE", backend_config_service.SOURCE_DEFAULT),
    )
    saved = backend_config_service.load_override(_override_path())
    return {
        "active": active.to_dict(),
        "saved_override": backend_config_service.mask_url(saved) if saved else None,
        "restart_required": bool(saved) and saved != active.database_uri,
    }


@system_bp.get("/backend-config")
@require_auth
@require_page(PAGE_SETUP)
def get_backend_config():
    try:
        return jsonify(_backend_config_payload()), 200
    except BackendConfigError as e:
        return jsonify({"error": str(e)}), 500


@system_bp.put("/backend-config")
@require_auth
@require_role(ROLE_ADMIN)
def set_backend_config():
    """Body: {"database_url": "postgresql://..."}"""
    data = request.get_json(silent=True) or {}
    try:
        backend_config_service.save_override(_override_path(), data.get("database_url"))
        payload = _backend_config_payload()
    except BackendConfigError as e:
        return jsonify({"error": str(e)}), 400

    current_app.logger.info(
        "Backend override saved by %s: %s", g.current_user.username, payload["saved_override"],
    )
    return jsonify(payload), 200


@system_bp.delete("/backend-config")
@require_auth
@require_role(ROLE_ADMIN)
def clear_backend_config():
    cleared = backend_config_service.clear_override(_override_path())
    if cleared:
        current_app.logger.info("Backend override cleared by %s", g.current_user.username)
    return jsonify({"cleared": cleared, **_backend_config_payload()}), 200


@system_bp.get("/schema")
@require_auth
@require_page(PAGE_DATABASE_SCHEMA)
def get_schema():
    return jsonify(schema_service.describe_schema()), 200
