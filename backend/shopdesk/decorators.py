# Overview: Request authentication and page/role gates for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError
from .models.auth import ROLE_ADMIN


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'role')


def _is_admin() -> bool:
    return _is_authenticated() and g.role == ROLE_ADMIN


def require_auth(f):
    """
    Require a valid bearer session.

    Sets on flask.g:
    - g.current_user: the authenticated Profile
    - g.role: the account's role (None if it has none)
    - g.session_context: the full SessionContext

    Returns 401 when the header is missing, or the token is unknown,
    expired, revoked or belongs to a deactivated account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.role = context.role
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_page(page_path: str):
    """Require the caller's role to have access to a page. Admin always passes."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if _is_admin():
                return f(*args, **kwargs)

            try:
                permission_service.require_page_access(g.role, page_path)
            except PermissionDeniedError as e:
                current_app.logger.info(
                    "Page access denied: user=%s role=%s page=%s path=%s",
                    g.current_user.username, g.role, page_path, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_page": page_path,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_page(*page_paths):
    """Require access to at least one of several pages."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if _is_admin():
                return f(*args, **kwargs)

            if not any(permission_service.has_access(g.role, page) for page in page_paths):
                current_app.logger.info(
                    "Page access denied: user=%s role=%s pages=%s path=%s",
                    g.current_user.username, g.role, ",".join(page_paths), request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_pages": list(page_paths),
                    "message": f"Requires any of: {', '.join(page_paths)}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_role(*roles):
    """Require one of the given roles (write operations, admin tools)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                    "message": f"Requires role: {', '.join(roles)}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
