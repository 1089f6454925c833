# Overview: Flask API routes for sign-up, sign-in and sessions.

"""
Authentication API routes

- signup: email + strong password; first account becomes admin
- login: returns a bearer token for the Authorization header
- logout: revokes the presented token
- me: the caller's account, role and the pages it may open
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..services.auth_service import AccountError, PasswordValidationError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, role, token, session) -> dict:
    return {
        "user": {**user.to_dict(), "role": role},
        "token": token,
        "session": session.to_dict(),
        "allowed_pages": permission_service.allowed_pages(role),
    }


@auth_bp.post("/signup")
def signup_route():
    """
    Create an account and sign it in.

    Body: {"email": "...", "password": "..."}
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.register_user(email, password)
        role = auth_service.get_user_role(user.id)

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        current_app.logger.info("Account created: user=%s role=%s", user.username, role)

        return jsonify({**_session_payload(user, role, token, session), "message": "Signup successful"}), 201

    except (AccountError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """Authenticate with email + password and open a session."""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email") or data.get("username")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        role = auth_service.get_user_role(user.id)

        return jsonify({**_session_payload(user, role, token, session), "message": "Login successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the bearer token in the Authorization header."""
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({
        "user": {**g.current_user.to_dict(), "role": g.role},
        "allowed_pages": permission_service.allowed_pages(g.role),
        "navigation": permission_service.navigation(g.role),
    }), 200
