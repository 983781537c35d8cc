# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/retailpos/routes/auth.py
"""
Authentication API routes

- Accounts are created by an administrator from the CLI (flask users create);
  there is no self-registration endpoint.
- Session management with bearer tokens (see services/session_service.py).
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth
from ..errors import PosError
from ..validation import require_json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info and session token on success.
    Token must be included in Authorization header for protected routes.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        username = data.get("username") or data.get("email")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username/email and password required", "kind": "validation"}), 400

        user = auth_service.authenticate(username, password)
        if not user:
            current_app.logger.warning("Failed login for %s from %s", username, request.remote_addr)
            return jsonify({"error": "Invalid credentials", "kind": "unauthorized"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """
    Revoke session token (logout).

    WHY: Explicit logout prevents token reuse.
    """
    try:
        session_service.revoke_session(g.auth_token, reason="User logout")
        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Return the authenticated user."""
    return jsonify({"user": g.current_user.to_dict()}), 200
