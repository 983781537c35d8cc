# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require authentication and establish tenant context.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.user_id: The tenant key every service call is scoped by

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "kind": "unauthorized"}), 401

        user = session_service.validate_session(token)
        if not user:
            return jsonify({"error": "Invalid or expired token", "kind": "unauthorized"}), 401

        g.current_user = user
        g.user_id = user.id
        g.auth_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require an admin account. Must be stacked under @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = getattr(g, "current_user", None)
        if user is None:
            return jsonify({"error": "Authentication required", "kind": "unauthorized"}), 401
        if not user.is_admin:
            return jsonify({"error": "Admin access required", "kind": "forbidden"}), 403
        return f(*args, **kwargs)

    return decorated_function
