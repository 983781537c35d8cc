# Overview: Flask API routes for business settings; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import PosError
from ..validation import require_json_object
from ..services import settings_service


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def get_settings_route():
    """Business profile and receipt text; created with defaults on first read."""
    try:
        return jsonify({"settings": settings_service.get_settings(g.user_id).to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get settings")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@settings_bp.put("/business")
@require_auth
def update_business_route():
    """Body: any of name, tax_id, address, phone, email, website, business_hours."""
    try:
        data = require_json_object(request.get_json(silent=True))
        settings = settings_service.update_business(g.user_id, data)
        return jsonify({"settings": settings.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update business settings")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@settings_bp.put("/pos")
@require_auth
def update_pos_route():
    """Body: any of receipt_header, receipt_footer."""
    try:
        data = require_json_object(request.get_json(silent=True))
        settings = settings_service.update_pos(g.user_id, data)
        return jsonify({"settings": settings.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update POS settings")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500
