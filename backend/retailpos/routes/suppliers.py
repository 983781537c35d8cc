# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

"""
Supplier Routes

SECURITY: All routes require authentication.
- Delete additionally requires an admin account.

Suppliers are scoped to the authenticated user.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_admin, require_auth
from ..errors import PosError
from ..validation import require_json_object
from ..services import supplier_service


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
def list_suppliers_route():
    """List suppliers sorted by name."""
    try:
        suppliers = supplier_service.list_suppliers(g.user_id)
        return jsonify({"items": [s.to_dict() for s in suppliers], "count": len(suppliers)})
    except Exception:
        current_app.logger.exception("Failed to list suppliers")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(g.user_id, supplier_id)
        return jsonify({"supplier": supplier.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get supplier")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@suppliers_bp.post("")
@require_auth
def create_supplier_route():
    """
    Create a new supplier.

    Request body:
    {
        "name": "Supplier Name",      // required
        "contact": "Contact Person",  // required
        "email": "orders@acme.test",  // required, unique per user
        "phone": "555-0100",          // required
        "address": "...",             // optional
        "payment_terms": "Net 30",    // optional
        "status": "Active"            // optional
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        supplier = supplier_service.create_supplier(g.user_id, data)
        return jsonify({"supplier": supplier.to_dict()}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
def update_supplier_route(supplier_id: int):
    try:
        data = require_json_object(request.get_json(silent=True))
        supplier = supplier_service.update_supplier(g.user_id, supplier_id, data)
        return jsonify({"supplier": supplier.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@suppliers_bp.patch("/<int:supplier_id>/status")
@require_auth
def set_status_route(supplier_id: int):
    """Request body: {"status": "Active" | "Inactive" | "On Hold"}"""
    try:
        data = require_json_object(request.get_json(silent=True))
        supplier = supplier_service.set_status(g.user_id, supplier_id, data.get("status"))
        return jsonify({"supplier": supplier.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier status")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_admin
def delete_supplier_route(supplier_id: int):
    try:
        supplier_service.delete_supplier(g.current_user, supplier_id)
        return jsonify({"message": "Supplier deleted successfully"})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete supplier")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500
