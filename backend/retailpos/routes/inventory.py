# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

"""
Inventory Routes

SECURITY: All routes require authentication; every query is scoped to the
authenticated user.

Stock status is derived from stock and reorder level; clients never set it.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import PosError
from ..validation import require_json_object
from ..services import inventory_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def list_items_response():
    """
    Shared by GET /api/inventory and GET /api/sales/inventory.

    Query parameters:
    - category, status, supplier_id, search
    - page (default 1), limit (default 20, max 200)

    Returns:
        {items: InventoryItem[], pagination: {page, limit, total_items, total_pages}}
    """
    items, pagination = inventory_service.list_items(
        g.user_id,
        category=request.args.get("category"),
        status=request.args.get("status"),
        supplier_id=request.args.get("supplier_id", type=int),
        search=request.args.get("search"),
        page=request.args.get("page", 1, type=int),
        limit=request.args.get("limit", inventory_service.DEFAULT_PAGE_SIZE, type=int),
    )
    return jsonify({
        "items": [item.to_dict() for item in items],
        "pagination": pagination,
    })


@inventory_bp.get("")
@require_auth
def list_inventory_route():
    try:
        return list_items_response()
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list inventory")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@inventory_bp.get("/categories")
@require_auth
def list_categories_route():
    try:
        return jsonify({"categories": inventory_service.list_categories(g.user_id)})
    except Exception:
        current_app.logger.exception("Failed to list inventory categories")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@inventory_bp.get("/stats")
@require_auth
def stats_route():
    """Counts by stock status plus total stock value at selling price."""
    try:
        return jsonify(inventory_service.get_stats(g.user_id))
    except Exception:
        current_app.logger.exception("Failed to compute inventory stats")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@inventory_bp.get("/<int:item_id>")
@require_auth
def get_item_route(item_id: int):
    try:
        item = inventory_service.get_item(g.user_id, item_id)
        return jsonify({"item": item.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get inventory item")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@inventory_bp.post("")
@require_auth
def create_item_route():
    """
    Create an inventory item.

    Request body:
    {
        "sku": "OF-2002",        // required, unique per user
        "name": "Stapler",       // required
        "category": "Office",    // required
        "price_cents": 899,      // required
        "stock": 62,
        "reorder_level": 15,
        "supplier_id": 3,
        ...
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        item = inventory_service.create_item(g.user_id, data)
        return jsonify({"item": item.to_dict()}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@inventory_bp.put("/<int:item_id>")
@require_auth
def update_item_route(item_id: int):
    try:
        data = require_json_object(request.get_json(silent=True))
        item = inventory_service.update_item(g.user_id, item_id, data)
        return jsonify({"item": item.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@inventory_bp.delete("/<int:item_id>")
@require_auth
def delete_item_route(item_id: int):
    try:
        inventory_service.delete_item(g.user_id, item_id)
        return jsonify({"message": "Item deleted successfully"})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete inventory item")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500
