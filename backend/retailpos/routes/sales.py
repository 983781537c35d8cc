# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales Routes

POST /api/sales/complete is the checkout: stock, sale record, receipt number
and cash-drawer entry are written together or not at all (see
services/sales_service.py).

A completed sale is immutable except for its printed flag.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import PosError
from ..validation import require_json_object
from ..services import sales_service
from .inventory import list_items_response
from retailpos.time_utils import parse_iso_datetime


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/complete")
@require_auth
def complete_sale_route():
    """
    Complete a sale.

    Request body:
    {
        "items": [{"item_id": 7, "quantity": 5}, ...],  // required, non-empty
        "cash_amount_cents": 5000,                       // required, >= total
        "discount_cents": 0,                             // optional, <= subtotal
        "customer_name": "Walk-in Customer"              // optional
    }

    Line prices come from the catalog at the time of sale.

    Returns:
        {sale, inventory_updates, cash_drawer: {previous_balance_cents,
         current_balance_cents, sale_amount_cents}}
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        result = sales_service.complete_sale(
            g.user_id,
            data.get("items"),
            cash_amount_cents=data.get("cash_amount_cents"),
            discount_cents=data.get("discount_cents", 0),
            customer_name=data.get("customer_name"),
        )
        return jsonify(result.to_dict()), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to complete sale")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Query parameters:
    - start_date, end_date: ISO-8601; a date-only end_date includes that whole day
    - search: receipt number or customer name
    """
    try:
        start = parse_iso_datetime(request.args.get("start_date"))
        end = parse_iso_datetime(request.args.get("end_date"))
    except ValueError:
        return jsonify({"error": "start_date and end_date must be ISO-8601 datetimes", "kind": "validation"}), 400

    try:
        sales = sales_service.list_sales(g.user_id, start=start, end=end, search=request.args.get("search"))
        return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@sales_bp.get("/history")
@require_auth
def sales_history_route():
    """Most recent sales by receipt number (limit default 50, max 500)."""
    try:
        limit = request.args.get("limit", sales_service.DEFAULT_HISTORY_LIMIT, type=int)
        sales = sales_service.sales_history(g.user_id, limit=limit)
        return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)})
    except Exception:
        current_app.logger.exception("Failed to load sales history")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@sales_bp.get("/inventory")
@require_auth
def sale_inventory_route():
    """Catalog browse for the checkout screen; same filters as GET /api/inventory."""
    try:
        return list_items_response()
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sale inventory")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(g.user_id, sale_id)
        return jsonify({"sale": sale.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get sale")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@sales_bp.patch("/<int:sale_id>/printed")
@require_auth
def mark_printed_route(sale_id: int):
    try:
        sale = sales_service.mark_printed(g.user_id, sale_id)
        return jsonify({"sale": sale.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to mark sale printed")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500
