# Overview: Flask API routes for tax operations; parses input and returns JSON responses.

"""
Tax Routes - settings, tax records, payments and calculators.

Calculators read the user's settings once per request (tax_service.load_tax_config).
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import PosError
from ..validation import require_json_object
from ..services import tax_service
from retailpos.time_utils import parse_iso_datetime


tax_bp = Blueprint("tax", __name__, url_prefix="/api/tax")


@tax_bp.get("/settings")
@require_auth
def get_settings_route():
    """Tax settings; created with defaults on first read."""
    try:
        return jsonify({"settings": tax_service.get_settings(g.user_id).to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get tax settings")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@tax_bp.put("/settings")
@require_auth
def update_settings_route():
    """
    Partial update. Filing periods may be sent flat or nested as
    {"tax_filing_periods": {"income_tax", "sales_tax", "zakat"}}.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        settings = tax_service.update_settings(g.user_id, data)
        return jsonify({"settings": settings.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update tax settings")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@tax_bp.get("/records")
@require_auth
def list_records_route():
    """
    Query parameters:
    - start_date: records whose period starts on/after
    - end_date: records whose period ends on/before
    - type, status
    """
    try:
        start = parse_iso_datetime(request.args.get("start_date"))
        end = parse_iso_datetime(request.args.get("end_date"))
    except ValueError:
        return jsonify({"error": "start_date and end_date must be ISO-8601 datetimes", "kind": "validation"}), 400

    try:
        records = tax_service.list_records(
            g.user_id,
            start=start,
            end=end,
            tax_type=request.args.get("type"),
            status=request.args.get("status"),
        )
        return jsonify({"items": [r.to_dict() for r in records], "count": len(records)})
    except Exception:
        current_app.logger.exception("Failed to list tax records")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@tax_bp.post("/records")
@require_auth
def create_record_route():
    """
    Request body:
    {
        "tax_type": "Income Tax",             // required
        "taxable_amount_cents": 90000000,     // required
        "tax_rate_bps": 500,                  // required
        "tax_amount_cents": 1500000,          // required
        "tax_period": {"start_date": "2024-01-01", "end_date": "2024-12-31"},  // required
        "description": "...",
        "payment_status": "Pending",
        "reference": "..."
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        record = tax_service.create_record(g.user_id, data)
        return jsonify({"record": record.to_dict()}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create tax record")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@tax_bp.put("/records/<int:record_id>")
@require_auth
def update_record_route(record_id: int):
    try:
        data = require_json_object(request.get_json(silent=True))
        record = tax_service.update_record(g.user_id, record_id, data)
        return jsonify({"record": record.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update tax record")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@tax_bp.delete("/records/<int:record_id>")
@require_auth
def delete_record_route(record_id: int):
    try:
        tax_service.delete_record(g.user_id, record_id)
        return jsonify({"message": "Tax record deleted successfully"})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete tax record")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@tax_bp.get("/calculate/income")
@require_auth
def calculate_income_route():
    """Query parameters: income_cents (required)."""
    try:
        result = tax_service.calculate_income_tax(g.user_id, request.args.get("income_cents"))
        return jsonify(result)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to calculate income tax")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@tax_bp.get("/calculate/zakat")
@require_auth
def calculate_zakat_route():
    """Query parameters: net_assets_cents (required), rate_bps (defaults to settings)."""
    try:
        result = tax_service.calculate_zakat(
            g.user_id,
            request.args.get("net_assets_cents"),
            rate_bps=request.args.get("rate_bps"),
        )
        return jsonify(result)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to calculate zakat")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@tax_bp.post("/payment")
@require_auth
def payment_route():
    """
    Request body:
    {
        "tax_id": 4,                 // tax record id, required
        "amount_cents": 50000,       // required, > 0 and <= remaining
        "payment_method": "Cash",    // Cash payments come out of the drawer
        "notes": "..."
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        result = tax_service.record_tax_payment(
            g.user_id,
            data.get("tax_id"),
            data.get("amount_cents"),
            payment_method=data.get("payment_method"),
            notes=data.get("notes"),
        )
        entry = result["cash_drawer_entry"]
        return jsonify({
            "message": "Tax payment recorded successfully",
            "tax": result["tax"].to_dict(),
            "cash_drawer_entry": entry.to_dict() if entry else None,
            "cash_drawer_balance_cents": result["cash_drawer_balance_cents"],
        })
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record tax payment")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500
