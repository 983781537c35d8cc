# Overview: Flask API routes for cash drawer and expense operations; parses input and returns JSON responses.

"""
Finance Routes - cash drawer ledger and expenses.

All drawer writes go through cash_drawer_service.apply_cash_drawer_operation;
these routes only parse input and shape responses.

Amounts are integer cents. Outflow entries (remove, expense) carry a
negative amount_cents in responses.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import PosError
from ..validation import require_json_object
from ..services import cash_drawer_service, expense_service
from retailpos.time_utils import parse_iso_datetime


finance_bp = Blueprint("finance", __name__, url_prefix="/api/finance")


def _entry_response(entry):
    return {
        "transaction": entry.to_dict(),
        "previous_balance_cents": entry.previous_balance_cents,
        "balance_cents": entry.balance_cents,
    }


# =============================================================================
# Cash drawer
# =============================================================================

@finance_bp.get("/cash-drawer/balance")
@require_auth
def balance_route():
    """Current balance in cents; 0 when the drawer has no entries."""
    try:
        return jsonify({"balance_cents": cash_drawer_service.get_balance(g.user_id)})
    except Exception:
        current_app.logger.exception("Failed to get cash drawer balance")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.get("/cash-drawer/history")
@require_auth
def history_route():
    """Most recent entries first (limit default 50, max 500)."""
    try:
        limit = request.args.get("limit", cash_drawer_service.DEFAULT_HISTORY_LIMIT, type=int)
        entries = cash_drawer_service.get_history(g.user_id, limit=limit)
        return jsonify({"items": [e.to_dict() for e in entries], "count": len(entries)})
    except Exception:
        current_app.logger.exception("Failed to get cash drawer history")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.get("/cash-drawer/summary")
@require_auth
def summary_route():
    """
    Per-operation totals.

    Query parameters:
    - start_date, end_date: ISO-8601; a date-only end_date includes that whole day
    """
    try:
        start = parse_iso_datetime(request.args.get("start_date"))
        end = parse_iso_datetime(request.args.get("end_date"))
    except ValueError:
        return jsonify({"error": "start_date and end_date must be ISO-8601 datetimes", "kind": "validation"}), 400

    try:
        summary = cash_drawer_service.get_summary(g.user_id, start, end)
        return jsonify({"summary": summary})
    except Exception:
        current_app.logger.exception("Failed to get cash drawer summary")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.get("/cash-drawer/transaction/<int:entry_id>")
@require_auth
def transaction_route(entry_id: int):
    """A single entry; sale entries include the referenced sale as sale_details."""
    try:
        return jsonify({"transaction": cash_drawer_service.get_entry(g.user_id, entry_id)})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get cash drawer transaction")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.get("/cash-drawer/verify")
@require_auth
def verify_route():
    """Walk the ledger and report broken links; valid is true when none are found."""
    try:
        problems = cash_drawer_service.verify_chain(g.user_id)
        return jsonify({"valid": not problems, "problems": problems})
    except Exception:
        current_app.logger.exception("Failed to verify cash drawer ledger")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.post("/cash-drawer/add")
@require_auth
def add_cash_route():
    """Request body: {"amount_cents": 10000, "notes": "Float"}"""
    try:
        data = require_json_object(request.get_json(silent=True))
        entry = cash_drawer_service.add_cash(g.user_id, data.get("amount_cents"), data.get("notes"))
        return jsonify(_entry_response(entry)), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add cash")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.post("/cash-drawer/remove")
@require_auth
def remove_cash_route():
    """Request body: {"amount_cents": 2500, "notes": "Bank deposit"}"""
    try:
        data = require_json_object(request.get_json(silent=True))
        entry = cash_drawer_service.remove_cash(g.user_id, data.get("amount_cents"), data.get("notes"))
        return jsonify(_entry_response(entry)), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to remove cash")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.post("/cash-drawer/operation")
@require_auth
def operation_route():
    """
    Generic cashier operation.

    Request body:
    {
        "type": "add" | "remove" | "count" | "initialization" | "close",
        "amount_cents": 10000,   // count: the observed drawer total
        "reason": "..."
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        entry = cash_drawer_service.run_manual_operation(
            g.user_id,
            data.get("type"),
            data.get("amount_cents"),
            data.get("reason"),
        )
        return jsonify(_entry_response(entry)), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to run cash drawer operation")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


# =============================================================================
# Expenses
# =============================================================================

@finance_bp.get("/expenses")
@require_auth
def list_expenses_route():
    """
    Query parameters:
    - start_date, end_date, category, status
    - limit (default 100, max 500)
    """
    try:
        start = parse_iso_datetime(request.args.get("start_date"))
        end = parse_iso_datetime(request.args.get("end_date"))
    except ValueError:
        return jsonify({"error": "start_date and end_date must be ISO-8601 datetimes", "kind": "validation"}), 400

    try:
        expenses = expense_service.list_expenses(
            g.user_id,
            start=start,
            end=end,
            category=request.args.get("category"),
            status=request.args.get("status"),
            limit=request.args.get("limit", expense_service.DEFAULT_LIST_LIMIT, type=int),
        )
        return jsonify({"items": [e.to_dict() for e in expenses], "count": len(expenses)})
    except Exception:
        current_app.logger.exception("Failed to list expenses")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.get("/expense-categories")
@require_auth
def expense_categories_route():
    try:
        return jsonify({"categories": expense_service.list_categories(g.user_id)})
    except Exception:
        current_app.logger.exception("Failed to list expense categories")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.get("/expenses/<int:expense_id>")
@require_auth
def get_expense_route(expense_id: int):
    try:
        expense = expense_service.get_expense(g.user_id, expense_id)
        return jsonify({"expense": expense.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get expense")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.post("/expenses")
@require_auth
def create_expense_route():
    """
    Request body:
    {
        "category": "Utilities",       // required
        "amount_cents": 2500,          // required, > 0
        "description": "...",
        "payment_method": "Cash",      // default Cash
        "status": "Paid",              // default Paid
        "occurred_at": "2024-05-01"
    }

    A Cash + Paid expense is taken out of the cash drawer in the same
    transaction; when the drawer cannot cover it nothing is saved.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        expense = expense_service.create_expense(g.user_id, data)
        return jsonify({"expense": expense.to_dict()}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.put("/expenses/<int:expense_id>")
@require_auth
def update_expense_route(expense_id: int):
    try:
        data = require_json_object(request.get_json(silent=True))
        expense = expense_service.update_expense(g.user_id, expense_id, data)
        return jsonify({"expense": expense.to_dict()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update expense")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500


@finance_bp.delete("/expenses/<int:expense_id>")
@require_auth
def delete_expense_route(expense_id: int):
    try:
        reversal = expense_service.delete_expense(g.user_id, expense_id)
        return jsonify({
            "message": "Expense deleted successfully",
            "reversal": reversal.to_dict() if reversal else None,
        })
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"error": "Internal server error", "kind": "store_error"}), 500
