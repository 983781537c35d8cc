# Overview: Service-layer operations for expenses; encapsulates business logic and database work.

"""
Expenses and their cash-drawer linkage.

RULES:
- A Cash expense with status Paid takes its amount out of the drawer via an
  'expense' entry, written in the same unit of work as the expense itself.
  If the drawer cannot cover it, the expense is not created either.
- While a drawer entry exists for an expense, amount, payment method and
  status are frozen; only descriptive fields may change.
- Deleting a cash-settled expense appends a reversing 'add' entry. The
  original entry stays: the drawer ledger is append-only.
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import CashDrawerEntry, Expense
from ..models.finance import EXPENSE_PAYMENT_METHODS, EXPENSE_STATUSES
from ..time_utils import end_of_day
from ..validation import ModelValidationPolicy, validate_payload
from .cash_drawer_service import append_entry
from .concurrency import unit_of_work
from .document_service import EXPENSE_PREFIX, flush_document, new_document_number


EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"category", "description", "amount_cents", "payment_method", "status", "occurred_at"},
    required_on_create={"category", "amount_cents"},
    choices={"payment_method": EXPENSE_PAYMENT_METHODS, "status": EXPENSE_STATUSES},
)

SETTLEMENT_FIELDS = ("amount_cents", "payment_method", "status")

DEFAULT_LIST_LIMIT = 100


def _clean(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=partial)
    if "amount_cents" in patch and patch["amount_cents"] <= 0:
        raise ValidationError("Valid category and amount are required", details={"field": "amount_cents"})
    return patch


def _settles_in_cash(expense: Expense) -> bool:
    return expense.payment_method == "Cash" and expense.status == "Paid"


def _notes(expense: Expense, prefix: str = "Expense") -> str:
    return f"{prefix}: {expense.category} - {expense.description or ''}"


def drawer_entry_for(expense: Expense) -> CashDrawerEntry | None:
    return (
        db.session.query(CashDrawerEntry)
        .filter_by(
            user_id=expense.user_id,
            operation="expense",
            reference_type="expense",
            reference_id=expense.id,
        )
        .first()
    )


def _post_to_drawer(expense: Expense) -> CashDrawerEntry:
    return append_entry(
        expense.user_id,
        "expense",
        expense.amount_cents,
        _notes(expense),
        reference_type="expense",
        reference_id=expense.id,
    )


def get_expense(user_id: int, expense_id: int) -> Expense:
    expense = db.session.query(Expense).filter_by(id=expense_id, user_id=user_id).first()
    if not expense:
        raise NotFoundError("Expense not found", details={"id": expense_id})
    return expense


def list_expenses(
    user_id: int,
    *,
    start=None,
    end=None,
    category: str | None = None,
    status: str | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
) -> list[Expense]:
    query = db.session.query(Expense).filter(Expense.user_id == user_id)
    if start is not None:
        query = query.filter(Expense.occurred_at >= start)
    if end is not None:
        query = query.filter(Expense.occurred_at <= end_of_day(end))
    if category:
        query = query.filter(Expense.category == category)
    if status:
        query = query.filter(Expense.status == status)
    limit = max(1, min(limit or DEFAULT_LIST_LIMIT, 500))
    return query.order_by(Expense.occurred_at.desc(), Expense.id.desc()).limit(limit).all()


def list_categories(user_id: int) -> list[str]:
    rows = (
        db.session.query(Expense.category)
        .filter(Expense.user_id == user_id)
        .distinct()
        .order_by(Expense.category)
        .all()
    )
    return [row[0] for row in rows if row[0]]


def create_expense(user_id: int, payload: dict) -> Expense:
    patch = _clean(payload, partial=False)

    def _op():
        expense = Expense(
            user_id=user_id,
            expense_number=new_document_number(EXPENSE_PREFIX),
            **patch,
        )
        if expense.payment_method is None:
            expense.payment_method = "Cash"
        if expense.status is None:
            expense.status = "Paid"
        flush_document(expense)

        if _settles_in_cash(expense):
            _post_to_drawer(expense)
        return expense

    return unit_of_work(user_id, _op)


def update_expense(user_id: int, expense_id: int, payload: dict) -> Expense:
    patch = _clean(payload, partial=True)

    def _op():
        expense = get_expense(user_id, expense_id)
        linked = drawer_entry_for(expense)

        if linked is not None:
            frozen = [
                name for name in SETTLEMENT_FIELDS
                if name in patch and patch[name] != getattr(expense, name)
            ]
            if frozen:
                raise ValidationError(
                    "Expense is already settled from the cash drawer; delete and re-create it instead",
                    details={"fields": frozen},
                )

        for key, value in patch.items():
            setattr(expense, key, value)
        db.session.flush()

        if linked is None and _settles_in_cash(expense):
            _post_to_drawer(expense)
        return expense

    return unit_of_work(user_id, _op)


def delete_expense(user_id: int, expense_id: int) -> CashDrawerEntry | None:
    """Delete an expense; returns the reversing drawer entry when one was needed."""
    def _op():
        expense = get_expense(user_id, expense_id)
        reversal = None
        if drawer_entry_for(expense) is not None:
            reversal = append_entry(
                user_id,
                "add",
                expense.amount_cents,
                _notes(expense, prefix="Reversed expense"),
                reference_type="expense",
                reference_id=expense.id,
            )
        db.session.delete(expense)
        return reversal

    return unit_of_work(user_id, _op)
