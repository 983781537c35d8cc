# Overview: Pytest coverage for expenses and their cash drawer linkage.

"""
Expense Tests

Cash expenses marked Paid come out of the drawer in the same transaction
as the expense row itself.
"""

import pytest

from retailpos.errors import InsufficientFundsError, NotFoundError, ValidationError
from retailpos.models import CashDrawerEntry, Expense
from retailpos.services import cash_drawer_service, expense_service


RENT = {"category": "Rent", "description": "October", "amount_cents": 4000}


class TestCreateExpense:
    """Creation and drawer posting."""

    def test_cash_paid_expense_posts_entry(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 10000)
        expense = expense_service.create_expense(user_a.id, dict(RENT))

        assert expense.expense_number.startswith("EXP-")
        assert expense.payment_method == "Cash"
        assert expense.status == "Paid"

        entry = expense_service.drawer_entry_for(expense)
        assert entry.operation == "expense"
        assert entry.amount_cents == -4000
        assert entry.notes == "Expense: Rent - October"
        assert cash_drawer_service.get_balance(user_a.id) == 6000

    def test_insufficient_funds_creates_nothing(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 1000)
        with pytest.raises(InsufficientFundsError):
            expense_service.create_expense(user_a.id, dict(RENT))

        assert db_session.query(Expense).count() == 0
        assert cash_drawer_service.get_balance(user_a.id) == 1000

    def test_non_cash_expense_skips_drawer(self, db_session, user_a):
        expense = expense_service.create_expense(user_a.id, {**RENT, "payment_method": "Bank Transfer"})
        assert expense_service.drawer_entry_for(expense) is None
        assert db_session.query(CashDrawerEntry).count() == 0

    def test_pending_cash_expense_skips_drawer(self, db_session, user_a):
        expense = expense_service.create_expense(user_a.id, {**RENT, "status": "Pending"})
        assert expense_service.drawer_entry_for(expense) is None

    @pytest.mark.parametrize("payload", [
        {"category": "Rent"},
        {"category": "Rent", "amount_cents": 0},
        {"category": "Rent", "amount_cents": 100, "payment_method": "IOU"},
        {"category": "Rent", "amount_cents": 100, "user_id": 2},
    ])
    def test_invalid_payloads(self, db_session, user_a, payload):
        with pytest.raises(ValidationError):
            expense_service.create_expense(user_a.id, payload)


class TestUpdateExpense:
    """Settled expenses keep their settlement fields."""

    def test_settled_amount_is_frozen(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 10000)
        expense = expense_service.create_expense(user_a.id, dict(RENT))
        with pytest.raises(ValidationError) as exc:
            expense_service.update_expense(user_a.id, expense.id, {"amount_cents": 100})
        assert exc.value.details == {"fields": ["amount_cents"]}

    def test_settled_description_is_editable(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 10000)
        expense = expense_service.create_expense(user_a.id, dict(RENT))
        updated = expense_service.update_expense(user_a.id, expense.id, {"description": "Back office"})
        assert updated.description == "Back office"

    def test_marking_pending_cash_expense_paid_posts_entry(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 10000)
        expense = expense_service.create_expense(user_a.id, {**RENT, "status": "Pending"})
        expense_service.update_expense(user_a.id, expense.id, {"status": "Paid"})
        assert cash_drawer_service.get_balance(user_a.id) == 6000

    def test_other_user_cannot_update(self, db_session, user_a, user_b):
        expense = expense_service.create_expense(user_a.id, {**RENT, "status": "Pending"})
        with pytest.raises(NotFoundError):
            expense_service.update_expense(user_b.id, expense.id, {"description": "x"})


class TestDeleteExpense:
    """Deletion reverses, never rewrites, the ledger."""

    def test_delete_cash_expense_appends_reversal(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 10000)
        expense = expense_service.create_expense(user_a.id, dict(RENT))

        reversal = expense_service.delete_expense(user_a.id, expense.id)

        assert reversal.operation == "add"
        assert reversal.amount_cents == 4000
        assert cash_drawer_service.get_balance(user_a.id) == 10000
        operations = [e.operation for e in cash_drawer_service.get_history(user_a.id)]
        assert operations == ["add", "expense", "add"]
        assert cash_drawer_service.verify_chain(user_a.id) == []
        assert db_session.query(Expense).count() == 0

    def test_delete_pending_expense_has_no_reversal(self, db_session, user_a):
        expense = expense_service.create_expense(user_a.id, {**RENT, "status": "Pending"})
        assert expense_service.delete_expense(user_a.id, expense.id) is None


class TestListExpenses:

    def test_filters_and_categories(self, db_session, user_a):
        expense_service.create_expense(user_a.id, {**RENT, "status": "Pending"})
        expense_service.create_expense(user_a.id, {"category": "Utilities", "amount_cents": 900,
                                                   "status": "Pending"})
        assert [e.category for e in expense_service.list_expenses(user_a.id, category="Rent")] == ["Rent"]
        assert expense_service.list_categories(user_a.id) == ["Rent", "Utilities"]
