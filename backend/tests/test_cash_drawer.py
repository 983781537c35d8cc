# Overview: Pytest coverage for the cash drawer ledger primitive and its read side.

"""
Cash Drawer Ledger Tests

Every balance change is one chained entry; outflows can never take the
drawer below zero, and a rejected operation writes nothing.
"""

import pytest

from retailpos.errors import InsufficientFundsError, NotFoundError, ValidationError
from retailpos.models import CashDrawerEntry
from retailpos.services import cash_drawer_service


def _entries(session, user):
    return (
        session.query(CashDrawerEntry)
        .filter_by(user_id=user.id)
        .order_by(CashDrawerEntry.sequence)
        .all()
    )


class TestChaining:
    """previous/amount/balance link up across entries."""

    def test_empty_drawer_balance_is_zero(self, db_session, user_a):
        assert cash_drawer_service.get_balance(user_a.id) == 0

    def test_add_then_remove(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 10000)
        entry = cash_drawer_service.remove_cash(user_a.id, 2500, "Bank drop")

        assert entry.amount_cents == -2500
        assert entry.previous_balance_cents == 10000
        assert entry.balance_cents == 7500
        assert entry.notes == "Bank drop"
        assert [e.sequence for e in _entries(db_session, user_a)] == [1, 2]
        assert cash_drawer_service.verify_chain(user_a.id) == []

    def test_remove_more_than_balance(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 10000)
        with pytest.raises(InsufficientFundsError) as exc:
            cash_drawer_service.remove_cash(user_a.id, 15000)

        assert exc.value.status_code == 400
        assert exc.value.details == {"available_cents": 10000, "requested_cents": 15000}
        assert cash_drawer_service.get_balance(user_a.id) == 10000
        assert len(_entries(db_session, user_a)) == 1

    def test_remove_entire_balance_is_allowed(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 500)
        entry = cash_drawer_service.remove_cash(user_a.id, 500)
        assert entry.balance_cents == 0

    @pytest.mark.parametrize("amount", [0, -1, "abc", None, 1.5])
    def test_add_rejects_bad_amounts(self, db_session, user_a, amount):
        with pytest.raises(ValidationError):
            cash_drawer_service.add_cash(user_a.id, amount)
        assert _entries(db_session, user_a) == []

    def test_unknown_operation(self, db_session, user_a):
        with pytest.raises(ValidationError):
            cash_drawer_service.apply_cash_drawer_operation(user_a.id, "borrow", 100)

    def test_ledgers_are_per_user(self, db_session, user_a, user_b):
        cash_drawer_service.add_cash(user_a.id, 1000)
        cash_drawer_service.add_cash(user_b.id, 50)
        assert cash_drawer_service.get_balance(user_a.id) == 1000
        assert cash_drawer_service.get_balance(user_b.id) == 50
        assert _entries(db_session, user_b)[0].sequence == 1

    def test_timestamps_strictly_increase(self, db_session, user_a):
        for _ in range(5):
            cash_drawer_service.add_cash(user_a.id, 1)
        stamps = [e.occurred_at for e in _entries(db_session, user_a)]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 5


class TestManualOperations:
    """Count, initialization and close."""

    def test_count_stores_variance(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 10000)
        entry = cash_drawer_service.run_manual_operation(user_a.id, "count", 9750, "Shift count")
        assert entry.amount_cents == -250
        assert entry.balance_cents == 9750
        assert cash_drawer_service.verify_chain(user_a.id) == []

    def test_initialization_only_on_empty_drawer(self, db_session, user_a):
        entry = cash_drawer_service.run_manual_operation(user_a.id, "initialization", 20000)
        assert entry.balance_cents == 20000
        with pytest.raises(ValidationError):
            cash_drawer_service.run_manual_operation(user_a.id, "initialization", 100)

    def test_close_keeps_balance(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 1200)
        entry = cash_drawer_service.run_manual_operation(user_a.id, "close", 0, "End of day")
        assert entry.amount_cents == 0
        assert entry.balance_cents == 1200

    def test_close_rejects_amount(self, db_session, user_a):
        with pytest.raises(ValidationError):
            cash_drawer_service.run_manual_operation(user_a.id, "close", 100)

    @pytest.mark.parametrize("operation", ["sale", "expense"])
    def test_flow_operations_not_manual(self, db_session, user_a, operation):
        with pytest.raises(ValidationError):
            cash_drawer_service.run_manual_operation(user_a.id, operation, 100)


class TestReadSide:
    """History, summary, single entries and chain verification."""

    def test_history_newest_first(self, db_session, user_a):
        for amount in (100, 200, 300):
            cash_drawer_service.add_cash(user_a.id, amount)
        history = cash_drawer_service.get_history(user_a.id, limit=2)
        assert [e.amount_cents for e in history] == [300, 200]

    def test_summary_groups_by_operation(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 1000)
        cash_drawer_service.add_cash(user_a.id, 500)
        cash_drawer_service.remove_cash(user_a.id, 300)
        summary = cash_drawer_service.get_summary(user_a.id)
        assert summary == [
            {"operation": "add", "count": 2, "total_cents": 1500},
            {"operation": "remove", "count": 1, "total_cents": -300},
        ]

    def test_get_entry_not_found_for_other_user(self, db_session, user_a, user_b):
        entry = cash_drawer_service.add_cash(user_a.id, 100)
        with pytest.raises(NotFoundError):
            cash_drawer_service.get_entry(user_b.id, entry.id)

    def test_verify_chain_reports_tampering(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 100)
        cash_drawer_service.add_cash(user_a.id, 100)
        second = _entries(db_session, user_a)[1]
        second.previous_balance_cents = 50
        second.balance_cents = 150
        db_session.commit()

        problems = cash_drawer_service.verify_chain(user_a.id)
        assert [p["problem"] for p in problems] == ["previous_balance_mismatch"]
