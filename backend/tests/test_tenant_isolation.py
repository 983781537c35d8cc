# Overview: Pytest coverage for tenant isolation behavior.

"""
Tenant Isolation Tests

SECURITY TESTS: Prove that one user can never see or change another user's
data. The authenticated user is the tenant.

These tests create two users, give user A some data, then verify that user B:
1. Gets 404 (not 403) for A's records, so existence is never revealed
2. Sees empty lists where A sees data
3. Cannot move A's stock, drawer or records through any write path

Test Coverage:
- Inventory: cross-tenant read/write blocked
- Sales: cross-tenant read blocked, receipt sequences independent
- Cash drawer: balances and ledgers independent
- Expenses / tax records: cross-tenant read/write blocked
"""

import pytest

from retailpos.services import cash_drawer_service, expense_service, sales_service, tax_service


@pytest.fixture
def seeded_a(db_session, user_a, stapler):
    """User A with one sale, one pending expense and one tax record."""
    result = sales_service.complete_sale(
        user_a.id, [{"item_id": stapler.id, "quantity": 1}], cash_amount_cents=899,
    )
    expense = expense_service.create_expense(user_a.id, {
        "category": "Rent", "amount_cents": 100, "status": "Pending",
    })
    record = tax_service.create_record(user_a.id, {
        "tax_type": "Zakat",
        "taxable_amount_cents": 10_000,
        "tax_rate_bps": 250,
        "tax_amount_cents": 250,
        "period_start": "2026-01-01",
        "period_end": "2026-12-31",
    })
    return {
        "item_id": stapler.id,
        "sale_id": result.sale.id,
        "expense_id": expense.id,
        "record_id": record.id,
    }


class TestCrossTenantReads:
    """User B gets 404 / empty lists for user A's data."""

    @pytest.mark.parametrize("path", [
        "/api/inventory/{item_id}",
        "/api/sales/{sale_id}",
        "/api/finance/expenses/{expense_id}",
    ])
    def test_single_records_are_not_found(self, client, headers_b, seeded_a, path):
        response = client.get(path.format(**seeded_a), headers=headers_b)
        assert response.status_code == 404
        assert response.json["kind"] == "not_found"

    @pytest.mark.parametrize("path", ["/api/sales", "/api/finance/expenses", "/api/tax/records"])
    def test_lists_are_empty(self, client, headers_b, seeded_a, path):
        response = client.get(path, headers=headers_b)
        assert response.status_code == 200
        assert response.json["count"] == 0

    def test_drawer_balances_are_independent(self, client, headers_b, seeded_a):
        response = client.get("/api/finance/cash-drawer/balance", headers=headers_b)
        assert response.json == {"balance_cents": 0}


class TestCrossTenantWrites:
    """No write path reaches another user's rows."""

    def test_update_item_blocked(self, client, headers_b, seeded_a, db_session, stapler):
        response = client.put(f"/api/inventory/{seeded_a['item_id']}", headers=headers_b, json={"stock": 0})
        assert response.status_code == 404
        db_session.refresh(stapler)
        assert stapler.stock == 61

    def test_mark_printed_blocked(self, client, headers_b, seeded_a):
        response = client.patch(f"/api/sales/{seeded_a['sale_id']}/printed", headers=headers_b)
        assert response.status_code == 404

    def test_delete_expense_blocked(self, client, headers_b, seeded_a, user_a):
        response = client.delete(f"/api/finance/expenses/{seeded_a['expense_id']}", headers=headers_b)
        assert response.status_code == 404
        assert expense_service.get_expense(user_a.id, seeded_a["expense_id"]) is not None

    def test_tax_payment_blocked(self, client, headers_b, seeded_a):
        response = client.post("/api/tax/payment", headers=headers_b, json={
            "tax_id": seeded_a["record_id"], "amount_cents": 100, "payment_method": "Bank Transfer",
        })
        assert response.status_code == 404

    def test_drawer_write_stays_in_own_ledger(self, client, headers_b, seeded_a, user_a, user_b):
        client.post("/api/finance/cash-drawer/add", headers=headers_b, json={"amount_cents": 700})
        assert cash_drawer_service.get_balance(user_a.id) == 899
        assert cash_drawer_service.get_balance(user_b.id) == 700
