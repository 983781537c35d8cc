# Overview: Pytest coverage for tax calculation, settings, records and payments.

"""
Tax Tests

Calculator tests are pure (no database). Settings, records and payments
go through tax_service and the shared unit of work.
"""

import pytest

from retailpos.errors import InsufficientFundsError, NotFoundError, ValidationError
from retailpos.models import CashDrawerEntry, TaxRecord
from retailpos.services import cash_drawer_service, tax_service
from retailpos.services.tax_calculator import (
    DEFAULT_INCOME_TAX_SLABS,
    TaxConfig,
    apply_rate,
    calculate_income_tax,
    calculate_zakat,
    parse_slabs,
)


UNIT = 100


class TestIncomeTaxCalculator:
    """Default slab table."""

    @pytest.mark.parametrize("income_units,tax_units", [
        (0, 0),
        (600_000, 0),
        (1_000_000, 20_000),
        (1_200_000, 30_000),
        (2_400_000, 150_000),
        (3_000_000, 240_000),
        (12_000_000, 2_310_000),
        (13_000_000, 2_610_000),
    ])
    def test_default_slabs(self, income_units, tax_units):
        result = calculate_income_tax(income_units * UNIT)
        assert result["tax_amount_cents"] == tax_units * UNIT
        assert result["uses_custom_slabs"] is False

    def test_reports_applied_slab_and_effective_rate(self):
        result = calculate_income_tax(1_000_000 * UNIT)
        assert result["slab"]["min_income_cents"] == 600_000 * UNIT
        assert result["effective_rate_bps"] == 200

    def test_negative_income_rejected(self):
        with pytest.raises(ValidationError):
            calculate_income_tax(-1)

    def test_custom_slabs_used_when_defaults_off(self):
        slabs = parse_slabs([
            {"min_income_cents": 1000, "max_income_cents": None, "fixed_amount_cents": 10, "rate_bps": 1000},
            {"min_income_cents": 0, "max_income_cents": 1000, "rate_bps": 0},
        ])
        assert [s.min_income_cents for s in slabs] == [0, 1000]

        config = TaxConfig(use_default_tax_slabs=False, custom_tax_slabs=slabs)
        result = calculate_income_tax(3000, config)
        assert result["tax_amount_cents"] == 10 + 200
        assert result["uses_custom_slabs"] is True

    def test_custom_slabs_ignored_when_defaults_on(self):
        config = TaxConfig(use_default_tax_slabs=True, custom_tax_slabs=parse_slabs([
            {"min_income_cents": 0, "max_income_cents": None, "rate_bps": 5000},
        ]))
        assert config.income_tax_slabs is DEFAULT_INCOME_TAX_SLABS

    def test_income_outside_every_slab_is_untaxed(self):
        config = TaxConfig(use_default_tax_slabs=False, custom_tax_slabs=parse_slabs([
            {"min_income_cents": 5000, "max_income_cents": 6000, "rate_bps": 1000},
        ]))
        assert calculate_income_tax(100, config)["tax_amount_cents"] == 0

    @pytest.mark.parametrize("raw", [
        "not a list",
        [{"min_income_cents": 100, "max_income_cents": 50}],
        [{"min_income_cents": 0, "rate_bps": 10_001}],
        [{"max_income_cents": 100}],
    ])
    def test_invalid_custom_slabs(self, raw):
        with pytest.raises(ValidationError):
            parse_slabs(raw)


class TestZakatCalculator:

    def test_default_rate(self):
        result = calculate_zakat(1_000_000)
        assert result == {"net_assets_cents": 1_000_000, "zakat_rate_bps": 250, "zakat_amount_cents": 25_000}

    def test_rate_override(self):
        assert calculate_zakat(10_000, rate_bps=300)["zakat_amount_cents"] == 300

    def test_rounds_half_up(self):
        assert apply_rate(2, 2500) == 1
        assert apply_rate(1, 2500) == 0


class TestTaxSettings:
    """Defaults on first read, partial updates, validation."""

    def test_defaults_created_on_first_read(self, db_session, user_a):
        settings = tax_service.get_settings(user_a.id)
        assert settings.zakat_rate_bps == 250
        assert settings.use_default_tax_slabs is True
        assert settings.to_dict()["tax_filing_periods"] == {
            "income_tax": "Annually",
            "sales_tax": "Monthly",
            "zakat": "Annually",
        }
        assert tax_service.get_settings(user_a.id).id == settings.id

    def test_partial_update_with_nested_filing_periods(self, db_session, user_a):
        settings = tax_service.update_settings(user_a.id, {
            "zakat_rate_bps": 300,
            "tax_filing_periods": {"sales_tax": "Quarterly"},
        })
        assert settings.zakat_rate_bps == 300
        assert settings.sales_tax_filing_period == "Quarterly"
        assert settings.income_tax_filing_period == "Annually"

    @pytest.mark.parametrize("payload", [
        {"reminder_days": 0},
        {"reminder_days": 31},
        {"zakat_rate_bps": 10_001},
        {"business_type": "Cooperative"},
        {"tax_filing_periods": {"payroll": "Monthly"}},
        {"user_id": 99},
    ])
    def test_invalid_updates(self, db_session, user_a, payload):
        with pytest.raises(ValidationError):
            tax_service.update_settings(user_a.id, payload)

    def test_custom_slabs_drive_calculation(self, db_session, user_a):
        tax_service.update_settings(user_a.id, {
            "use_default_tax_slabs": False,
            "custom_tax_slabs": [{"min_income_cents": 0, "max_income_cents": None, "rate_bps": 1000}],
        })
        result = tax_service.calculate_income_tax(user_a.id, 50_000)
        assert result["tax_amount_cents"] == 5_000

    def test_zakat_uses_configured_rate(self, db_session, user_a):
        tax_service.update_settings(user_a.id, {"zakat_rate_bps": 500})
        assert tax_service.calculate_zakat(user_a.id, 10_000)["zakat_amount_cents"] == 500


def _record_payload(**overrides):
    payload = {
        "tax_type": "Sales Tax",
        "taxable_amount_cents": 100_000,
        "tax_rate_bps": 1700,
        "tax_amount_cents": 17_000,
        "tax_period": {"start_date": "2026-09-01", "end_date": "2026-09-30"},
    }
    payload.update(overrides)
    return payload


class TestTaxRecords:

    def test_create_defaults(self, db_session, user_a):
        record = tax_service.create_record(user_a.id, _record_payload())
        assert record.tax_number.startswith("TAX-")
        assert record.payment_status == "Pending"
        assert record.paid_amount_cents == 0
        assert record.payment_method == "Cash"
        assert record.is_manual_entry is True
        assert record.remaining_cents == 17_000

    def test_period_end_before_start(self, db_session, user_a):
        with pytest.raises(ValidationError):
            tax_service.create_record(user_a.id, _record_payload(
                tax_period={"start_date": "2026-09-30", "end_date": "2026-09-01"},
            ))

    def test_paid_cannot_exceed_amount(self, db_session, user_a):
        record = tax_service.create_record(user_a.id, _record_payload())
        with pytest.raises(ValidationError):
            tax_service.update_record(user_a.id, record.id, {"paid_amount_cents": 20_000})

    def test_list_filters(self, db_session, user_a):
        tax_service.create_record(user_a.id, _record_payload())
        tax_service.create_record(user_a.id, _record_payload(tax_type="Zakat"))
        records = tax_service.list_records(user_a.id, tax_type="Zakat")
        assert [r.tax_type for r in records] == ["Zakat"]

    def test_delete_keeps_drawer_entries(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 50_000)
        record = tax_service.create_record(user_a.id, _record_payload())
        tax_service.record_tax_payment(user_a.id, record.id, 17_000)

        tax_service.delete_record(user_a.id, record.id)

        assert db_session.query(TaxRecord).count() == 0
        assert cash_drawer_service.get_balance(user_a.id) == 33_000
        with pytest.raises(NotFoundError):
            tax_service.get_record(user_a.id, record.id)


class TestTaxPayments:
    """Partial and full payments, with and without the drawer."""

    def test_partial_then_full_cash_payment(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 50_000)
        record = tax_service.create_record(user_a.id, _record_payload())

        first = tax_service.record_tax_payment(user_a.id, record.id, 7_000)
        assert first["tax"].payment_status == "Partially Paid"
        assert first["cash_drawer_balance_cents"] == 43_000

        entry = first["cash_drawer_entry"]
        assert entry.operation == "expense"
        assert entry.amount_cents == -7_000
        assert entry.reference_type == "tax"
        assert entry.reference_id == record.id
        assert entry.notes == f"Tax payment for {record.tax_number}: Sales Tax"

        second = tax_service.record_tax_payment(user_a.id, record.id, 10_000)
        assert second["tax"].payment_status == "Paid"
        assert second["tax"].remaining_cents == 0
        assert second["tax"].payment_date is not None

    def test_overpayment_rejected(self, db_session, user_a):
        cash_drawer_service.add_cash(user_a.id, 50_000)
        record = tax_service.create_record(user_a.id, _record_payload())
        with pytest.raises(ValidationError) as exc:
            tax_service.record_tax_payment(user_a.id, record.id, 17_001)
        assert exc.value.message == "Payment amount exceeds the remaining balance of 17000"

    def test_cash_payment_needs_drawer_funds(self, db_session, user_a):
        record = tax_service.create_record(user_a.id, _record_payload())
        with pytest.raises(InsufficientFundsError):
            tax_service.record_tax_payment(user_a.id, record.id, 1_000)

        db_session.refresh(record)
        assert record.paid_amount_cents == 0
        assert record.payment_status == "Pending"

    def test_bank_transfer_skips_drawer(self, db_session, user_a):
        record = tax_service.create_record(user_a.id, _record_payload())
        result = tax_service.record_tax_payment(user_a.id, record.id, 17_000, payment_method="Bank Transfer")
        assert result["cash_drawer_entry"] is None
        assert result["tax"].payment_status == "Paid"
        assert db_session.query(CashDrawerEntry).count() == 0

    @pytest.mark.parametrize("record_id,amount", [(None, 100), ("", 100)])
    def test_missing_tax_id(self, db_session, user_a, record_id, amount):
        with pytest.raises(ValidationError) as exc:
            tax_service.record_tax_payment(user_a.id, record_id, amount)
        assert exc.value.message == "Valid tax ID and payment amount are required"

    def test_zero_amount_rejected(self, db_session, user_a):
        record = tax_service.create_record(user_a.id, _record_payload())
        with pytest.raises(ValidationError):
            tax_service.record_tax_payment(user_a.id, record.id, 0)
