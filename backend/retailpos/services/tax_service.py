# Overview: Service-layer operations for tax; encapsulates settings, records and payments.

"""
Tax Service - settings, tax records, payments and calculator wrappers.

WHY: Calculations never read settings directly. load_tax_config() takes one
snapshot of the user's TaxSettings and hands it to the pure calculators in
tax_calculator.py.

PAYMENTS:
record_tax_payment() updates the record and, for a Cash payment, appends an
'expense' drawer entry in the SAME unit of work. If the drawer cannot cover
the payment, the record is left untouched.
"""

from __future__ import annotations

import logging

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import TaxRecord, TaxSettings
from ..models.tax import (
    BUSINESS_TYPES,
    FILING_PERIODS,
    TAX_PAYMENT_METHODS,
    TAX_PAYMENT_STATUSES,
    TAX_TYPES,
    ZAKAT_CALCULATION_TYPES,
    ZAKAT_FILING_PERIODS,
)
from ..time_utils import end_of_day, utcnow
from ..validation import (
    ModelValidationPolicy,
    coerce_int,
    require_cents,
    require_choice,
    require_rate_bps,
    validate_payload,
)
from . import tax_calculator
from .cash_drawer_service import append_entry
from .concurrency import unit_of_work
from .document_service import TAX_PREFIX, flush_document, new_document_number
from .tax_calculator import TaxConfig, parse_slabs


logger = logging.getLogger(__name__)


SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields={
        "business_type",
        "tax_identification_number",
        "national_tax_number",
        "sales_tax_enabled",
        "sales_tax_rate_bps",
        "sales_tax_included_in_price",
        "income_tax_enabled",
        "use_default_tax_slabs",
        "custom_tax_slabs",
        "zakat_enabled",
        "zakat_calculation_type",
        "zakat_rate_bps",
        "income_tax_filing_period",
        "sales_tax_filing_period",
        "zakat_filing_period",
        "enable_tax_reminders",
        "reminder_days",
    },
    choices={
        "business_type": BUSINESS_TYPES,
        "zakat_calculation_type": ZAKAT_CALCULATION_TYPES,
        "income_tax_filing_period": FILING_PERIODS,
        "sales_tax_filing_period": FILING_PERIODS,
        "zakat_filing_period": ZAKAT_FILING_PERIODS,
    },
)

RECORD_POLICY = ModelValidationPolicy(
    writable_fields={
        "tax_type",
        "taxable_amount_cents",
        "tax_rate_bps",
        "tax_amount_cents",
        "description",
        "payment_status",
        "paid_amount_cents",
        "payment_date",
        "payment_method",
        "period_start",
        "period_end",
        "reference",
        "is_manual_entry",
        "is_final_assessment",
    },
    required_on_create={
        "tax_type",
        "taxable_amount_cents",
        "tax_rate_bps",
        "tax_amount_cents",
        "period_start",
        "period_end",
    },
    choices={
        "tax_type": TAX_TYPES,
        "payment_status": TAX_PAYMENT_STATUSES,
        "payment_method": TAX_PAYMENT_METHODS,
    },
)

# Nested filing periods as serialized by TaxSettings.to_dict()
_FILING_PERIOD_KEYS = {
    "income_tax": "income_tax_filing_period",
    "sales_tax": "sales_tax_filing_period",
    "zakat": "zakat_filing_period",
}

MIN_REMINDER_DAYS = 1
MAX_REMINDER_DAYS = 30


# =============================================================================
# Settings
# =============================================================================

def get_settings(user_id: int) -> TaxSettings:
    """Return the user's tax settings, creating the defaults on first read."""
    settings = db.session.query(TaxSettings).filter_by(user_id=user_id).first()
    if settings:
        return settings

    def _op():
        existing = db.session.query(TaxSettings).filter_by(user_id=user_id).first()
        if existing:
            return existing
        created = TaxSettings(user_id=user_id, custom_tax_slabs=[])
        db.session.add(created)
        db.session.flush()
        return created

    return unit_of_work(user_id, _op)


def load_tax_config(user_id: int) -> TaxConfig:
    """Immutable snapshot of the settings the calculators need."""
    settings = get_settings(user_id)
    return TaxConfig(
        use_default_tax_slabs=bool(settings.use_default_tax_slabs),
        custom_tax_slabs=parse_slabs(settings.custom_tax_slabs or []),
        zakat_rate_bps=settings.zakat_rate_bps,
    )


def _clean_settings(payload: dict) -> dict:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = dict(payload)
    periods = payload.pop("tax_filing_periods", None)
    if periods is not None:
        if not isinstance(periods, dict):
            raise ValidationError("tax_filing_periods must be an object")
        for key, value in periods.items():
            column = _FILING_PERIOD_KEYS.get(key)
            if column is None:
                raise ValidationError(f"Unknown filing period: {key}")
            payload[column] = value

    patch = validate_payload(model=TaxSettings, payload=payload, policy=SETTINGS_POLICY, partial=True)

    for name in ("sales_tax_rate_bps", "zakat_rate_bps"):
        if name in patch:
            patch[name] = require_rate_bps(patch[name], name)

    if "reminder_days" in patch:
        days = patch["reminder_days"]
        if days is None or not MIN_REMINDER_DAYS <= days <= MAX_REMINDER_DAYS:
            raise ValidationError(
                f"reminder_days must be between {MIN_REMINDER_DAYS} and {MAX_REMINDER_DAYS}"
            )

    if "custom_tax_slabs" in patch:
        slabs = parse_slabs(patch["custom_tax_slabs"] or [])
        patch["custom_tax_slabs"] = [slab.to_dict() for slab in slabs]

    return patch


def update_settings(user_id: int, payload: dict) -> TaxSettings:
    patch = _clean_settings(payload)
    get_settings(user_id)

    def _op():
        settings = db.session.query(TaxSettings).filter_by(user_id=user_id).one()
        for key, value in patch.items():
            setattr(settings, key, value)
        return settings

    settings = unit_of_work(user_id, _op)
    logger.info("Tax settings updated for user %s: %s", user_id, sorted(patch))
    return settings


# =============================================================================
# Records
# =============================================================================

def get_record(user_id: int, record_id: int) -> TaxRecord:
    record = db.session.query(TaxRecord).filter_by(id=record_id, user_id=user_id).first()
    if not record:
        raise NotFoundError("Tax record not found", details={"id": record_id})
    return record


def list_records(
    user_id: int,
    *,
    start=None,
    end=None,
    tax_type: str | None = None,
    status: str | None = None,
) -> list[TaxRecord]:
    query = db.session.query(TaxRecord).filter(TaxRecord.user_id == user_id)
    if start is not None:
        query = query.filter(TaxRecord.period_start >= start)
    if end is not None:
        query = query.filter(TaxRecord.period_end <= end_of_day(end))
    if tax_type:
        query = query.filter(TaxRecord.tax_type == tax_type)
    if status:
        query = query.filter(TaxRecord.payment_status == status)
    return query.order_by(TaxRecord.period_end.desc(), TaxRecord.id.desc()).all()


def _flatten_period(payload):
    # Accept {"tax_period": {"start_date", "end_date"}} as well as flat fields.
    if not isinstance(payload, dict) or "tax_period" not in payload:
        return payload
    payload = dict(payload)
    period = payload.pop("tax_period") or {}
    if not isinstance(period, dict):
        raise ValidationError("tax_period must be an object")
    if period.get("start_date") is not None:
        payload["period_start"] = period["start_date"]
    if period.get("end_date") is not None:
        payload["period_end"] = period["end_date"]
    return payload


def _clean_record(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(
        model=TaxRecord,
        payload=_flatten_period(payload),
        policy=RECORD_POLICY,
        partial=partial,
    )
    for name in ("taxable_amount_cents", "tax_amount_cents", "paid_amount_cents"):
        if name in patch:
            if patch[name] is None:
                raise ValidationError(f"{name} cannot be null")
            if patch[name] < 0:
                raise ValidationError(f"{name} must be >= 0")
    if "tax_rate_bps" in patch:
        patch["tax_rate_bps"] = require_rate_bps(patch["tax_rate_bps"], "tax_rate_bps")
    return patch


def _check_record(record: TaxRecord) -> None:
    if record.period_start and record.period_end and record.period_end < record.period_start:
        raise ValidationError("period_end must not be before period_start")
    if (record.paid_amount_cents or 0) > (record.tax_amount_cents or 0):
        raise ValidationError(
            "paid_amount_cents cannot exceed tax_amount_cents",
            details={
                "paid_amount_cents": record.paid_amount_cents,
                "tax_amount_cents": record.tax_amount_cents,
            },
        )


def create_record(user_id: int, payload: dict) -> TaxRecord:
    patch = _clean_record(payload, partial=False)

    def _op():
        record = TaxRecord(
            user_id=user_id,
            tax_number=new_document_number(TAX_PREFIX),
            **patch,
        )
        if record.payment_status is None:
            record.payment_status = "Pending"
        if record.paid_amount_cents is None:
            record.paid_amount_cents = 0
        if record.payment_method is None:
            record.payment_method = "Cash"
        if record.is_manual_entry is None:
            record.is_manual_entry = True
        if record.is_final_assessment is None:
            record.is_final_assessment = False
        _check_record(record)
        flush_document(record)
        return record

    return unit_of_work(user_id, _op)


def update_record(user_id: int, record_id: int, payload: dict) -> TaxRecord:
    patch = _clean_record(payload, partial=True)

    def _op():
        record = get_record(user_id, record_id)
        for key, value in patch.items():
            setattr(record, key, value)
        _check_record(record)
        return record

    return unit_of_work(user_id, _op)


def delete_record(user_id: int, record_id: int) -> None:
    """
    Delete a tax record.

    Drawer entries for earlier cash payments stay in the ledger; their
    reference_id simply points at a record that no longer exists.
    """
    def _op():
        db.session.delete(get_record(user_id, record_id))

    unit_of_work(user_id, _op)


def record_tax_payment(
    user_id: int,
    record_id,
    amount_cents,
    payment_method: str | None = "Cash",
    notes: str | None = None,
) -> dict:
    """
    Apply a payment to a tax record.

    Returns {"tax": record, "cash_drawer_entry": entry or None,
    "cash_drawer_balance_cents": balance or None}.
    """
    if record_id in (None, ""):
        raise ValidationError("Valid tax ID and payment amount are required")
    record_id = coerce_int(record_id, "tax_id")
    amount = require_cents(amount_cents, "amount_cents", positive=True)
    method = require_choice(payment_method or "Cash", TAX_PAYMENT_METHODS, "payment_method")

    def _op():
        record = get_record(user_id, record_id)
        remaining = record.remaining_cents
        if amount > remaining:
            raise ValidationError(
                f"Payment amount exceeds the remaining balance of {remaining}",
                details={"remaining_cents": remaining, "amount_cents": amount},
            )

        entry = None
        if method == "Cash":
            entry = append_entry(
                user_id,
                "expense",
                amount,
                notes or f"Tax payment for {record.tax_number}: {record.tax_type}",
                reference_type="tax",
                reference_id=record.id,
            )

        record.paid_amount_cents = (record.paid_amount_cents or 0) + amount
        record.payment_status = "Paid" if record.remaining_cents == 0 else "Partially Paid"
        record.payment_date = utcnow()
        record.payment_method = method
        db.session.flush()

        return {
            "tax": record,
            "cash_drawer_entry": entry,
            "cash_drawer_balance_cents": entry.balance_cents if entry else None,
        }

    result = unit_of_work(user_id, _op)
    logger.info(
        "Tax payment of %s on %s for user %s (%s)",
        amount, result["tax"].tax_number, user_id, method,
    )
    return result


# =============================================================================
# Calculators
# =============================================================================

def calculate_income_tax(user_id: int, income_cents) -> dict:
    return tax_calculator.calculate_income_tax(income_cents, load_tax_config(user_id))


def calculate_zakat(user_id: int, net_assets_cents, rate_bps=None) -> dict:
    return tax_calculator.calculate_zakat(net_assets_cents, load_tax_config(user_id), rate_bps=rate_bps)

