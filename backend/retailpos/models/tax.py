from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z, utcnow


TAX_TYPES = ("Income Tax", "Sales Tax", "Zakat", "Custom Tax", "Advance Tax")
TAX_PAYMENT_STATUSES = ("Paid", "Pending", "Partially Paid", "Exempt")
TAX_PAYMENT_METHODS = ("Cash", "Bank Transfer", "Check", "Online", "Other")

BUSINESS_TYPES = ("Sole Proprietor", "Partnership", "Private Limited", "Public Limited", "Other")
FILING_PERIODS = ("Monthly", "Quarterly", "Annually")
ZAKAT_FILING_PERIODS = ("Annually", "Custom")
ZAKAT_CALCULATION_TYPES = ("Automatic", "Manual")


class TaxRecord(db.Model):
    """
    A tax liability for a period.

    PAYMENTS:
    paid_amount_cents accumulates payments; payment_status moves
    Pending -> Partially Paid -> Paid. A payment made in Cash appends one
    'expense' drawer entry (reference_type='tax', reference_id=id).
    """
    __tablename__ = "tax_records"
    __table_args__ = (
        db.UniqueConstraint("tax_number", name="uq_tax_records_tax_number"),
        db.CheckConstraint("paid_amount_cents >= 0", name="ck_tax_records_paid_non_negative"),
        db.Index("ix_tax_records_user_period", "user_id", "period_start", "period_end"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    tax_number = db.Column(db.String(16), nullable=False)
    tax_type = db.Column(db.String(32), nullable=False)

    taxable_amount_cents = db.Column(db.Integer, nullable=False)
    tax_rate_bps = db.Column(db.Integer, nullable=False)
    tax_amount_cents = db.Column(db.Integer, nullable=False)

    description = db.Column(db.Text, nullable=True)

    payment_status = db.Column(db.String(16), nullable=False, default="Pending")
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_method = db.Column(db.String(16), nullable=True)

    period_start = db.Column(db.DateTime(timezone=True), nullable=False)
    period_end = db.Column(db.DateTime(timezone=True), nullable=False)

    reference = db.Column(db.String(128), nullable=True)
    is_manual_entry = db.Column(db.Boolean, nullable=False, default=True)
    is_final_assessment = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def remaining_cents(self) -> int:
        return max(0, (self.tax_amount_cents or 0) - (self.paid_amount_cents or 0))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "tax_number": self.tax_number,
            "tax_type": self.tax_type,
            "taxable_amount_cents": self.taxable_amount_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_amount_cents": self.tax_amount_cents,
            "description": self.description,
            "payment_status": self.payment_status,
            "paid_amount_cents": self.paid_amount_cents,
            "remaining_cents": self.remaining_cents,
            "payment_date": to_utc_z(self.payment_date),
            "payment_method": self.payment_method,
            "period_start": to_utc_z(self.period_start),
            "period_end": to_utc_z(self.period_end),
            "reference": self.reference,
            "is_manual_entry": self.is_manual_entry,
            "is_final_assessment": self.is_final_assessment,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TaxSettings(db.Model):
    """
    Per-user tax configuration (singleton per user).

    WHY: Loaded once per request into an immutable TaxConfig value
    (services/tax_calculator.py) and passed into calculations, never
    re-queried mid-calculation.

    custom_tax_slabs is a JSON list of
    {min_income_cents, max_income_cents|null, fixed_amount_cents, rate_bps, description}.
    """
    __tablename__ = "tax_settings"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_tax_settings_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    business_type = db.Column(db.String(32), nullable=False, default="Sole Proprietor")
    tax_identification_number = db.Column(db.String(64), nullable=True)
    national_tax_number = db.Column(db.String(64), nullable=True)

    sales_tax_enabled = db.Column(db.Boolean, nullable=False, default=True)
    sales_tax_rate_bps = db.Column(db.Integer, nullable=False, default=1700)
    sales_tax_included_in_price = db.Column(db.Boolean, nullable=False, default=False)

    income_tax_enabled = db.Column(db.Boolean, nullable=False, default=True)
    use_default_tax_slabs = db.Column(db.Boolean, nullable=False, default=True)
    custom_tax_slabs = db.Column(db.JSON, nullable=False, default=list)

    zakat_enabled = db.Column(db.Boolean, nullable=False, default=True)
    zakat_calculation_type = db.Column(db.String(16), nullable=False, default="Automatic")
    zakat_rate_bps = db.Column(db.Integer, nullable=False, default=250)

    income_tax_filing_period = db.Column(db.String(16), nullable=False, default="Annually")
    sales_tax_filing_period = db.Column(db.String(16), nullable=False, default="Monthly")
    zakat_filing_period = db.Column(db.String(16), nullable=False, default="Annually")

    enable_tax_reminders = db.Column(db.Boolean, nullable=False, default=True)
    reminder_days = db.Column(db.Integer, nullable=False, default=7)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "business_type": self.business_type,
            "tax_identification_number": self.tax_identification_number,
            "national_tax_number": self.national_tax_number,
            "sales_tax_enabled": self.sales_tax_enabled,
            "sales_tax_rate_bps": self.sales_tax_rate_bps,
            "sales_tax_included_in_price": self.sales_tax_included_in_price,
            "income_tax_enabled": self.income_tax_enabled,
            "use_default_tax_slabs": self.use_default_tax_slabs,
            "custom_tax_slabs": list(self.custom_tax_slabs or []),
            "zakat_enabled": self.zakat_enabled,
            "zakat_calculation_type": self.zakat_calculation_type,
            "zakat_rate_bps": self.zakat_rate_bps,
            "tax_filing_periods": {
                "income_tax": self.income_tax_filing_period,
                "sales_tax": self.sales_tax_filing_period,
                "zakat": self.zakat_filing_period,
            },
            "enable_tax_reminders": self.enable_tax_reminders,
            "reminder_days": self.reminder_days,
            "updated_at": to_utc_z(self.updated_at),
        }
