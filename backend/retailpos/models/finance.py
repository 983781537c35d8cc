from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z, utcnow


DRAWER_OPERATIONS = ("add", "remove", "count", "sale", "expense", "initialization", "close")
REFERENCE_TYPES = ("sale", "expense", "tax")

EXPENSE_PAYMENT_METHODS = ("Cash", "Credit Card", "Bank Transfer", "Check", "Other")
EXPENSE_STATUSES = ("Paid", "Pending", "Cancelled")


class CashDrawerEntry(db.Model):
    """
    Append-only cash drawer ledger.

    CHAIN INVARIANT (per user, ordered by sequence):
    - entry[0].previous_balance_cents == 0
    - entry[n].previous_balance_cents == entry[n-1].balance_cents
    - balance_cents == previous_balance_cents + amount_cents

    SIGN CONVENTION:
    amount_cents is signed: inflows (add, sale, initialization) are positive,
    outflows (remove, expense) are negative. A count stores the variance
    (observed - previous) so the chain equation holds for every entry.
    close stores 0.

    WHY sequence + unique constraint:
    Two writers that both read the same "latest" entry would both try to
    insert sequence N+1; the second insert fails and the unit of work
    retries against the new head instead of forking the chain.
    """
    __tablename__ = "cash_drawer_entries"
    __table_args__ = (
        db.UniqueConstraint("user_id", "sequence", name="uq_cash_drawer_entries_user_sequence"),
        db.Index("ix_cash_drawer_entries_user_occurred", "user_id", "occurred_at"),
        db.Index("ix_cash_drawer_entries_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    sequence = db.Column(db.Integer, nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    previous_balance_cents = db.Column(db.Integer, nullable=False, default=0)
    amount_cents = db.Column(db.Integer, nullable=False, default=0)
    balance_cents = db.Column(db.Integer, nullable=False)

    operation = db.Column(db.String(16), nullable=False, index=True)

    reference_type = db.Column(db.String(16), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)

    notes = db.Column(db.String(500), nullable=False, default="")

    def __repr__(self) -> str:
        return (
            f"<CashDrawerEntry user_id={self.user_id} seq={self.sequence} "
            f"op={self.operation} amount={self.amount_cents} balance={self.balance_cents}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "sequence": self.sequence,
            "occurred_at": to_utc_z(self.occurred_at),
            "previous_balance_cents": self.previous_balance_cents,
            "amount_cents": self.amount_cents,
            "balance_cents": self.balance_cents,
            "operation": self.operation,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "notes": self.notes,
        }


class Expense(db.Model):
    """
    Business expense.

    A Cash expense with status Paid has exactly one linked 'expense' drawer
    entry (reference_type='expense', reference_id=expense.id). While that
    entry exists, amount, payment method and status are frozen.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        db.UniqueConstraint("expense_number", name="uq_expenses_expense_number"),
        db.CheckConstraint("amount_cents > 0", name="ck_expenses_amount_positive"),
        db.Index("ix_expenses_user_occurred", "user_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    expense_number = db.Column(db.String(16), nullable=False)
    category = db.Column(db.String(128), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False, default="Cash")
    status = db.Column(db.String(16), nullable=False, default="Paid")

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "expense_number": self.expense_number,
            "category": self.category,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "status": self.status,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
