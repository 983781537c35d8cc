# Overview: Service-layer operations for the cash drawer; encapsulates the ledger chaining primitive.

"""
Cash Drawer Ledger

Every balance-affecting action (sale, manual add/remove, count, expense paid
in cash, tax payment in cash, initialization, close) goes through ONE
primitive: append_entry(). Nothing else writes CashDrawerEntry rows.

Chain rules (per user, ordered by sequence):
- previous_balance_cents of entry n == balance_cents of entry n-1 (0 for the first)
- balance_cents == previous_balance_cents + amount_cents
- sequence is dense and occurred_at strictly increases

Sign convention:
- add:                       amount > 0 stored positive
- sale, initialization:      amount >= 0 stored positive
- remove, expense:           amount > 0 requested, stored NEGATIVE
- count:                     balance := observed; amount stores the variance
- close:                     amount 0, balance unchanged

Entries are append-only: never updated, never deleted. A correction is a new
entry (e.g. deleting a cash expense appends a reversing 'add').
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import (
    InsufficientFundsError,
    NotFoundError,
    SequenceConflictError,
    ValidationError,
)
from ..extensions import db
from ..models import CashDrawerEntry, Sale
from ..models.finance import DRAWER_OPERATIONS, REFERENCE_TYPES
from ..time_utils import as_utc_naive, end_of_day, utcnow
from ..validation import require_cents, require_choice
from .concurrency import lock_for_update, unit_of_work


logger = logging.getLogger(__name__)

OUTFLOW_OPERATIONS = ("remove", "expense")

# Operations a cashier may post directly; sale/expense entries only come
# from their own flows so they always carry a reference.
MANUAL_OPERATIONS = ("add", "remove", "count", "initialization", "close")

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 500


def latest_entry(user_id: int, *, for_update: bool = False) -> CashDrawerEntry | None:
    query = (
        db.session.query(CashDrawerEntry)
        .filter(CashDrawerEntry.user_id == user_id)
        .order_by(CashDrawerEntry.sequence.desc())
    )
    if for_update:
        query = lock_for_update(query)
    return query.first()


def _next_timestamp(latest: CashDrawerEntry | None):
    now = utcnow()
    if latest is None:
        return now
    last = as_utc_naive(latest.occurred_at)
    if now <= last:
        return last + timedelta(microseconds=1)
    return now


def append_entry(
    user_id: int,
    operation: str,
    amount_cents,
    notes: str | None = "",
    *,
    reference_type: str | None = None,
    reference_id: int | None = None,
) -> CashDrawerEntry:
    """
    Chain one entry onto the user's drawer ledger.

    The caller owns the transaction (see concurrency.unit_of_work). Raises
    before adding anything to the session when a rule fails.
    """
    if not user_id:
        raise ValidationError("user_id is required")
    require_choice(operation, DRAWER_OPERATIONS, "operation")
    if reference_type is not None:
        require_choice(reference_type, REFERENCE_TYPES, "reference_type")

    latest = latest_entry(user_id, for_update=True)
    previous = latest.balance_cents if latest else 0

    if operation == "add":
        signed = require_cents(amount_cents, "amount_cents", positive=True)
    elif operation == "sale":
        # A fully discounted sale still gets its (zero) entry.
        signed = require_cents(amount_cents, "amount_cents")
    elif operation in OUTFLOW_OPERATIONS:
        amount = require_cents(amount_cents, "amount_cents", positive=True)
        if previous < amount:
            raise InsufficientFundsError(available_cents=previous, requested_cents=amount)
        signed = -amount
    elif operation == "count":
        observed = require_cents(amount_cents, "amount_cents")
        signed = observed - previous
    elif operation == "initialization":
        if latest is not None:
            raise ValidationError(
                "Cash drawer is already initialized",
                details={"balance_cents": previous},
            )
        signed = require_cents(amount_cents, "amount_cents")
    else:
        # close: audit marker only
        if amount_cents not in (None, 0, "0"):
            raise ValidationError("close does not take an amount")
        signed = 0

    entry = CashDrawerEntry(
        user_id=user_id,
        sequence=(latest.sequence + 1) if latest else 1,
        occurred_at=_next_timestamp(latest),
        previous_balance_cents=previous,
        amount_cents=signed,
        balance_cents=previous + signed,
        operation=operation,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=(notes or "")[:500],
    )
    db.session.add(entry)
    try:
        db.session.flush()
    except IntegrityError as exc:
        raise SequenceConflictError(
            "Cash drawer ledger changed concurrently",
            details={"user_id": user_id, "sequence": entry.sequence},
        ) from exc

    logger.info(
        "Drawer %s user=%s seq=%s amount=%s balance=%s",
        operation, user_id, entry.sequence, signed, entry.balance_cents,
    )
    return entry


def apply_cash_drawer_operation(
    user_id: int,
    operation: str,
    amount_cents,
    notes: str | None = "",
    *,
    reference_type: str | None = None,
    reference_id: int | None = None,
    commit: bool = True,
) -> CashDrawerEntry:
    """
    Public chaining primitive.

    commit=True runs the append as its own unit of work; commit=False enlists
    it in the caller's transaction (sale completion, expense, tax payment).
    """
    def _op():
        return append_entry(
            user_id,
            operation,
            amount_cents,
            notes,
            reference_type=reference_type,
            reference_id=reference_id,
        )

    if not commit:
        return _op()
    return unit_of_work(user_id, _op)


def add_cash(user_id: int, amount_cents, notes: str | None = "") -> CashDrawerEntry:
    return apply_cash_drawer_operation(user_id, "add", amount_cents, notes or "Cash added")


def remove_cash(user_id: int, amount_cents, notes: str | None = "") -> CashDrawerEntry:
    return apply_cash_drawer_operation(user_id, "remove", amount_cents, notes or "Cash removed")


def run_manual_operation(user_id: int, operation: str, amount_cents, reason: str | None = "") -> CashDrawerEntry:
    """Generic cashier operation: add, remove, count, initialization or close."""
    require_choice(operation, MANUAL_OPERATIONS, "type")
    return apply_cash_drawer_operation(user_id, operation, amount_cents, reason or "")


# =============================================================================
# Read side
# =============================================================================

def get_balance(user_id: int) -> int:
    """Current drawer balance in cents (0 when the drawer has no entries)."""
    latest = latest_entry(user_id)
    return latest.balance_cents if latest else 0


def get_history(user_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> list[CashDrawerEntry]:
    limit = max(1, min(limit or DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT))
    return (
        db.session.query(CashDrawerEntry)
        .filter(CashDrawerEntry.user_id == user_id)
        .order_by(CashDrawerEntry.sequence.desc())
        .limit(limit)
        .all()
    )


def get_entry(user_id: int, entry_id: int) -> dict:
    """Single entry; sale entries embed the referenced sale."""
    entry = (
        db.session.query(CashDrawerEntry)
        .filter_by(id=entry_id, user_id=user_id)
        .first()
    )
    if not entry:
        raise NotFoundError("Transaction not found", details={"id": entry_id})

    data = entry.to_dict()
    if entry.operation == "sale" and entry.reference_id:
        sale = (
            db.session.query(Sale)
            .filter_by(id=entry.reference_id, user_id=user_id)
            .first()
        )
        if sale:
            data["sale_details"] = sale.to_dict()
    return data


def get_summary(user_id: int, start=None, end=None) -> list[dict]:
    """Per-operation count and signed total for a date range (end date inclusive)."""
    query = db.session.query(
        CashDrawerEntry.operation,
        func.count(CashDrawerEntry.id),
        func.coalesce(func.sum(CashDrawerEntry.amount_cents), 0),
    ).filter(CashDrawerEntry.user_id == user_id)

    if start is not None:
        query = query.filter(CashDrawerEntry.occurred_at >= start)
    if end is not None:
        query = query.filter(CashDrawerEntry.occurred_at <= end_of_day(end))

    rows = query.group_by(CashDrawerEntry.operation).order_by(CashDrawerEntry.operation).all()
    return [
        {"operation": operation, "count": count, "total_cents": int(total)}
        for operation, count, total in rows
    ]


def verify_chain(user_id: int) -> list[dict]:
    """
    Walk the user's ledger in sequence order and report every broken link.

    Returns an empty list when the chain is intact.
    """
    problems: list[dict] = []
    entries = (
        db.session.query(CashDrawerEntry)
        .filter(CashDrawerEntry.user_id == user_id)
        .order_by(CashDrawerEntry.sequence.asc())
        .all()
    )

    prev = None
    for entry in entries:
        expected_previous = prev.balance_cents if prev else 0
        expected_sequence = prev.sequence + 1 if prev else 1

        if entry.sequence != expected_sequence:
            problems.append({
                "id": entry.id,
                "sequence": entry.sequence,
                "problem": "sequence_gap",
                "expected": expected_sequence,
            })
        if entry.previous_balance_cents != expected_previous:
            problems.append({
                "id": entry.id,
                "sequence": entry.sequence,
                "problem": "previous_balance_mismatch",
                "expected": expected_previous,
                "actual": entry.previous_balance_cents,
            })
        if entry.balance_cents != entry.previous_balance_cents + entry.amount_cents:
            problems.append({
                "id": entry.id,
                "sequence": entry.sequence,
                "problem": "balance_mismatch",
                "expected": entry.previous_balance_cents + entry.amount_cents,
                "actual": entry.balance_cents,
            })
        if prev is not None and as_utc_naive(entry.occurred_at) <= as_utc_naive(prev.occurred_at):
            problems.append({
                "id": entry.id,
                "sequence": entry.sequence,
                "problem": "timestamp_not_increasing",
            })
        prev = entry

    return problems
