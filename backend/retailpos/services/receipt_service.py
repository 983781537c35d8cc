# Overview: Service-layer operations for receipt numbering; encapsulates the per-user counter.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import SequenceConflictError, ValidationError
from ..extensions import db
from ..models import ReceiptSequence


RECEIPT_PREFIX = "#"
RECEIPT_PAD = 6


def format_receipt_number(value: int) -> str:
    return f"{RECEIPT_PREFIX}{value:0{RECEIPT_PAD}d}"


def next_receipt_number(user_id: int) -> tuple[str, int]:
    """
    Atomically allocate the next receipt number for a user.

    Must run inside the caller's unit of work: the counter increment commits
    or rolls back together with the sale that consumes it, which keeps the
    values dense (1..N) per user.

    Returns (formatted, value), e.g. ("#000001", 1).
    """
    if not user_id:
        raise ValidationError("user_id is required")

    stmt = (
        update(ReceiptSequence)
        .where(ReceiptSequence.user_id == user_id)
        .values(next_value=ReceiptSequence.next_value + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(ReceiptSequence.next_value)
            .filter_by(user_id=user_id)
            .scalar()
        )
        value = current - 1
    else:
        seq = ReceiptSequence(user_id=user_id, next_value=2)
        db.session.add(seq)
        try:
            db.session.flush()
        except IntegrityError as exc:
            # Another writer created the counter row first; retry the whole unit.
            raise SequenceConflictError(
                "Receipt counter was created concurrently",
                details={"user_id": user_id},
            ) from exc
        value = 1

    return format_receipt_number(value), value

