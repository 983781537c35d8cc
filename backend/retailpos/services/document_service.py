# Overview: Service-layer operations for document numbers; encapsulates identifier generation.

from __future__ import annotations

import secrets

from sqlalchemy.exc import IntegrityError

from ..errors import SequenceConflictError
from ..extensions import db


EXPENSE_PREFIX = "EXP"
TAX_PREFIX = "TAX"


def new_document_number(prefix: str) -> str:
    """
    Random display identifier, e.g. "EXP-3F9A0C12".

    Uniqueness is enforced by a unique constraint on the owning table; a
    collision surfaces from flush_document() as a retryable conflict.
    """
    return f"{prefix}-{secrets.token_hex(4).upper()}"


def flush_document(doc) -> None:
    """Add and flush a newly numbered document inside the current unit of work."""
    db.session.add(doc)
    try:
        db.session.flush()
    except IntegrityError as exc:
        raise SequenceConflictError(
            "Document number collision",
            details={"type": type(doc).__name__},
        ) from exc
