# Overview: Service-layer operations for concurrency; encapsulates transaction and locking discipline.

"""
Unit-of-work and locking helpers.

WHY: The inventory stock counters, the receipt counter and the cash-drawer
chain are read-modify-write resources. Every write path that touches them
runs through unit_of_work(), which:

1. serializes same-user writers inside this process (tenant_lock)
2. takes the database writer lock up front on SQLite (BEGIN IMMEDIATE);
   other engines rely on SELECT ... FOR UPDATE via lock_for_update()
3. commits once, so a sale's stock decrements, sale row, receipt number
   and drawer entry land together or not at all
4. retries lock/version/sequence conflicts with exponential backoff

Different users never share a tenant lock. Locks are created on first write
and kept for the life of the process, so the table is bounded by the number
of users (a single store has a handful of operator accounts).
"""

from __future__ import annotations

import logging
import threading
import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import PosError, SequenceConflictError, StoreError
from ..extensions import db


logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, StaleDataError, SequenceConflictError)

_tenant_locks: dict[int, threading.RLock] = {}
_tenant_locks_guard = threading.Lock()


def tenant_lock(user_id: int) -> threading.RLock:
    """Return the process-wide lock for one user's write paths."""
    with _tenant_locks_guard:
        lock = _tenant_locks.get(user_id)
        if lock is None:
            lock = threading.RLock()
            _tenant_locks[user_id] = lock
        return lock


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write() -> None:
    """Acquire the database writer lock for the current transaction on SQLite."""
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks), StaleDataError
    (optimistic locking conflicts) and SequenceConflictError (two writers
    raced for the same ledger/receipt slot).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning(
                "Retrying after %s (attempt %d of %d)",
                type(exc).__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def unit_of_work(user_id: int, func, *, attempts: int | None = None, backoff_base: float = 0.1):
    """
    Run func() as one atomic, per-user serialized transaction and commit.

    func must not commit. PosError subclasses roll back and propagate
    unchanged; other SQLAlchemy failures roll back and surface as StoreError.
    """
    if attempts is None:
        attempts = current_app.config.get("LEDGER_RETRY_ATTEMPTS", 3)

    def _op():
        with tenant_lock(user_id):
            try:
                begin_write()
                result = func()
                db.session.commit()
                return result
            except RETRYABLE_ERRORS:
                raise
            except PosError:
                db.session.rollback()
                raise
            except SQLAlchemyError as exc:
                db.session.rollback()
                logger.exception("Unit of work failed for user %s", user_id)
                raise StoreError("Failed to persist changes") from exc
            except Exception:
                db.session.rollback()
                raise

    try:
        return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
    except (OperationalError, StaleDataError) as exc:
        logger.error("Unit of work for user %s exhausted %d attempts", user_id, attempts)
        raise StoreError("Database is busy, please retry") from exc
