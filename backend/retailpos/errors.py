# Overview: Error taxonomy shared by services and routes.

"""
Domain errors raised by the service layer.

WHY: Routes translate failures into HTTP responses without knowing which
service raised them. Every error carries a stable `kind` for clients, an
HTTP status, and a `details` dict with the structured payload
(e.g. available vs requested stock).

RULES:
- Business-rule failures are raised BEFORE any mutation.
- Anything raised after the first mutation is undone by the unit of work
  rolling back the transaction (see services/concurrency.py).
"""

from __future__ import annotations


class PosError(Exception):
    """Base class for expected, client-reportable failures."""
    kind = "error"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind, "details": self.details}


class ValidationError(PosError):
    """400-level input problem."""
    kind = "validation"


class NotFoundError(PosError):
    """Entity does not exist for the current user."""
    kind = "not_found"
    status_code = 404


class InsufficientStockError(PosError):
    kind = "insufficient_stock"

    def __init__(self, item_name: str, available: int, requested: int, item_id: int | None = None):
        super().__init__(
            f"Not enough stock for {item_name}. Available: {available}",
            details={
                "item_id": item_id,
                "name": item_name,
                "available": available,
                "requested": requested,
            },
        )
        self.available = available
        self.requested = requested


class InsufficientFundsError(PosError):
    kind = "insufficient_funds"

    def __init__(self, available_cents: int, requested_cents: int):
        super().__init__(
            "Insufficient funds in cash drawer",
            details={
                "available_cents": available_cents,
                "requested_cents": requested_cents,
            },
        )
        self.available_cents = available_cents
        self.requested_cents = requested_cents


class AuthorizationError(PosError):
    kind = "forbidden"
    status_code = 403


class ConflictError(PosError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    kind = "conflict"
    status_code = 409


class SequenceConflictError(ConflictError):
    """
    Two writers raced for the same ledger/receipt sequence slot.

    Retried by the unit of work; only surfaces when retries are exhausted.
    """
    status_code = 500


class StoreError(PosError):
    """Persistence failure; the transaction was rolled back."""
    kind = "store_error"
    status_code = 500
