# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

from __future__ import annotations

import re

from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import InventoryItem, Supplier, User
from ..models.inventory import PAYMENT_TERMS, SUPPLIER_STATUSES
from ..validation import ModelValidationPolicy, require_choice, validate_payload
from .concurrency import unit_of_work


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact", "email", "phone", "address", "payment_terms", "status"},
    required_on_create={"name", "contact", "email", "phone"},
    choices={"payment_terms": PAYMENT_TERMS, "status": SUPPLIER_STATUSES},
)


def _clean(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=partial)
    if "email" in patch:
        patch["email"] = patch["email"].lower()
        if not EMAIL_PATTERN.match(patch["email"]):
            raise ValidationError("Please enter a valid email", details={"field": "email"})
    return patch


def _ensure_unique_email(user_id: int, email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Supplier.id).filter(Supplier.user_id == user_id, Supplier.email == email)
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    if query.first():
        raise ConflictError("Supplier with this email already exists", details={"email": email})


def list_suppliers(user_id: int) -> list[Supplier]:
    return (
        db.session.query(Supplier)
        .filter(Supplier.user_id == user_id)
        .order_by(Supplier.name.asc())
        .all()
    )


def get_supplier(user_id: int, supplier_id: int) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(id=supplier_id, user_id=user_id).first()
    if not supplier:
        raise NotFoundError("Supplier not found", details={"id": supplier_id})
    return supplier


def create_supplier(user_id: int, payload: dict) -> Supplier:
    patch = _clean(payload, partial=False)

    def _op():
        _ensure_unique_email(user_id, patch["email"])
        supplier = Supplier(user_id=user_id, **patch)
        db.session.add(supplier)
        db.session.flush()
        return supplier

    return unit_of_work(user_id, _op)


def update_supplier(user_id: int, supplier_id: int, payload: dict) -> Supplier:
    patch = _clean(payload, partial=True)

    def _op():
        supplier = get_supplier(user_id, supplier_id)
        if "email" in patch and patch["email"] != supplier.email:
            _ensure_unique_email(user_id, patch["email"], exclude_id=supplier.id)
        for key, value in patch.items():
            setattr(supplier, key, value)
        return supplier

    return unit_of_work(user_id, _op)


def set_status(user_id: int, supplier_id: int, status: str) -> Supplier:
    require_choice(status, SUPPLIER_STATUSES, "status")

    def _op():
        supplier = get_supplier(user_id, supplier_id)
        supplier.status = status
        return supplier

    return unit_of_work(user_id, _op)


def delete_supplier(user: User, supplier_id: int) -> None:
    """Admin-only. Items keep existing but lose the supplier link."""
    if not user.is_admin:
        raise AuthorizationError("Admin access required")

    def _op():
        supplier = get_supplier(user.id, supplier_id)
        (
            db.session.query(InventoryItem)
            .filter(InventoryItem.user_id == user.id, InventoryItem.supplier_id == supplier.id)
            .update({InventoryItem.supplier_id: None}, synchronize_session=False)
        )
        db.session.delete(supplier)

    unit_of_work(user.id, _op)
