# Overview: Service-layer operations for business settings; encapsulates business logic and database work.

"""
Business profile and receipt text, one row per user.

Updates are partial: keys absent from the payload keep their stored value.
The business and POS blocks are written through separate policies so a
receipt-text update can never touch the business profile and vice versa.
"""

from __future__ import annotations

from ..errors import ValidationError
from ..extensions import db
from ..models import BusinessSettings
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import unit_of_work
from .supplier_service import EMAIL_PATTERN


BUSINESS_POLICY = ModelValidationPolicy(
    writable_fields={"name", "tax_id", "address", "phone", "email", "website", "business_hours"},
)

POS_POLICY = ModelValidationPolicy(
    writable_fields={"receipt_header", "receipt_footer"},
)


def get_settings(user_id: int) -> BusinessSettings:
    """Return the user's settings row, creating it with defaults on first read."""
    settings = db.session.query(BusinessSettings).filter_by(user_id=user_id).first()
    if settings:
        return settings

    def _op():
        existing = db.session.query(BusinessSettings).filter_by(user_id=user_id).first()
        if existing:
            return existing
        created = BusinessSettings(user_id=user_id)
        db.session.add(created)
        db.session.flush()
        return created

    return unit_of_work(user_id, _op)


def _apply(user_id: int, patch: dict) -> BusinessSettings:
    get_settings(user_id)

    def _op():
        settings = db.session.query(BusinessSettings).filter_by(user_id=user_id).one()
        for key, value in patch.items():
            setattr(settings, key, value)
        return settings

    return unit_of_work(user_id, _op)


def update_business(user_id: int, payload: dict) -> BusinessSettings:
    patch = validate_payload(model=BusinessSettings, payload=payload, policy=BUSINESS_POLICY, partial=True)
    email = patch.get("email")
    if email:
        patch["email"] = email.lower()
        if not EMAIL_PATTERN.match(patch["email"]):
            raise ValidationError("Please enter a valid email", details={"field": "email"})
    return _apply(user_id, patch)


def update_pos(user_id: int, payload: dict) -> BusinessSettings:
    patch = validate_payload(model=BusinessSettings, payload=payload, policy=POS_POLICY, partial=True)
    return _apply(user_id, patch)
