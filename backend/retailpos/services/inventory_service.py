# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/retailpos/services/inventory_service.py
"""
Inventory Invariants (authoritative)

- Every item belongs to exactly one user; every query is user-scoped.
- stock is an integer >= 0 (CHECK constraint + validation here).
- status == derive_status(stock, reorder_level) at all times. It is
  recomputed on every write and is never accepted from clients.
- SKU is unique per user. A duplicate is a ConflictError (409).
- Creating an item tied to a supplier bumps the supplier's order counter.
"""

from __future__ import annotations

from sqlalchemy import func, or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import InventoryItem, Supplier
from ..models.inventory import (
    STATUS_LOW_STOCK,
    STATUS_OUT_OF_STOCK,
    STOCK_STATUSES,
    derive_status,
)
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, enforce_non_negative, require_choice, validate_payload
from .concurrency import unit_of_work


__all__ = [
    "derive_status",
    "list_items",
    "get_item",
    "create_item",
    "update_item",
    "delete_item",
    "list_categories",
    "get_stats",
]


ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku",
        "name",
        "barcode",
        "category",
        "subcategory",
        "brand",
        "description",
        "location",
        "unit_of_measure",
        "supplier_id",
        "price_cents",
        "purchase_price_cents",
        "tax_rate_bps",
        "stock",
        "reorder_level",
    },
    required_on_create={"sku", "name", "category", "price_cents"},
)

NON_NEGATIVE_FIELDS = ("price_cents", "purchase_price_cents", "tax_rate_bps", "stock", "reorder_level")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200


def _clean(payload: dict, *, partial: bool) -> dict:
    if isinstance(payload, dict) and "status" in payload:
        raise ValidationError("status is derived from stock and cannot be set")
    patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_POLICY, partial=partial)
    enforce_non_negative(patch, NON_NEGATIVE_FIELDS)
    return patch


def _require_supplier(user_id: int, supplier_id: int | None) -> Supplier | None:
    if supplier_id is None:
        return None
    supplier = db.session.query(Supplier).filter_by(id=supplier_id, user_id=user_id).first()
    if not supplier:
        raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})
    return supplier


def _ensure_unique_sku(user_id: int, sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(InventoryItem.id).filter(
        InventoryItem.user_id == user_id,
        InventoryItem.sku == sku,
    )
    if exclude_id is not None:
        query = query.filter(InventoryItem.id != exclude_id)
    if query.first():
        raise ConflictError("Item with this SKU already exists", details={"sku": sku})


def get_item(user_id: int, item_id: int) -> InventoryItem:
    item = db.session.query(InventoryItem).filter_by(id=item_id, user_id=user_id).first()
    if not item:
        raise NotFoundError("Item not found", details={"id": item_id})
    return item


def list_items(
    user_id: int,
    *,
    category: str | None = None,
    status: str | None = None,
    supplier_id: int | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[InventoryItem], dict]:
    """Filtered, paginated listing (newest first) plus pagination metadata."""
    query = db.session.query(InventoryItem).filter(InventoryItem.user_id == user_id)

    if category:
        query = query.filter(InventoryItem.category == category)
    if status:
        require_choice(status, STOCK_STATUSES, "status")
        query = query.filter(InventoryItem.status == status)
    if supplier_id:
        query = query.filter(InventoryItem.supplier_id == supplier_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            InventoryItem.name.ilike(pattern),
            InventoryItem.sku.ilike(pattern),
            InventoryItem.category.ilike(pattern),
            InventoryItem.subcategory.ilike(pattern),
            InventoryItem.brand.ilike(pattern),
            InventoryItem.location.ilike(pattern),
            InventoryItem.barcode.ilike(pattern),
        ))

    page = max(1, page or 1)
    limit = max(1, min(limit or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE))

    total = query.count()
    items = (
        query.order_by(InventoryItem.created_at.desc(), InventoryItem.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = {
        "page": page,
        "limit": limit,
        "total_items": total,
        "total_pages": (total + limit - 1) // limit,
    }
    return items, pagination


def create_item(user_id: int, payload: dict) -> InventoryItem:
    patch = _clean(payload, partial=False)

    def _op():
        _ensure_unique_sku(user_id, patch["sku"])
        supplier = _require_supplier(user_id, patch.get("supplier_id"))

        item = InventoryItem(user_id=user_id, **patch)
        item.refresh_status()
        db.session.add(item)

        if supplier is not None:
            supplier.total_orders = (supplier.total_orders or 0) + 1
            supplier.last_order_at = utcnow()

        db.session.flush()
        return item

    return unit_of_work(user_id, _op)


def update_item(user_id: int, item_id: int, payload: dict) -> InventoryItem:
    patch = _clean(payload, partial=True)

    def _op():
        item = get_item(user_id, item_id)
        if "sku" in patch and patch["sku"] != item.sku:
            _ensure_unique_sku(user_id, patch["sku"], exclude_id=item.id)
        if "supplier_id" in patch:
            _require_supplier(user_id, patch["supplier_id"])

        for key, value in patch.items():
            setattr(item, key, value)
        item.refresh_status()
        return item

    return unit_of_work(user_id, _op)


def delete_item(user_id: int, item_id: int) -> None:
    def _op():
        item = get_item(user_id, item_id)
        db.session.delete(item)

    unit_of_work(user_id, _op)


def list_categories(user_id: int) -> list[str]:
    rows = (
        db.session.query(InventoryItem.category)
        .filter(InventoryItem.user_id == user_id)
        .distinct()
        .order_by(InventoryItem.category)
        .all()
    )
    return [row[0] for row in rows if row[0]]


def get_stats(user_id: int) -> dict:
    base = db.session.query(InventoryItem).filter(InventoryItem.user_id == user_id)
    total_value = (
        db.session.query(func.coalesce(func.sum(InventoryItem.stock * InventoryItem.price_cents), 0))
        .filter(InventoryItem.user_id == user_id)
        .scalar()
    )
    return {
        "total_items": base.count(),
        "low_stock_items": base.filter(InventoryItem.status == STATUS_LOW_STOCK).count(),
        "out_of_stock_items": base.filter(InventoryItem.status == STATUS_OUT_OF_STOCK).count(),
        "total_value_cents": int(total_value or 0),
    }
