# Overview: Service-layer operations for sales; encapsulates business logic and database work.

"""
Sales Service - sale completion and the read side of sales.

WHY: A completed sale touches three shared resources at once: stock on
every sold item, the per-user receipt counter and the cash-drawer chain.
complete_sale() runs all of it as one unit of work, so either everything
is committed or nothing is.

ORDER OF OPERATIONS:
1. validate the request shape (no DB access)
2. resolve every line against the user's catalog and check stock for the
   aggregated quantity per item -- all BEFORE the first mutation
3. decrement stock, snapshot prices
4. compute subtotal / total / change and check payment
5. allocate the receipt number
6. insert the sale and its lines
7. append one 'sale' drawer entry for total (== cash - change)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import or_

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import InventoryItem, Sale, SaleLine
from ..time_utils import end_of_day
from ..validation import coerce_int, require_cents
from .cash_drawer_service import append_entry
from .concurrency import lock_for_update, unit_of_work
from .receipt_service import next_receipt_number


logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER = "Walk-in Customer"
DEFAULT_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class LineRequest:
    item_id: int
    quantity: int
    label: str | None = None


@dataclass
class SaleResult:
    sale: Sale
    inventory_updates: list[dict]
    previous_balance_cents: int
    current_balance_cents: int
    sale_amount_cents: int

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(),
            "inventory_updates": self.inventory_updates,
            "cash_drawer": {
                "previous_balance_cents": self.previous_balance_cents,
                "current_balance_cents": self.current_balance_cents,
                "sale_amount_cents": self.sale_amount_cents,
            },
        }


def parse_line_requests(items) -> list[LineRequest]:
    """Validate the raw items list: non-empty, each with an item id and quantity >= 1."""
    if not items or not isinstance(items, list):
        raise ValidationError("Sale must include at least one item")

    lines: list[LineRequest] = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index + 1} is malformed")
        item_id = raw.get("item_id", raw.get("id"))
        if item_id is None:
            raise ValidationError(f"Item {index + 1} is missing item_id")
        raw_qty = raw.get("quantity")
        quantity = coerce_int(raw_qty, "quantity") if raw_qty is not None else None
        if quantity is None or quantity < 1:
            raise ValidationError(
                f"Item {index + 1} must have a quantity of at least 1",
                details={"index": index},
            )
        lines.append(LineRequest(
            item_id=coerce_int(item_id, "item_id"),
            quantity=quantity,
            label=raw.get("name"),
        ))
    return lines


def _resolve_items(user_id: int, lines: list[LineRequest], requested: dict[int, int]) -> dict[int, InventoryItem]:
    """Load and stock-check every referenced item before anything is mutated."""
    labels = {line.item_id: line.label for line in lines if line.label}
    items: dict[int, InventoryItem] = {}
    for item_id, quantity in requested.items():
        item = lock_for_update(
            db.session.query(InventoryItem).filter_by(id=item_id, user_id=user_id)
        ).first()
        if not item:
            raise NotFoundError(
                f"Item {labels.get(item_id, item_id)} not found in inventory",
                details={"item_id": item_id},
            )
        if item.stock < quantity:
            raise InsufficientStockError(
                item_name=item.name,
                available=item.stock,
                requested=quantity,
                item_id=item.id,
            )
        items[item_id] = item
    return items


def complete_sale(
    user_id: int,
    items,
    *,
    cash_amount_cents,
    discount_cents=0,
    customer_name: str | None = None,
) -> SaleResult:
    """
    Complete a sale atomically: stock decrements, sale record, receipt number
    and cash-drawer entry.
    """
    lines = parse_line_requests(items)
    discount = require_cents(discount_cents or 0, "discount_cents")
    cash = require_cents(cash_amount_cents, "cash_amount_cents")
    customer = (customer_name or "").strip() or DEFAULT_CUSTOMER

    requested: dict[int, int] = {}
    for line in lines:
        requested[line.item_id] = requested.get(line.item_id, 0) + line.quantity

    def _op() -> SaleResult:
        catalog = _resolve_items(user_id, lines, requested)

        subtotal = 0
        sale_lines: list[SaleLine] = []
        for number, line in enumerate(lines, start=1):
            item = catalog[line.item_id]
            line_total = item.price_cents * line.quantity
            subtotal += line_total
            sale_lines.append(SaleLine(
                line_number=number,
                item_id=item.id,
                name=item.name,
                sku=item.sku,
                quantity=line.quantity,
                price_cents=item.price_cents,
                line_total_cents=line_total,
            ))

        if discount > subtotal:
            raise ValidationError(
                "Discount cannot exceed subtotal",
                details={"subtotal_cents": subtotal, "discount_cents": discount},
            )
        total = subtotal - discount
        if cash < total:
            raise ValidationError(
                "Cash amount is less than the sale total",
                details={"total_cents": total, "cash_amount_cents": cash},
            )
        change = cash - total

        # First mutation happens here; every rule above has already passed.
        for line in lines:
            item = catalog[line.item_id]
            item.stock -= line.quantity
            item.refresh_status()

        receipt_number, receipt_value = next_receipt_number(user_id)

        sale = Sale(
            user_id=user_id,
            receipt_number=receipt_number,
            receipt_number_value=receipt_value,
            subtotal_cents=subtotal,
            discount_cents=discount,
            total_cents=total,
            cash_amount_cents=cash,
            change_cents=change,
            customer_name=customer,
            printed=False,
        )
        sale.lines = sale_lines
        db.session.add(sale)
        db.session.flush()

        sale_amount = cash - change
        entry = append_entry(
            user_id,
            "sale",
            sale_amount,
            f"Sale completed for {customer}",
            reference_type="sale",
            reference_id=sale.id,
        )

        updates = [
            {
                "item_id": item.id,
                "name": item.name,
                "quantity_sold": requested[item_id],
                "remaining_stock": item.stock,
                "status": item.status,
            }
            for item_id, item in catalog.items()
        ]

        return SaleResult(
            sale=sale,
            inventory_updates=updates,
            previous_balance_cents=entry.previous_balance_cents,
            current_balance_cents=entry.balance_cents,
            sale_amount_cents=sale_amount,
        )

    result = unit_of_work(user_id, _op)
    logger.info(
        "Sale %s completed for user %s: total=%s change=%s",
        result.sale.receipt_number, user_id, result.sale.total_cents, result.sale.change_cents,
    )
    return result


# =============================================================================
# Read side
# =============================================================================

def get_sale(user_id: int, sale_id: int) -> Sale:
    sale = db.session.query(Sale).filter_by(id=sale_id, user_id=user_id).first()
    if not sale:
        raise NotFoundError("Sale not found", details={"id": sale_id})
    return sale


def list_sales(user_id: int, *, start=None, end=None, search: str | None = None) -> list[Sale]:
    query = db.session.query(Sale).filter(Sale.user_id == user_id)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at <= end_of_day(end))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Sale.receipt_number.ilike(pattern),
            Sale.customer_name.ilike(pattern),
        ))
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def sales_history(user_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> list[Sale]:
    limit = max(1, min(limit or DEFAULT_HISTORY_LIMIT, 500))
    return (
        db.session.query(Sale)
        .filter(Sale.user_id == user_id)
        .order_by(Sale.receipt_number_value.desc())
        .limit(limit)
        .all()
    )


def mark_printed(user_id: int, sale_id: int) -> Sale:
    """The only mutation a completed sale accepts."""
    def _op():
        sale = get_sale(user_id, sale_id)
        sale.printed = True
        return sale

    return unit_of_work(user_id, _op)
