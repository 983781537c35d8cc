from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from retailpos.time_utils import to_utc_z


STATUS_IN_STOCK = "In Stock"
STATUS_LOW_STOCK = "Low Stock"
STATUS_OUT_OF_STOCK = "Out of Stock"
STOCK_STATUSES = (STATUS_IN_STOCK, STATUS_LOW_STOCK, STATUS_OUT_OF_STOCK)

DEFAULT_REORDER_LEVEL = 5

PAYMENT_TERMS = ("Net 15", "Net 30", "Net 45", "Net 60", "COD")
SUPPLIER_STATUSES = ("Active", "Inactive", "On Hold")


def derive_status(stock: int, reorder_level: int) -> str:
    """
    Pure stock-status rule.

    stock <= 0              -> Out of Stock
    stock <= reorder_level  -> Low Stock (boundary is inclusive)
    otherwise               -> In Stock
    """
    if stock <= 0:
        return STATUS_OUT_OF_STOCK
    if stock <= reorder_level:
        return STATUS_LOW_STOCK
    return STATUS_IN_STOCK


class InventoryItem(db.Model):
    """
    Catalog item with its current on-hand stock.

    TENANCY: Items are scoped to user_id. SKUs are unique within a user:
    UniqueConstraint("user_id", "sku").

    STATUS DESIGN DECISION:
    status is derived, never client-settable. It is recomputed from
    stock/reorder_level before every insert and update (see listeners
    below), so the stored value always matches derive_status().

    WHY a stored stock column (not ledger-derived):
    Sale completion decrements stock in the same transaction that writes the
    sale and drawer entry. version_id guards concurrent edits.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "sku", name="uq_inventory_items_user_sku"),
        db.CheckConstraint("stock >= 0", name="ck_inventory_items_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_inventory_items_price_non_negative"),
        db.Index("ix_inventory_items_user_name", "user_id", "name"),
        db.Index("ix_inventory_items_user_status", "user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(64), nullable=True)
    category = db.Column(db.String(128), nullable=False)
    subcategory = db.Column(db.String(128), nullable=True)
    brand = db.Column(db.String(128), nullable=True)
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(128), nullable=True)
    unit_of_measure = db.Column(db.String(32), nullable=False, default="each")

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    purchase_price_cents = db.Column(db.Integer, nullable=True)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    reorder_level = db.Column(db.Integer, nullable=False, default=DEFAULT_REORDER_LEVEL)
    status = db.Column(db.String(16), nullable=False, default=STATUS_OUT_OF_STOCK)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("items", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} sku={self.sku!r} name={self.name!r} user_id={self.user_id}>"

    def refresh_status(self) -> None:
        self.status = derive_status(
            self.stock or 0,
            DEFAULT_REORDER_LEVEL if self.reorder_level is None else self.reorder_level,
        )

    @property
    def profit_margin_bps(self) -> int | None:
        if not self.purchase_price_cents or not self.price_cents:
            return None
        margin = (self.price_cents - self.purchase_price_cents) * 10000
        # half-up to the nearest basis point
        return (2 * margin + self.price_cents) // (2 * self.price_cents)

    @property
    def inventory_value_cents(self) -> int:
        return (self.stock or 0) * (self.price_cents or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "sku": self.sku,
            "name": self.name,
            "barcode": self.barcode,
            "category": self.category,
            "subcategory": self.subcategory,
            "brand": self.brand,
            "description": self.description,
            "location": self.location,
            "unit_of_measure": self.unit_of_measure,
            "supplier_id": self.supplier_id,
            "price_cents": self.price_cents,
            "purchase_price_cents": self.purchase_price_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "stock": self.stock,
            "reorder_level": self.reorder_level,
            "status": self.status,
            "profit_margin_bps": self.profit_margin_bps,
            "inventory_value_cents": self.inventory_value_cents,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


@event.listens_for(InventoryItem, "before_insert")
@event.listens_for(InventoryItem, "before_update")
def _sync_stock_status(mapper, connection, target: InventoryItem) -> None:
    target.refresh_status()


class Supplier(db.Model):
    """
    Supplier directory entry.

    total_orders / last_order_at are a weak denormalized counter bumped when
    an inventory item is created against this supplier.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.UniqueConstraint("user_id", "email", name="uq_suppliers_user_email"),
        db.Index("ix_suppliers_user_name", "user_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=False)
    address = db.Column(db.Text, nullable=True)

    payment_terms = db.Column(db.String(16), nullable=False, default="Net 30")
    status = db.Column(db.String(16), nullable=False, default="Active")

    last_order_at = db.Column(db.DateTime(timezone=True), nullable=True)
    total_orders = db.Column(db.Integer, nullable=False, default=0)

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
            "name": self.name,
            "contact": self.contact,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "payment_terms": self.payment_terms,
            "status": self.status,
            "last_order_at": to_utc_z(self.last_order_at),
            "total_orders": self.total_orders,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
