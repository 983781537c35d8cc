from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Completed sale record.

    WHY immutable: A sale is written once by sale completion together with
    its stock decrements and cash-drawer entry. Only `printed` may change
    afterwards. Corrections are new ledger entries, never edits.

    RECEIPT NUMBERS:
    receipt_number_value is dense per user (1..N) and unique per user.
    receipt_number is the display form "#000001".
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("user_id", "receipt_number_value", name="uq_sales_user_receipt"),
        db.CheckConstraint("total_cents >= 0", name="ck_sales_total_non_negative"),
        db.CheckConstraint("change_cents >= 0", name="ck_sales_change_non_negative"),
        db.Index("ix_sales_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    receipt_number = db.Column(db.String(16), nullable=False)
    receipt_number_value = db.Column(db.Integer, nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)
    cash_amount_cents = db.Column(db.Integer, nullable=False)
    change_cents = db.Column(db.Integer, nullable=False)

    customer_name = db.Column(db.String(255), nullable=False, default="Walk-in Customer")
    printed = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    lines = db.relationship(
        "SaleLine",
        backref="sale",
        lazy=True,
        order_by="SaleLine.line_number",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "receipt_number": self.receipt_number,
            "receipt_number_value": self.receipt_number_value,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
            "cash_amount_cents": self.cash_amount_cents,
            "change_cents": self.change_cents,
            "customer_name": self.customer_name,
            "printed": self.printed,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class SaleLine(db.Model):
    """
    Snapshot of one sold item.

    name/sku/price_cents are copied from the catalog at completion time so
    later catalog edits never change historical sales.
    """
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sale_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "line_number": self.line_number,
            "item_id": self.item_id,
            "name": self.name,
            "sku": self.sku,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "line_total_cents": self.line_total_cents,
        }


class ReceiptSequence(db.Model):
    """
    Per-user receipt counter.

    WHY: Receipt numbers are allocated with an atomic UPDATE ... SET
    next_value = next_value + 1 instead of scanning MAX(receipt) over sales,
    so two concurrent sales can never read the same "last" number.
    """
    __tablename__ = "receipt_sequences"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_receipt_sequences_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    next_value = db.Column(db.Integer, nullable=False, default=1)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "next_value": self.next_value,
        }
