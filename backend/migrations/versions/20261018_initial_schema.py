"""Initial POS schema: users, catalog, sales, cash drawer, expenses, tax, settings

Revision ID: 20261018_initial_schema
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_username", ["username"], unique=False)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        batch_op.create_index("ix_session_tokens_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_session_tokens_token_hash", ["token_hash"], unique=False)
        batch_op.create_index("ix_session_tokens_expires_at", ["expires_at"], unique=False)
        batch_op.create_index("ix_session_tokens_is_revoked", ["is_revoked"], unique=False)
        batch_op.create_index("ix_session_tokens_user_active", ["user_id", "is_revoked"], unique=False)

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(64), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("payment_terms", sa.String(16), nullable=False, server_default="Net 30"),
        sa.Column("status", sa.String(16), nullable=False, server_default="Active"),
        sa.Column("last_order_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_orders", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "email", name="uq_suppliers_user_email"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("suppliers", schema=None) as batch_op:
        batch_op.create_index("ix_suppliers_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_suppliers_user_name", ["user_id", "name"], unique=False)

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("barcode", sa.String(64), nullable=True),
        sa.Column("category", sa.String(128), nullable=False),
        sa.Column("subcategory", sa.String(128), nullable=True),
        sa.Column("brand", sa.String(128), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("unit_of_measure", sa.String(32), nullable=False, server_default="each"),
        sa.Column("supplier_id", sa.Integer(), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("purchase_price_cents", sa.Integer(), nullable=True),
        sa.Column("tax_rate_bps", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reorder_level", sa.Integer(), nullable=False, server_default=sa.text("5")),
        sa.Column("status", sa.String(16), nullable=False, server_default="Out of Stock"),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("stock >= 0", name="ck_inventory_items_stock_non_negative"),
        sa.CheckConstraint("price_cents >= 0", name="ck_inventory_items_price_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "sku", name="uq_inventory_items_user_sku"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("inventory_items", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_items_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_inventory_items_supplier_id", ["supplier_id"], unique=False)
        batch_op.create_index("ix_inventory_items_user_name", ["user_id", "name"], unique=False)
        batch_op.create_index("ix_inventory_items_user_status", ["user_id", "status"], unique=False)

    op.create_table(
        "receipt_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("next_value", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_receipt_sequences_user"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("receipt_number", sa.String(16), nullable=False),
        sa.Column("receipt_number_value", sa.Integer(), nullable=False),
        sa.Column("subtotal_cents", sa.Integer(), nullable=False),
        sa.Column("discount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("cash_amount_cents", sa.Integer(), nullable=False),
        sa.Column("change_cents", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False, server_default="Walk-in Customer"),
        sa.Column("printed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("total_cents >= 0", name="ck_sales_total_non_negative"),
        sa.CheckConstraint("change_cents >= 0", name="ck_sales_change_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "receipt_number_value", name="uq_sales_user_receipt"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_sales_user_created", ["user_id", "created_at"], unique=False)

    op.create_table(
        "sale_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("line_total_cents", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_sale_lines_quantity_positive"),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["item_id"], ["inventory_items.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sale_lines", schema=None) as batch_op:
        batch_op.create_index("ix_sale_lines_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_sale_lines_item_id", ["item_id"], unique=False)

    op.create_table(
        "cash_drawer_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("previous_balance_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("balance_cents", sa.Integer(), nullable=False),
        sa.Column("operation", sa.String(16), nullable=False),
        sa.Column("reference_type", sa.String(16), nullable=True),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("notes", sa.String(500), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "sequence", name="uq_cash_drawer_entries_user_sequence"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("cash_drawer_entries", schema=None) as batch_op:
        batch_op.create_index("ix_cash_drawer_entries_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_cash_drawer_entries_operation", ["operation"], unique=False)
        batch_op.create_index("ix_cash_drawer_entries_user_occurred", ["user_id", "occurred_at"], unique=False)
        batch_op.create_index("ix_cash_drawer_entries_reference", ["reference_type", "reference_id"], unique=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("expense_number", sa.String(16), nullable=False),
        sa.Column("category", sa.String(128), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=False, server_default="Cash"),
        sa.Column("status", sa.String(16), nullable=False, server_default="Paid"),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("amount_cents > 0", name="ck_expenses_amount_positive"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("expense_number", name="uq_expenses_expense_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("expenses", schema=None) as batch_op:
        batch_op.create_index("ix_expenses_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_expenses_user_occurred", ["user_id", "occurred_at"], unique=False)

    op.create_table(
        "tax_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("tax_number", sa.String(16), nullable=False),
        sa.Column("tax_type", sa.String(32), nullable=False),
        sa.Column("taxable_amount_cents", sa.Integer(), nullable=False),
        sa.Column("tax_rate_bps", sa.Integer(), nullable=False),
        sa.Column("tax_amount_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("payment_status", sa.String(16), nullable=False, server_default="Pending"),
        sa.Column("paid_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_method", sa.String(16), nullable=True),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reference", sa.String(128), nullable=True),
        sa.Column("is_manual_entry", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_final_assessment", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("paid_amount_cents >= 0", name="ck_tax_records_paid_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tax_number", name="uq_tax_records_tax_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("tax_records", schema=None) as batch_op:
        batch_op.create_index("ix_tax_records_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_tax_records_user_period", ["user_id", "period_start", "period_end"], unique=False)

    op.create_table(
        "tax_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("business_type", sa.String(32), nullable=False, server_default="Sole Proprietor"),
        sa.Column("tax_identification_number", sa.String(64), nullable=True),
        sa.Column("national_tax_number", sa.String(64), nullable=True),
        sa.Column("sales_tax_enabled", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("sales_tax_rate_bps", sa.Integer(), nullable=False, server_default=sa.text("1700")),
        sa.Column("sales_tax_included_in_price", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("income_tax_enabled", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("use_default_tax_slabs", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("custom_tax_slabs", sa.JSON(), nullable=False),
        sa.Column("zakat_enabled", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("zakat_calculation_type", sa.String(16), nullable=False, server_default="Automatic"),
        sa.Column("zakat_rate_bps", sa.Integer(), nullable=False, server_default=sa.text("250")),
        sa.Column("income_tax_filing_period", sa.String(16), nullable=False, server_default="Annually"),
        sa.Column("sales_tax_filing_period", sa.String(16), nullable=False, server_default="Monthly"),
        sa.Column("zakat_filing_period", sa.String(16), nullable=False, server_default="Annually"),
        sa.Column("enable_tax_reminders", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("reminder_days", sa.Integer(), nullable=False, server_default=sa.text("7")),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_tax_settings_user"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "business_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("tax_id", sa.String(64), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("business_hours", sa.String(255), nullable=True),
        sa.Column("receipt_header", sa.Text(), nullable=True),
        sa.Column("receipt_footer", sa.Text(), nullable=False, server_default="Thank you for your business!"),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_business_settings_user"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("business_settings")
    op.drop_table("tax_settings")
    op.drop_table("tax_records")
    op.drop_table("expenses")
    op.drop_table("cash_drawer_entries")
    op.drop_table("sale_lines")
    op.drop_table("sales")
    op.drop_table("receipt_sequences")
    op.drop_table("inventory_items")
    op.drop_table("suppliers")
    op.drop_table("session_tokens")
    op.drop_table("users")
