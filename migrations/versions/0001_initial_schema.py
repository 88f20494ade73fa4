"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00
"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("MANAGER", "CASHIER", name="userrole")
payment_method = sa.Enum("cash", "card", "mobile", "other", name="payment_method")
payment_status = sa.Enum("pending", "partial", "completed", "failed", "refunded", name="payment_status")


def _scope_columns():
    return [
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("manager_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("cashier_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("device_id", sa.String(100), nullable=False),
    ]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _scope_indexes(table: str) -> None:
    for column in ("user_id", "manager_id", "cashier_id"):
        op.create_index(f"ix_{table}_{column}", table, [column])


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(200), nullable=True, unique=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("business_name", sa.String(200), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("manager_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("first_day_of_week", sa.Integer(), nullable=True),
        *_timestamps()
    )
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_manager_id", "users", ["manager_id"])

    op.create_table(
        "items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("price", sa.Numeric(15, 2), nullable=False),
        sa.Column("cost", sa.Numeric(15, 2), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("brand", sa.String(100), nullable=True),
        sa.Column("sku", sa.String(50), nullable=True, unique=True),
        sa.Column("barcode", sa.String(50), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("min_stock", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_scope_columns(),
        *_timestamps(),
        sa.CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),
        sa.CheckConstraint("min_stock >= 0", name="ck_items_min_stock_non_negative")
    )
    for column in ("name", "category", "barcode", "is_active"):
        op.create_index(f"ix_items_{column}", "items", [column])
    _scope_indexes("items")

    op.create_table(
        "sales",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("receipt_number", sa.String(50), nullable=False),
        sa.Column("subtotal", sa.Numeric(15, 2), nullable=False),
        sa.Column("tax", sa.Numeric(15, 2), nullable=False),
        sa.Column("discount", sa.Numeric(15, 2), nullable=False),
        sa.Column("total", sa.Numeric(15, 2), nullable=False),
        sa.Column("payment_method", payment_method, nullable=False),
        sa.Column("payment_status", payment_status, nullable=False),
        sa.Column("paid_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("change", sa.Numeric(15, 2), nullable=False),
        sa.Column("customer_name", sa.String(200), nullable=True),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column("customer_email", sa.String(200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sale_date", sa.DateTime(), nullable=False),
        *_scope_columns(),
        *_timestamps(),
        sa.CheckConstraint("paid_amount >= 0", name="ck_sales_paid_amount_non_negative"),
        sa.CheckConstraint("change >= 0", name="ck_sales_change_non_negative"),
        sa.UniqueConstraint("manager_id", "receipt_number", name="uq_sales_manager_receipt")
    )
    for column in ("receipt_number", "payment_status", "sale_date"):
        op.create_index(f"ix_sales_{column}", "sales", [column])
    _scope_indexes("sales")

    op.create_table(
        "sale_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("sale_id", sa.Uuid(), sa.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("items.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("price", sa.Numeric(15, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("subtotal", sa.Numeric(15, 2), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_sale_items_quantity_positive")
    )
    op.create_index("ix_sale_items_sale_id", "sale_items", ["sale_id"])
    op.create_index("ix_sale_items_item_id", "sale_items", ["item_id"])


def downgrade() -> None:
    op.drop_table("sale_items")
    op.drop_table("sales")
    op.drop_table("items")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (payment_status, payment_method, user_role):
        enum_type.drop(bind, checkfirst=True)
