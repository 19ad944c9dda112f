"""initial schema

Revision ID: 4f2c9a1d7e30
Revises:
Create Date: 2026-10-19 09:12:44.201837

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op
from housespend.services.category_service import DEFAULT_CATEGORIES

# revision identifiers, used by Alembic.
revision: str = "4f2c9a1d7e30"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("is_admin", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"])
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    categories = op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.String(length=500), server_default="", nullable=False),
        sa.Column("color", sa.String(length=7), server_default="#3B82F6", nullable=False),
    )
    op.create_index(op.f("ix_categories_id"), "categories", ["id"])

    op.create_table(
        "app_config",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(length=100), nullable=False, unique=True),
        sa.Column("value", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index(op.f("ix_app_config_id"), "app_config", ["id"])

    op.create_table(
        "receipts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("store_name", sa.String(length=255), nullable=True),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("image_data", sa.LargeBinary(), nullable=True),
        sa.Column("image_content_type", sa.String(length=100), nullable=True),
        sa.Column("is_analyzed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="uploaded", nullable=False),
        sa.Column("analysis_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("analysis_error", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index(op.f("ix_receipts_id"), "receipts", ["id"])
    op.create_index(op.f("ix_receipts_user_id"), "receipts", ["user_id"])

    op.create_table(
        "line_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "receipt_id",
            sa.Integer(),
            sa.ForeignKey("receipts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("quantity", sa.Numeric(18, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(18, 2), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_discount", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f("ix_line_items_id"), "line_items", ["id"])
    op.create_index(op.f("ix_line_items_receipt_id"), "line_items", ["receipt_id"])

    op.create_table(
        "stock_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("product_name", sa.String(length=500), nullable=False),
        sa.Column("normalized_name", sa.String(length=500), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("current_quantity", sa.Numeric(18, 3), server_default="0", nullable=False),
        sa.Column("unit", sa.String(length=50), server_default="unidad", nullable=False),
        sa.Column("min_quantity", sa.Numeric(18, 3), nullable=True),
        sa.Column("max_quantity", sa.Numeric(18, 3), nullable=True),
        sa.Column(
            "last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "normalized_name", name="uq_stock_user_normalized_name"),
    )
    op.create_index(op.f("ix_stock_items_id"), "stock_items", ["id"])
    op.create_index(op.f("ix_stock_items_user_id"), "stock_items", ["user_id"])

    op.create_table(
        "stock_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "stock_item_id",
            sa.Integer(),
            sa.ForeignKey("stock_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "receipt_id",
            sa.Integer(),
            sa.ForeignKey("receipts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("transaction_type", sa.String(length=20), nullable=False),
        sa.Column("quantity", sa.Numeric(18, 3), nullable=False),
        sa.Column(
            "occurred_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index(op.f("ix_stock_transactions_id"), "stock_transactions", ["id"])
    op.create_index(
        op.f("ix_stock_transactions_stock_item_id"), "stock_transactions", ["stock_item_id"]
    )
    op.create_index(op.f("ix_stock_transactions_receipt_id"), "stock_transactions", ["receipt_id"])
    op.create_index(
        op.f("ix_stock_transactions_occurred_at"), "stock_transactions", ["occurred_at"]
    )

    # Reference data
    op.bulk_insert(
        categories,
        [
            {"name": name, "description": description, "color": color}
            for name, description, color in DEFAULT_CATEGORIES
        ],
    )


def downgrade() -> None:
    op.drop_table("stock_transactions")
    op.drop_table("stock_items")
    op.drop_table("line_items")
    op.drop_table("receipts")
    op.drop_table("app_config")
    op.drop_table("categories")
    op.drop_table("users")
