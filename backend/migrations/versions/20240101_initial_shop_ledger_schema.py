"""Initial shop ledger schema: products, bills, bill_items, monthly_snapshots

Revision ID: 20240101_initial
Revises:
Create Date: 2024-01-01
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20240101_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("purchase_price_cents", sa.Integer(), nullable=False),
        sa.Column("manual_price_cents", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_products_name", "products", ["name"])

    op.create_table(
        "bills",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.CheckConstraint("status IN ('PAID', 'PARTIAL', 'RETURNED')", name="ck_bills_status"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_bills_created_at", "bills", ["created_at"])
    op.create_index("ix_bills_status", "bills", ["status"])

    # product_id is a weak reference: no foreign key to products
    op.create_table(
        "bill_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("bill_id", sa.Integer(), sa.ForeignKey("bills.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("purchase_price_cents", sa.Integer(), nullable=False),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("returned_quantity", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "returned_quantity >= 0 AND returned_quantity <= quantity",
            name="ck_bill_items_returned_quantity",
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_bill_items_bill_id", "bill_items", ["bill_id"])
    op.create_index("ix_bill_items_product_id", "bill_items", ["product_id"])

    op.create_table(
        "monthly_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("total_sales_cents", sa.Integer(), nullable=False),
        sa.Column("total_profit_cents", sa.Integer(), nullable=False),
        sa.Column("total_returns_cents", sa.Integer(), nullable=False),
        sa.Column("saved_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("month", "year", name="uq_monthly_snapshots_period"),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_monthly_snapshots_month"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("monthly_snapshots")
    op.drop_index("ix_bill_items_product_id", table_name="bill_items")
    op.drop_index("ix_bill_items_bill_id", table_name="bill_items")
    op.drop_table("bill_items")
    op.drop_index("ix_bills_status", table_name="bills")
    op.drop_index("ix_bills_created_at", table_name="bills")
    op.drop_table("bills")
    op.drop_index("ix_products_name", table_name="products")
    op.drop_table("products")
