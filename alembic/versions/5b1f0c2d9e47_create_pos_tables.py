"""create_pos_tables

Revision ID: 5b1f0c2d9e47
Revises:
Create Date: 2026-10-19 10:12:44.518203
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1f0c2d9e47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # PRODUCTS
    op.create_table(
        "products",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("buy_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("sell_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("barcode", sa.String(), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("buy_price >= 0", name="ck_products_buy_price_non_negative"),
        sa.CheckConstraint("sell_price >= 0", name="ck_products_sell_price_non_negative"),
        sa.CheckConstraint("sell_price >= buy_price", name="ck_products_sell_not_below_buy"),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )
    op.create_index("idx_products_category", "products", ["category"])
    op.create_index("idx_products_name", "products", ["name"])
    op.create_index("idx_products_barcode", "products", ["barcode"])
    op.create_index("idx_products_buy_price", "products", ["buy_price"])
    op.create_index("idx_products_sell_price", "products", ["sell_price"])

    # SALES
    op.create_table(
        "sales",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("tax", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("discount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("final_total", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(), nullable=False),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("customer_phone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("total >= 0", name="ck_sales_total_non_negative"),
        sa.CheckConstraint("tax >= 0", name="ck_sales_tax_non_negative"),
        sa.CheckConstraint("discount >= 0", name="ck_sales_discount_non_negative"),
        sa.CheckConstraint("final_total >= 0", name="ck_sales_final_total_non_negative"),
        sa.CheckConstraint(
            "payment_method IN ('cash', 'card', 'transfer')",
            name="ck_sales_payment_method_valid",
        ),
    )
    op.create_index("idx_sales_created_at", "sales", ["created_at"])
    op.create_index("idx_sales_payment_method", "sales", ["payment_method"])

    # SALE ITEMS
    op.create_table(
        "sale_items",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "sale_id",
            sa.String(),
            sa.ForeignKey("sales.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.String(),
            sa.ForeignKey("products.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        sa.CheckConstraint("unit_price >= 0", name="ck_sale_items_unit_price_non_negative"),
        sa.CheckConstraint("total_price >= 0", name="ck_sale_items_total_price_non_negative"),
    )
    op.create_index("idx_sale_items_sale_id", "sale_items", ["sale_id"])
    op.create_index("idx_sale_items_product_id", "sale_items", ["product_id"])

    # CUSTOMERS
    op.create_table(
        "customers",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False, unique=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_customers_phone", "customers", ["phone"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("idx_customers_phone", table_name="customers")
    op.drop_table("customers")

    op.drop_index("idx_sale_items_product_id", table_name="sale_items")
    op.drop_index("idx_sale_items_sale_id", table_name="sale_items")
    op.drop_table("sale_items")

    op.drop_index("idx_sales_payment_method", table_name="sales")
    op.drop_index("idx_sales_created_at", table_name="sales")
    op.drop_table("sales")

    op.drop_index("idx_products_sell_price", table_name="products")
    op.drop_index("idx_products_buy_price", table_name="products")
    op.drop_index("idx_products_barcode", table_name="products")
    op.drop_index("idx_products_name", table_name="products")
    op.drop_index("idx_products_category", table_name="products")
    op.drop_table("products")
