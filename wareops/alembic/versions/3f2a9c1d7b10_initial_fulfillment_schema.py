"""initial fulfillment schema

Revision ID: 3f2a9c1d7b10
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ORDER_STATUS = sa.Enum(
    "processing",
    "awaiting_purchase",
    "partially_fulfilled",
    "ready_for_issuance",
    "fulfilled",
    "shipped",
    "cancelled",
    name="order_status",
)
ORDER_LINE_STATUS = sa.Enum(
    "issued", "awaiting_purchase", "ready_for_issuance", "fulfilled", name="order_line_status"
)
BACKORDER_STATUS = sa.Enum("pending", "fulfilled", name="backorder_status")
PO_STATUS = sa.Enum("pending", "shipped", "received", "cancelled", name="po_status")


def _tz() -> sa.DateTime:
    return sa.DateTime(timezone=True)


def upgrade() -> None:
    # ---------- MASTER DATA ----------
    op.create_table(
        "clients",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("project_name", sa.String(255)),
        sa.Column("address", sa.Text()),
        sa.Column("created_at", _tz(), nullable=False),
    )
    op.create_table(
        "suppliers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("country", sa.String(2)),
        sa.Column("lead_time_days", sa.Integer(), nullable=False, server_default="14"),
        sa.Column("created_at", _tz(), nullable=False),
        sa.CheckConstraint("lead_time_days >= 0", name="ck_supplier_lead_time_nonneg"),
    )
    op.create_table(
        "products",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("sku", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reorder_limit", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_stock_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location", sa.String(128)),
        sa.Column("supplier_id", sa.BigInteger(), sa.ForeignKey("suppliers.id", ondelete="SET NULL")),
        sa.Column("last_updated", _tz(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint("stock >= 0", name="ck_product_stock_nonneg"),
        sa.CheckConstraint("price >= 0", name="ck_product_price_nonneg"),
    )

    # ---------- INVENTORY ----------
    op.create_table(
        "stock_history",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "product_id",
            sa.BigInteger(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(255), nullable=False),
        sa.Column("timestamp", _tz(), nullable=False),
        sa.CheckConstraint("stock >= 0", name="ck_stock_history_stock_nonneg"),
    )
    op.create_index("ix_stock_history_product_time", "stock_history", ["product_id", "timestamp"])

    # ---------- SALES ----------
    op.create_table(
        "orders",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "client_id",
            sa.BigInteger(),
            sa.ForeignKey("clients.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        ),
        sa.Column("date", _tz(), nullable=False),
        sa.Column("status", ORDER_STATUS, nullable=False, index=True),
        sa.Column("total", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("purpose", sa.Text()),
        sa.Column("reordered_from", sa.BigInteger(), sa.ForeignKey("orders.id", ondelete="SET NULL")),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_table(
        "order_lines",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "order_id",
            sa.BigInteger(),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.Column("qty_issued", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("qty_backordered", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", ORDER_LINE_STATUS, nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_order_line_qty_pos"),
        sa.CheckConstraint("qty_issued >= 0 AND qty_issued <= quantity", name="ck_order_line_issued_range"),
        sa.CheckConstraint("qty_backordered >= 0", name="ck_order_line_backordered_nonneg"),
    )
    op.create_table(
        "issuances",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("issuance_number", sa.String(64), nullable=False, unique=True),
        sa.Column("client_id", sa.BigInteger(), sa.ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("date", _tz(), nullable=False),
        sa.Column(
            "order_id",
            sa.BigInteger(),
            sa.ForeignKey("orders.id", ondelete="RESTRICT"),
            index=True,
        ),
        sa.Column("issued_by", sa.String(200), nullable=False),
        sa.Column("received_by", sa.String(200)),
        sa.Column("remarks", sa.Text()),
    )
    op.create_table(
        "issuance_lines",
        sa.Column(
            "issuance_id",
            sa.BigInteger(),
            sa.ForeignKey("issuances.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "product_id",
            sa.BigInteger(),
            sa.ForeignKey("products.id", ondelete="RESTRICT"),
            primary_key=True,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_issuance_line_qty_pos"),
    )

    # ---------- PROCUREMENT / INBOUND ----------
    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("po_number", sa.String(64), nullable=False, unique=True),
        sa.Column("supplier_id", sa.BigInteger(), sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", PO_STATUS, nullable=False),
        sa.Column("order_date", _tz(), nullable=False),
        sa.Column("expected_date", sa.Date()),
        sa.Column("received_date", _tz()),
        sa.Column("total", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_table(
        "purchase_order_lines",
        sa.Column(
            "po_id",
            sa.BigInteger(),
            sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "product_id",
            sa.BigInteger(),
            sa.ForeignKey("products.id", ondelete="RESTRICT"),
            primary_key=True,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(14, 2), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_po_line_qty_pos"),
        sa.CheckConstraint("unit_cost >= 0", name="ck_po_line_unit_cost_nonneg"),
    )

    op.create_table(
        "backorders",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("order_id", sa.BigInteger(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("client_id", sa.BigInteger(), sa.ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("date", _tz(), nullable=False),
        sa.Column("status", BACKORDER_STATUS, nullable=False),
        sa.Column(
            "purchase_order_id",
            sa.BigInteger(),
            sa.ForeignKey("purchase_orders.id", ondelete="SET NULL"),
            index=True,
        ),
        sa.Column("issuance_id", sa.BigInteger(), sa.ForeignKey("issuances.id", ondelete="SET NULL")),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.UniqueConstraint("order_id", "product_id", name="uq_backorder_order_product"),
        sa.CheckConstraint("quantity > 0", name="ck_backorder_qty_pos"),
    )
    op.create_index("ix_backorders_status", "backorders", ["status"])

    # ---------- ACTIVITY ----------
    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False, index=True),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("details", sa.Text()),
        sa.Column("href", sa.String(255)),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", _tz(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_index("ix_backorders_status", table_name="backorders")
    op.drop_table("backorders")
    op.drop_table("purchase_order_lines")
    op.drop_table("purchase_orders")
    op.drop_table("issuance_lines")
    op.drop_table("issuances")
    op.drop_table("order_lines")
    op.drop_table("orders")
    op.drop_index("ix_stock_history_product_time", table_name="stock_history")
    op.drop_table("stock_history")
    op.drop_table("products")
    op.drop_table("suppliers")
    op.drop_table("clients")

    bind = op.get_bind()
    for enum_type in (PO_STATUS, BACKORDER_STATUS, ORDER_LINE_STATUS, ORDER_STATUS):
        enum_type.drop(bind, checkfirst=True)
