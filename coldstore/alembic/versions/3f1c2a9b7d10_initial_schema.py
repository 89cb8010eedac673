"""initial coldstore schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-17 09:12:41.208331
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Les enums sont stockés par nom de membre (défaut SQLAlchemy)
role = sa.Enum("super_admin", "admin", "employee", name="role")
temperature_zone = sa.Enum("frozen", "chilled", "ambient", name="temperature_zone")
# deuxième table : le type existe déjà
temperature_zone_existing = postgresql.ENUM("frozen", "chilled", "ambient", name="temperature_zone", create_type=False)
movement_type = sa.Enum(
    "receipt", "pick", "adjustment", "transfer", "return_", "disposal", name="movement_type"
)
inbound_status = sa.Enum("pending", "receiving", "completed", "cancelled", name="inbound_status")
outbound_status = sa.Enum(
    "pending", "picking", "packed", "dispatched", "cancelled", name="outbound_status"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("role", role, nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("contact_name", sa.String(200)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(50)),
        sa.Column("address", sa.String(500)),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("contact_person", sa.String(100)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(50)),
        sa.Column("address", sa.String(500)),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("sku", sa.String(50), nullable=False, unique=True),
        sa.Column("barcode", sa.String(100), unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("category", sa.String(100)),
        sa.Column("temperature_zone", temperature_zone, nullable=False),
        sa.Column("shelf_life_days", sa.Integer(), nullable=False),
        sa.Column("min_stock_level", sa.Integer(), nullable=False),
        sa.Column("max_stock_level", sa.Integer()),
        sa.Column("unit", sa.String(20), nullable=False),
        sa.Column("weight_per_unit", sa.Numeric(10, 2)),
        sa.Column("units_per_box", sa.Integer()),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("shelf_life_days > 0", name="ck_product_shelf_life_pos"),
        sa.CheckConstraint("min_stock_level >= 0", name="ck_product_min_stock_nonneg"),
    )

    op.create_table(
        "storage_locations",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("zone", sa.String(100), nullable=False),
        sa.Column("section", sa.String(50)),
        sa.Column("rack", sa.String(50)),
        sa.Column("shelf", sa.String(50)),
        sa.Column("temperature_zone", temperature_zone_existing, nullable=False),
        sa.Column("capacity", sa.Integer()),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "inventory",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column(
            "location_id", sa.BigInteger(), sa.ForeignKey("storage_locations.id", ondelete="RESTRICT"), nullable=False
        ),
        sa.Column("batch_number", sa.String(100), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("received_date", sa.Date(), nullable=False),
        sa.Column("temperature_on_receipt", sa.Float()),
        *_timestamps(),
        sa.UniqueConstraint("product_id", "location_id", "batch_number", name="uq_inventory_product_location_batch"),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_qty_nonneg"),
    )
    op.create_index("ix_inventory_product_id", "inventory", ["product_id"])
    op.create_index("ix_inventory_batch_number", "inventory", ["batch_number"])
    op.create_index("ix_inventory_expiry_date", "inventory", ["expiry_date"])

    op.create_table(
        "inbound_orders",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False, unique=True),
        sa.Column("supplier_id", sa.BigInteger(), sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", inbound_status, nullable=False),
        sa.Column("expected_date", sa.Date()),
        sa.Column("received_date", sa.DateTime(timezone=True)),
        sa.Column("received_by", sa.String(100)),
        sa.Column("driver_name", sa.String(100)),
        sa.Column("plate_number", sa.String(50)),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "inbound_order_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "inbound_order_id",
            sa.BigInteger(),
            sa.ForeignKey("inbound_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("expected_quantity", sa.Integer(), nullable=False),
        sa.Column("received_quantity", sa.Integer(), nullable=False),
        sa.Column("batch_number", sa.String(100)),
        sa.Column("expiry_date", sa.Date()),
        sa.Column("temperature_on_receipt", sa.Float()),
        sa.Column("location_id", sa.BigInteger(), sa.ForeignKey("storage_locations.id", ondelete="SET NULL")),
        sa.Column("unit_price", sa.Numeric(10, 2)),
        sa.Column("notes", sa.Text()),
        sa.CheckConstraint("expected_quantity > 0", name="ck_inbound_item_expected_pos"),
        sa.CheckConstraint("received_quantity >= 0", name="ck_inbound_item_received_nonneg"),
    )
    op.create_index("ix_inbound_order_items_inbound_order_id", "inbound_order_items", ["inbound_order_id"])

    op.create_table(
        "outbound_orders",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False, unique=True),
        sa.Column("customer_id", sa.BigInteger(), sa.ForeignKey("customers.id", ondelete="SET NULL")),
        sa.Column("delivery_address", sa.String(500)),
        sa.Column("status", outbound_status, nullable=False),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("dispatch_date", sa.DateTime(timezone=True)),
        sa.Column("dr_number", sa.String(32), unique=True),
        sa.Column("prepared_by", sa.String(100)),
        sa.Column("received_by_customer", sa.String(100)),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_outbound_orders_status", "outbound_orders", ["status"])

    op.create_table(
        "outbound_order_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "outbound_order_id",
            sa.BigInteger(),
            sa.ForeignKey("outbound_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("requested_quantity", sa.Integer(), nullable=False),
        sa.Column("picked_quantity", sa.Integer(), nullable=False),
        sa.Column("box_quantity", sa.Integer()),
        sa.Column("weight_kilos", sa.Numeric(10, 2)),
        sa.Column("unit_price", sa.Numeric(10, 2)),
        sa.Column("total_amount", sa.Numeric(12, 2)),
        sa.Column("batch_number", sa.String(100)),
        sa.Column("expiry_date", sa.Date()),
        sa.Column("notes", sa.Text()),
        sa.CheckConstraint("requested_quantity > 0", name="ck_outbound_item_requested_pos"),
        sa.CheckConstraint("picked_quantity >= 0", name="ck_outbound_item_picked_nonneg"),
    )
    op.create_index("ix_outbound_order_items_outbound_order_id", "outbound_order_items", ["outbound_order_id"])
    op.create_index("ix_outbound_order_items_product_id", "outbound_order_items", ["product_id"])

    op.create_table(
        "outbound_picks",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "item_id",
            sa.BigInteger(),
            sa.ForeignKey("outbound_order_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("lot_id", sa.BigInteger(), sa.ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_outbound_pick_qty_nonneg"),
    )
    op.create_index("ix_outbound_picks_item_id", "outbound_picks", ["item_id"])

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("type", movement_type, nullable=False),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("batch_number", sa.String(100)),
        sa.Column("from_location_id", sa.BigInteger(), sa.ForeignKey("storage_locations.id", ondelete="SET NULL")),
        sa.Column("to_location_id", sa.BigInteger(), sa.ForeignKey("storage_locations.id", ondelete="SET NULL")),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(255)),
        sa.Column("reference_number", sa.String(128)),
        sa.Column("moved_by_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("idempotency_key", sa.String(64), unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_stock_movement_qty_pos"),
    )
    op.create_index("ix_stock_movements_product_id", "stock_movements", ["product_id"])
    op.create_index("ix_stock_movements_product_time", "stock_movements", ["product_id", "created_at"])


def downgrade() -> None:
    op.drop_table("stock_movements")
    op.drop_table("outbound_picks")
    op.drop_table("outbound_order_items")
    op.drop_table("outbound_orders")
    op.drop_table("inbound_order_items")
    op.drop_table("inbound_orders")
    op.drop_table("inventory")
    op.drop_table("storage_locations")
    op.drop_table("products")
    op.drop_table("customers")
    op.drop_table("suppliers")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (outbound_status, inbound_status, movement_type, temperature_zone, role):
        enum.drop(bind, checkfirst=True)
