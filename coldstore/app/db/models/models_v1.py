from __future__ import annotations

from datetime import datetime, date, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Date,
    Boolean,
    Float,
    ForeignKey,
    Numeric,
    Text,
    Enum,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coldstore.app.db.base import Base, BigIntPK
from coldstore.app.db.models.core_types import (
    Role,
    TemperatureZone,
    MovementType,
    InboundStatus,
    OutboundStatus,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- AUTH ----------
class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role, name="role"), default=Role.employee, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


# ---------- MASTER DATA ----------
class Supplier(Base):
    __tablename__ = "suppliers"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_name: Mapped[str | None] = mapped_column(String(200))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(String(500))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class Customer(Base):
    __tablename__ = "customers"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(100))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(String(500))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    sku: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    barcode: Mapped[str | None] = mapped_column(String(100), unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(100))
    temperature_zone: Mapped[TemperatureZone] = mapped_column(
        Enum(TemperatureZone, name="temperature_zone"), nullable=False
    )
    shelf_life_days: Mapped[int] = mapped_column(Integer, nullable=False)
    min_stock_level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_stock_level: Mapped[int | None] = mapped_column(Integer)
    unit: Mapped[str] = mapped_column(String(20), default="pcs", nullable=False)
    weight_per_unit: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    units_per_box: Mapped[int | None] = mapped_column(Integer)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("shelf_life_days > 0", name="ck_product_shelf_life_pos"),
        CheckConstraint("min_stock_level >= 0", name="ck_product_min_stock_nonneg"),
    )


class StorageLocation(Base):
    __tablename__ = "storage_locations"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    zone: Mapped[str] = mapped_column(String(100), nullable=False)
    section: Mapped[str | None] = mapped_column(String(50))
    rack: Mapped[str | None] = mapped_column(String(50))
    shelf: Mapped[str | None] = mapped_column(String(50))
    temperature_zone: Mapped[TemperatureZone] = mapped_column(
        Enum(TemperatureZone, name="temperature_zone"), nullable=False
    )
    capacity: Mapped[int | None] = mapped_column(Integer)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# ---------- INVENTORY ----------
class InventoryLot(Base):
    __tablename__ = "inventory"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    location_id: Mapped[int] = mapped_column(ForeignKey("storage_locations.id", ondelete="RESTRICT"), nullable=False)
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    received_date: Mapped[date] = mapped_column(Date, nullable=False)
    temperature_on_receipt: Mapped[float | None] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    product: Mapped[Product] = relationship()
    location: Mapped[StorageLocation] = relationship()

    __table_args__ = (
        UniqueConstraint("product_id", "location_id", "batch_number", name="uq_inventory_product_location_batch"),
        CheckConstraint("quantity >= 0", name="ck_inventory_qty_nonneg"),
    )


# ---------- INBOUND ----------
class InboundOrder(Base):
    __tablename__ = "inbound_orders"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False)
    status: Mapped[InboundStatus] = mapped_column(
        Enum(InboundStatus, name="inbound_status"),
        default=InboundStatus.pending,
        nullable=False,
    )
    expected_date: Mapped[date | None] = mapped_column(Date)
    received_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    received_by: Mapped[str | None] = mapped_column(String(100))
    driver_name: Mapped[str | None] = mapped_column(String(100))
    plate_number: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)
    created_by_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    supplier: Mapped[Supplier] = relationship()
    created_by: Mapped[User] = relationship()
    items: Mapped[list["InboundOrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="InboundOrderItem.id"
    )


class InboundOrderItem(Base):
    __tablename__ = "inbound_order_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    inbound_order_id: Mapped[int] = mapped_column(
        ForeignKey("inbound_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    expected_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    received_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    batch_number: Mapped[str | None] = mapped_column(String(100))
    expiry_date: Mapped[date | None] = mapped_column(Date)
    temperature_on_receipt: Mapped[float | None] = mapped_column(Float)
    location_id: Mapped[int | None] = mapped_column(ForeignKey("storage_locations.id", ondelete="SET NULL"))
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    notes: Mapped[str | None] = mapped_column(Text)

    order: Mapped[InboundOrder] = relationship(back_populates="items")
    product: Mapped[Product] = relationship()
    location: Mapped[StorageLocation | None] = relationship()

    __table_args__ = (
        CheckConstraint("expected_quantity > 0", name="ck_inbound_item_expected_pos"),
        CheckConstraint("received_quantity >= 0", name="ck_inbound_item_received_nonneg"),
    )


# ---------- OUTBOUND ----------
class OutboundOrder(Base):
    __tablename__ = "outbound_orders"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    customer_id: Mapped[int | None] = mapped_column(ForeignKey("customers.id", ondelete="SET NULL"))
    delivery_address: Mapped[str | None] = mapped_column(String(500))
    status: Mapped[OutboundStatus] = mapped_column(
        Enum(OutboundStatus, name="outbound_status"),
        default=OutboundStatus.pending,
        nullable=False,
        index=True,
    )
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    dispatch_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    dr_number: Mapped[str | None] = mapped_column(String(32), unique=True)
    prepared_by: Mapped[str | None] = mapped_column(String(100))
    received_by_customer: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)
    created_by_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    customer: Mapped[Customer | None] = relationship()
    created_by: Mapped[User] = relationship()
    items: Mapped[list["OutboundOrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OutboundOrderItem.id"
    )


class OutboundOrderItem(Base):
    __tablename__ = "outbound_order_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    outbound_order_id: Mapped[int] = mapped_column(
        ForeignKey("outbound_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    requested_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    picked_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    box_quantity: Mapped[int | None] = mapped_column(Integer)
    weight_kilos: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    batch_number: Mapped[str | None] = mapped_column(String(100))
    expiry_date: Mapped[date | None] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)

    order: Mapped[OutboundOrder] = relationship(back_populates="items")
    product: Mapped[Product] = relationship()
    picks: Mapped[list["OutboundPick"]] = relationship(
        back_populates="item", cascade="all, delete-orphan", order_by="OutboundPick.id"
    )

    __table_args__ = (
        CheckConstraint("requested_quantity > 0", name="ck_outbound_item_requested_pos"),
        CheckConstraint("picked_quantity >= 0", name="ck_outbound_item_picked_nonneg"),
    )


class OutboundPick(Base):
    """Lot allocation behind an outbound item's picked quantity."""

    __tablename__ = "outbound_picks"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    item_id: Mapped[int] = mapped_column(
        ForeignKey("outbound_order_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lot_id: Mapped[int] = mapped_column(ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    item: Mapped[OutboundOrderItem] = relationship(back_populates="picks")
    lot: Mapped[InventoryLot] = relationship()

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_outbound_pick_qty_nonneg"),)


# ---------- MOVEMENTS ----------
class StockMovement(Base):
    __tablename__ = "stock_movements"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    type: Mapped[MovementType] = mapped_column(Enum(MovementType, name="movement_type"), nullable=False)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    batch_number: Mapped[str | None] = mapped_column(String(100))
    from_location_id: Mapped[int | None] = mapped_column(ForeignKey("storage_locations.id", ondelete="SET NULL"))
    to_location_id: Mapped[int | None] = mapped_column(ForeignKey("storage_locations.id", ondelete="SET NULL"))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255))
    reference_number: Mapped[str | None] = mapped_column(String(128))
    moved_by_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)

    idempotency_key: Mapped[str | None] = mapped_column(String(64), unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    product: Mapped[Product] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movement_qty_pos"),
        Index("ix_stock_movements_product_time", "product_id", "created_at"),
    )
