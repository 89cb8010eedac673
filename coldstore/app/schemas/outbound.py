from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coldstore.app.db.models.core_types import OutboundStatus
from coldstore.app.schemas.common import OptionalText, unique_item_ids
from coldstore.app.schemas.customer import CustomerRead
from coldstore.app.schemas.product import ProductBrief


class OutboundItemCreate(BaseModel):
    product_id: int
    requested_quantity: int = Field(ge=1)
    box_quantity: int | None = Field(default=None, ge=0)
    weight_kilos: Decimal | None = Field(default=None, ge=0)
    unit_price: Decimal | None = Field(default=None, ge=0)
    notes: OptionalText = Field(default=None, max_length=500)


class OutboundOrderCreate(BaseModel):
    customer_id: int
    delivery_address: OptionalText = Field(default=None, max_length=500)
    notes: OptionalText = Field(default=None, max_length=1000)
    items: list[OutboundItemCreate] = Field(min_length=1)


class OutboundOrderUpdate(BaseModel):
    customer_id: int | None = None
    delivery_address: OptionalText = Field(default=None, max_length=500)
    status: OutboundStatus | None = None
    prepared_by: OptionalText = Field(default=None, max_length=100)
    received_by_customer: OptionalText = Field(default=None, max_length=100)
    notes: OptionalText = Field(default=None, max_length=1000)


class DispatchItem(BaseModel):
    item_id: int
    picked_quantity: int = Field(ge=0)
    box_quantity: int | None = Field(default=None, ge=0)
    weight_kilos: Decimal | None = Field(default=None, ge=0)
    batch_number: OptionalText = Field(default=None, max_length=100)
    expiry_date: date | None = None


class DispatchPayload(BaseModel):
    prepared_by: str = Field(min_length=1, max_length=100)
    items: list[DispatchItem] = Field(min_length=1)

    @field_validator("items")
    @classmethod
    def check_unique_items(cls, items):
        return unique_item_ids(items)


class AmendItem(BaseModel):
    item_id: int
    new_picked_quantity: int = Field(ge=0)
    new_box_quantity: int | None = Field(default=None, ge=0)
    new_weight_kilos: Decimal | None = Field(default=None, ge=0)
    reason: OptionalText = Field(default=None, max_length=255)


class AmendPayload(BaseModel):
    items: list[AmendItem] = Field(min_length=1)
    amendment_notes: str = Field(min_length=1, max_length=1000)

    @field_validator("items")
    @classmethod
    def check_unique_items(cls, items):
        return unique_item_ids(items)


class OutboundItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product: ProductBrief
    requested_quantity: int
    picked_quantity: int
    box_quantity: int | None
    weight_kilos: float | None
    unit_price: float | None
    total_amount: float | None
    batch_number: str | None
    expiry_date: date | None
    notes: str | None


class OutboundOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    customer_id: int | None
    customer: CustomerRead | None
    delivery_address: str | None
    status: OutboundStatus
    order_date: datetime
    dispatch_date: datetime | None
    dr_number: str | None
    prepared_by: str | None
    received_by_customer: str | None
    notes: str | None
    created_by_id: int
    created_at: datetime
    items: list[OutboundItemRead]
