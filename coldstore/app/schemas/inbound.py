from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coldstore.app.db.models.core_types import InboundStatus
from coldstore.app.schemas.common import OptionalText, unique_item_ids
from coldstore.app.schemas.product import ProductBrief
from coldstore.app.schemas.supplier import SupplierRead


class InboundItemCreate(BaseModel):
    product_id: int
    expected_quantity: int = Field(ge=1)
    batch_number: OptionalText = Field(default=None, max_length=100)
    expiry_date: date | None = None
    location_id: int | None = None
    unit_price: Decimal | None = Field(default=None, ge=0)
    notes: OptionalText = Field(default=None, max_length=500)


class InboundOrderCreate(BaseModel):
    supplier_id: int
    expected_date: date | None = None
    received_by: OptionalText = Field(default=None, max_length=100)
    driver_name: OptionalText = Field(default=None, max_length=100)
    plate_number: OptionalText = Field(default=None, max_length=50)
    notes: OptionalText = Field(default=None, max_length=1000)
    items: list[InboundItemCreate] = Field(min_length=1)


class InboundOrderUpdate(BaseModel):
    supplier_id: int | None = None
    expected_date: date | None = None
    received_by: OptionalText = Field(default=None, max_length=100)
    driver_name: OptionalText = Field(default=None, max_length=100)
    plate_number: OptionalText = Field(default=None, max_length=50)
    notes: OptionalText = Field(default=None, max_length=1000)


class ReceiveItem(BaseModel):
    item_id: int
    received_quantity: int = Field(ge=0)
    batch_number: str = Field(min_length=1, max_length=100)
    expiry_date: date | None = None
    temperature_on_receipt: float | None = Field(default=None, ge=-50, le=50)
    location_id: int
    unit_price: Decimal | None = Field(default=None, ge=0)


class ReceivePayload(BaseModel):
    items: list[ReceiveItem] = Field(min_length=1)

    @field_validator("items")
    @classmethod
    def check_unique_items(cls, items):
        return unique_item_ids(items)


class InboundItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product: ProductBrief
    expected_quantity: int
    received_quantity: int
    batch_number: str | None
    expiry_date: date | None
    temperature_on_receipt: float | None
    location_id: int | None
    unit_price: float | None
    notes: str | None


class InboundOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    supplier_id: int
    supplier: SupplierRead
    status: InboundStatus
    expected_date: date | None
    received_date: datetime | None
    received_by: str | None
    driver_name: str | None
    plate_number: str | None
    notes: str | None
    created_by_id: int
    created_at: datetime
    items: list[InboundItemRead]
