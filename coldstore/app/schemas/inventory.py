from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coldstore.app.db.models.core_types import MovementType
from coldstore.app.schemas.common import OptionalText
from coldstore.app.schemas.location import LocationRead
from coldstore.app.schemas.product import ProductBrief


class LotRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product: ProductBrief
    location_id: int
    location: LocationRead
    batch_number: str
    quantity: int
    expiry_date: date
    received_date: date
    temperature_on_receipt: float | None


class StockSummaryRead(BaseModel):
    """READ ONLY : calculé à partir des lots et des commandes ouvertes."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int
    on_hand: int
    reserved: int
    available: int
    expired: int
    near_expiry: int
    next_expiry_date: date | None


class LowStockRead(BaseModel):
    product: ProductBrief
    on_hand: int
    min_stock_level: int


class AdjustCreate(BaseModel):
    quantity_change: int
    reason: str = Field(min_length=1, max_length=255)

    @field_validator("quantity_change")
    @classmethod
    def non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("Quantity change cannot be zero")
        return v


class TransferCreate(BaseModel):
    to_location_id: int
    quantity: int = Field(gt=0)
    reason: OptionalText = Field(default=None, max_length=255)


class DisposeCreate(BaseModel):
    quantity: int = Field(gt=0)
    reason: str = Field(min_length=1, max_length=255)


class MovementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: MovementType
    product_id: int
    batch_number: str | None
    from_location_id: int | None
    to_location_id: int | None
    quantity: int
    reason: str | None
    reference_number: str | None
    moved_by_id: int
    idempotency_key: str | None
    created_at: datetime
