from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coldstore.app.db.models.core_types import TemperatureZone
from coldstore.app.schemas.common import CODE_PATTERN, OptionalText


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=50, pattern=CODE_PATTERN)
    barcode: OptionalText = Field(default=None, max_length=100)
    name: str = Field(min_length=1, max_length=200)
    description: OptionalText = Field(default=None, max_length=1000)
    category: str = Field(min_length=1, max_length=100)
    temperature_zone: TemperatureZone
    shelf_life_days: int = Field(ge=1, le=3650)
    min_stock_level: int = Field(default=0, ge=0)
    max_stock_level: int | None = Field(default=None, ge=0)
    unit: str = Field(default="pcs", min_length=1, max_length=20)
    weight_per_unit: Decimal | None = Field(default=None, ge=0)
    units_per_box: int | None = Field(default=None, ge=1)
    active: bool = True

    @model_validator(mode="after")
    def check_stock_levels(self):
        if self.max_stock_level is not None and self.max_stock_level < self.min_stock_level:
            raise ValueError("Maximum stock level must be greater than or equal to minimum stock level")
        return self


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sku: str
    barcode: str | None
    name: str
    description: str | None
    category: str | None
    temperature_zone: TemperatureZone
    shelf_life_days: int
    min_stock_level: int
    max_stock_level: int | None
    unit: str
    weight_per_unit: float | None
    units_per_box: int | None
    active: bool
    created_at: datetime


class ProductStockRead(ProductRead):
    on_hand: int = 0
    reserved: int = 0
    available: int = 0


class ProductBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sku: str
    name: str
    unit: str
    temperature_zone: TemperatureZone
