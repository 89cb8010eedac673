from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from coldstore.app.db.models.core_types import TemperatureZone
from coldstore.app.schemas.common import CODE_PATTERN, OptionalText


class LocationCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50, pattern=CODE_PATTERN)
    zone: str = Field(min_length=1, max_length=100)
    section: OptionalText = Field(default=None, max_length=50)
    rack: OptionalText = Field(default=None, max_length=50)
    shelf: OptionalText = Field(default=None, max_length=50)
    temperature_zone: TemperatureZone
    capacity: int | None = Field(default=None, ge=0)
    active: bool = True


class LocationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    zone: str
    section: str | None
    rack: str | None
    shelf: str | None
    temperature_zone: TemperatureZone
    capacity: int | None
    active: bool


class LocationStockRead(LocationRead):
    current_stock: int = 0
    utilization: int = 0
