from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from coldstore.app.db.models.core_types import OutboundStatus
from coldstore.app.schemas.common import CODE_PATTERN, Blank, OptionalText


class CustomerCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50, pattern=CODE_PATTERN)
    name: str = Field(min_length=1, max_length=200)
    contact_person: OptionalText = Field(default=None, max_length=100)
    email: Annotated[EmailStr | None, Blank] = None
    phone: OptionalText = Field(default=None, max_length=50)
    address: OptionalText = Field(default=None, max_length=500)
    active: bool = True


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    contact_person: str | None
    email: str | None
    phone: str | None
    address: str | None
    active: bool


class CustomerOrderBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    status: OutboundStatus
    dr_number: str | None
    created_at: datetime


class CustomerDetail(CustomerRead):
    recent_orders: list[CustomerOrderBrief] = []
