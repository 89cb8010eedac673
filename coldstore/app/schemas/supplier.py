from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from coldstore.app.schemas.common import CODE_PATTERN, PHONE_PATTERN, Blank, OptionalText


class SupplierCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50, pattern=CODE_PATTERN)
    name: str = Field(min_length=1, max_length=200)
    contact_name: OptionalText = Field(default=None, max_length=200)
    email: Annotated[EmailStr | None, Blank] = None
    phone: OptionalText = Field(default=None, max_length=50, pattern=PHONE_PATTERN)
    address: OptionalText = Field(default=None, max_length=500)
    active: bool = True


class SupplierRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    contact_name: str | None
    email: str | None
    phone: str | None
    address: str | None
    active: bool
