"""Supplier registry schemas."""

from typing import Optional

from pydantic import Field

from app.schemas.common import BaseSchema, TimestampedSchema


class SupplierCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=256)
    tax_id: Optional[str] = Field(default=None, max_length=32)
    email: Optional[str] = None
    is_active: bool = True


class SupplierResponse(TimestampedSchema):
    name: str
    tax_id: Optional[str] = None
    email: Optional[str] = None
    is_active: bool
