"""Pydantic schemas for Purchase domain."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from pdv.domain.schemas.pagination import CursorQuery


class PurchaseCreate(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unit_cost: float = Field(ge=0)
    created_at: Optional[datetime] = None


class PurchaseRead(BaseModel):
    id: str
    product_id: str
    quantity: int
    unit_cost: float
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PurchaseListQuery(CursorQuery):
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1900, le=9999)
    product_id: Optional[str] = None
