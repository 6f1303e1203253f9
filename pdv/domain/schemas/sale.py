"""Pydantic schemas for Sale and SaleItem."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from pdv.domain.schemas.pagination import CursorQuery

PaymentMethod = Literal["cash", "credit", "debit", "pix", "other"]
SaleType = Literal["retail", "wholesale"]


class SaleItemInput(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    price_sale: float = Field(ge=0)


class SaleCreate(BaseModel):
    total_price: float = Field(ge=0)
    discount: Optional[float] = Field(default=None, ge=0)
    payment_method: PaymentMethod
    sale_type: SaleType
    items: List[SaleItemInput] = Field(min_length=1)
    created_at: Optional[datetime] = None  # allows back-dated imports
    notes: Optional[str] = None


class SaleUpdate(BaseModel):
    """Only header fields; items and created_at never change after creation."""
    total_price: Optional[float] = Field(default=None, ge=0)
    discount: Optional[float] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    sale_type: Optional[SaleType] = None


class SaleItemRead(BaseModel):
    id: str
    sale_id: str
    product_id: str
    quantity: int
    price_sale: float

    model_config = {"from_attributes": True}


class SaleRead(BaseModel):
    id: str
    total_price: float
    discount: float = 0
    payment_method: str
    sale_type: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SaleWithItems(SaleRead):
    items: List[SaleItemRead] = []


class SaleListQuery(CursorQuery):
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1900, le=9999)


class SaleItemListQuery(CursorQuery):
    order_by: Literal["id", "created_at"] = "id"
    sale_id: Optional[str] = None


class SaleDeleted(BaseModel):
    success: bool = True
    restocked: List[str] = []
    skipped: List[str] = []
