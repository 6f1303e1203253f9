"""Pydantic schemas for Product domain."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price_sale: float = Field(ge=0)
    price_wholesale: float = Field(default=0, ge=0)
    cost: float = Field(ge=0)
    quantity: int = Field(ge=0)
    image: Optional[str] = None  # opaque storage reference


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price_sale: Optional[float] = Field(default=None, ge=0)
    price_wholesale: Optional[float] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    quantity: Optional[int] = Field(default=None, ge=0)
    image: Optional[str] = None


class ProductRead(ProductBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StockAdjustment(BaseModel):
    delta: int
    reason: Optional[str] = None


class ProductStats(BaseModel):
    product_id: str
    total_purchased: int
    total_invested: float
    average_cost: float
    total_sold: int
    total_revenue: float
    cost_of_sold_items: float
    gross_profit: float
    profit_margin: float
