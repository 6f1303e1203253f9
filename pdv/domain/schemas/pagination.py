"""Pydantic schemas for cursor pagination."""

from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class CursorQuery(BaseModel):
    limit: Optional[int] = None
    cursor: Optional[str] = None
    order_by: Literal["id", "created_at"] = "created_at"
    order: Literal["asc", "desc"] = "desc"


class CursorPage(BaseModel, Generic[T]):
    data: List[T]
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")

    model_config = {"populate_by_name": True}
