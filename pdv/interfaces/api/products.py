"""Products API routes — catalogue, stock adjustments and profitability stats."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from pdv.core.observability import EventSink
from pdv.domain.repositories.store import Store
from pdv.domain.schemas.pagination import CursorPage, CursorQuery
from pdv.domain.schemas.product import (
    ProductCreate,
    ProductRead,
    ProductStats,
    ProductUpdate,
    StockAdjustment,
)
from pdv.interfaces.deps import get_event_sink, get_store
from pdv.application.services.inventory_service import get_product_stats
from pdv.application.services.product_service import (
    adjust_stock,
    create_product,
    delete_product,
    get_product,
    list_products,
    update_product,
)

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create(data: ProductCreate, store: Store = Depends(get_store)):
    return create_product(store, data)


@router.get("", response_model=CursorPage[ProductRead])
def list_page(
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
    order_by: Literal["id", "created_at"] = Query("created_at", alias="orderBy"),
    order: Literal["asc", "desc"] = "desc",
    store: Store = Depends(get_store),
):
    query = CursorQuery(limit=limit, cursor=cursor, order_by=order_by, order=order)
    return list_products(store, query)


@router.get("/{product_id}", response_model=ProductRead)
def get_one(product_id: str, store: Store = Depends(get_store)):
    return get_product(store, product_id)


@router.get("/{product_id}/stats", response_model=ProductStats)
def stats(product_id: str, store: Store = Depends(get_store)):
    """Weighted average cost, revenue and margin of a product."""
    return get_product_stats(store, product_id)


@router.patch("/{product_id}", response_model=ProductRead)
def update(product_id: str, data: ProductUpdate, store: Store = Depends(get_store)):
    return update_product(store, product_id, data)


@router.post("/{product_id}/stock", response_model=ProductRead)
def stock_adjustment(
    product_id: str,
    data: StockAdjustment,
    store: Store = Depends(get_store),
    events: EventSink = Depends(get_event_sink),
):
    return adjust_stock(store, product_id, data, events)


@router.delete("/{product_id}")
def delete(product_id: str, store: Store = Depends(get_store)):
    return delete_product(store, product_id)
