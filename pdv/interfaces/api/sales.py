"""Sales API routes — create, list, get, update and delete sales."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from pdv.core.observability import EventSink
from pdv.domain.repositories.store import Store
from pdv.domain.schemas.pagination import CursorPage
from pdv.domain.schemas.sale import (
    SaleCreate,
    SaleDeleted,
    SaleListQuery,
    SaleRead,
    SaleUpdate,
    SaleWithItems,
)
from pdv.interfaces.deps import get_event_sink, get_store
from pdv.application.services.sale_service import (
    create_sale,
    get_sale,
    list_sales,
    remove_sale,
    update_sale,
)

router = APIRouter(prefix="/api/sales", tags=["Sales"])


@router.post("", response_model=SaleWithItems, status_code=status.HTTP_201_CREATED)
def create(
    data: SaleCreate,
    store: Store = Depends(get_store),
    events: EventSink = Depends(get_event_sink),
):
    return create_sale(store, data, events)


@router.get("", response_model=CursorPage[SaleRead])
def list_page(
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
    order_by: Literal["id", "created_at"] = Query("created_at", alias="orderBy"),
    order: Literal["asc", "desc"] = "desc",
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    store: Store = Depends(get_store),
):
    query = SaleListQuery(
        limit=limit,
        cursor=cursor,
        order_by=order_by,
        order=order,
        month=month,
        year=year,
    )
    return list_sales(store, query)


@router.get("/{sale_id}", response_model=SaleWithItems)
def get_one(sale_id: str, store: Store = Depends(get_store)):
    return get_sale(store, sale_id)


@router.patch("/{sale_id}", response_model=SaleRead)
def update(
    sale_id: str,
    data: SaleUpdate,
    store: Store = Depends(get_store),
    events: EventSink = Depends(get_event_sink),
):
    return update_sale(store, sale_id, data, events)


@router.delete("/{sale_id}", response_model=SaleDeleted)
def delete(
    sale_id: str,
    store: Store = Depends(get_store),
    events: EventSink = Depends(get_event_sink),
):
    """Delete a sale and give its items' quantities back to stock."""
    return remove_sale(store, sale_id, events)
