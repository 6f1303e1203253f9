"""Purchases API routes — record and list stock acquisitions."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from pdv.core.observability import EventSink
from pdv.domain.repositories.store import Store
from pdv.domain.schemas.pagination import CursorPage
from pdv.domain.schemas.purchase import PurchaseCreate, PurchaseListQuery, PurchaseRead
from pdv.interfaces.deps import get_event_sink, get_store
from pdv.application.services.inventory_service import list_purchases, record_purchase

router = APIRouter(prefix="/api/purchases", tags=["Purchases"])


@router.post("", response_model=PurchaseRead, status_code=status.HTTP_201_CREATED)
def create(
    data: PurchaseCreate,
    store: Store = Depends(get_store),
    events: EventSink = Depends(get_event_sink),
):
    return record_purchase(store, data, events)


@router.get("", response_model=CursorPage[PurchaseRead])
def list_page(
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
    order_by: Literal["id", "created_at"] = Query("created_at", alias="orderBy"),
    order: Literal["asc", "desc"] = "desc",
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    product_id: Optional[str] = None,
    store: Store = Depends(get_store),
):
    query = PurchaseListQuery(
        limit=limit,
        cursor=cursor,
        order_by=order_by,
        order=order,
        month=month,
        year=year,
        product_id=product_id,
    )
    return list_purchases(store, query)
