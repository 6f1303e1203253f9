"""Sale items API routes. Read-only: items change only together with their sale."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends

from pdv.domain.repositories.store import Store
from pdv.domain.schemas.pagination import CursorPage
from pdv.domain.schemas.sale import SaleItemListQuery, SaleItemRead
from pdv.interfaces.deps import get_store
from pdv.application.services.sale_item_service import get_sale_item, list_sale_items

router = APIRouter(prefix="/api/sale-items", tags=["Sale items"])


@router.get("", response_model=CursorPage[SaleItemRead])
def list_page(
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
    order: Literal["asc", "desc"] = "desc",
    sale_id: Optional[str] = None,
    store: Store = Depends(get_store),
):
    query = SaleItemListQuery(limit=limit, cursor=cursor, order=order, sale_id=sale_id)
    return list_sale_items(store, query)


@router.get("/{item_id}", response_model=SaleItemRead)
def get_one(item_id: str, store: Store = Depends(get_store)):
    return get_sale_item(store, item_id)
