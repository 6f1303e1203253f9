"""Read-only access to sale lines."""

from pdv.core.store_errors import unwrap_single
from pdv.domain.repositories.store import Eq, Store
from pdv.domain.schemas.pagination import CursorPage
from pdv.domain.schemas.sale import SaleItemListQuery, SaleItemRead
from pdv.application.services.pagination import fetch_page


def list_sale_items(store: Store, query: SaleItemListQuery) -> CursorPage[SaleItemRead]:
    filters = [Eq("sale_id", query.sale_id)] if query.sale_id else []
    # sale_items has no created_at; fetch_page falls back to id
    page = fetch_page(store, "sale_items", query, filters, orderable=("id",))
    return CursorPage[SaleItemRead](
        data=[SaleItemRead.model_validate(r) for r in page.data],
        next_cursor=page.next_cursor,
    )


def get_sale_item(store: Store, item_id: str) -> SaleItemRead:
    row = unwrap_single(store.select_one("sale_items", [Eq("id", item_id)]), "Sale item not found")
    return SaleItemRead.model_validate(row)
