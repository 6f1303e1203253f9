"""Product service — catalogue CRUD and stock level changes."""

from typing import Optional

from pdv.core.exceptions import SilentRejectionError, ValidationError
from pdv.core.observability import EventSink, default_event_sink
from pdv.core.store_errors import unwrap, unwrap_single
from pdv.domain.repositories.store import Eq, Store
from pdv.domain.schemas.pagination import CursorPage, CursorQuery
from pdv.domain.schemas.product import (
    ProductCreate,
    ProductRead,
    ProductUpdate,
    StockAdjustment,
)
from pdv.application.services.pagination import fetch_page


def get_product_row(store: Store, product_id: str) -> dict:
    return unwrap_single(store.select_one("products", [Eq("id", product_id)]), "Product not found")


def create_product(store: Store, data: ProductCreate) -> ProductRead:
    rows = unwrap(store.insert("products", data.model_dump()))
    return ProductRead.model_validate(rows[0])


def list_products(store: Store, query: CursorQuery) -> CursorPage[ProductRead]:
    page = fetch_page(store, "products", query)
    return CursorPage[ProductRead](
        data=[ProductRead.model_validate(r) for r in page.data],
        next_cursor=page.next_cursor,
    )


def get_product(store: Store, product_id: str) -> ProductRead:
    return ProductRead.model_validate(get_product_row(store, product_id))


def update_product(store: Store, product_id: str, data: ProductUpdate) -> ProductRead:
    payload = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key in ("description", "image")
    }
    if not payload:
        return get_product(store, product_id)
    rows = unwrap(store.update("products", payload, [Eq("id", product_id)]))
    if not rows:
        # zero rows here means the id is unknown
        get_product_row(store, product_id)
        raise SilentRejectionError("Product update matched no rows", {"product_id": product_id})
    return ProductRead.model_validate(rows[0])


def delete_product(store: Store, product_id: str) -> dict:
    rows = unwrap(store.delete("products", [Eq("id", product_id)]))
    if not rows:
        get_product_row(store, product_id)
    return {"success": True}


def change_stock(store: Store, product_id: str, delta: int) -> dict:
    """Read-then-write stock change; returns the updated product row.

    No locking: two concurrent changes on the same product can lose one.
    """
    product = get_product_row(store, product_id)
    new_quantity = int(product["quantity"] or 0) + delta
    rows = unwrap(store.update("products", {"quantity": new_quantity}, [Eq("id", product_id)]))
    if not rows:
        raise SilentRejectionError(
            f"Stock update for product {product_id} was not applied",
            {"product_id": product_id, "quantity": new_quantity},
        )
    return rows[0]


def adjust_stock(
    store: Store,
    product_id: str,
    data: StockAdjustment,
    events: Optional[EventSink] = None,
) -> ProductRead:
    """Explicit stock correction; stock may not go below zero."""
    events = events or default_event_sink
    product = get_product_row(store, product_id)
    current = int(product["quantity"] or 0)
    if current + data.delta < 0:
        raise ValidationError(
            f"Stock adjustment of {data.delta} would leave product {product_id} "
            f"with {current + data.delta} units (current stock: {current}).",
            {"product_id": product_id, "current_quantity": current, "delta": data.delta},
        )
    row = change_stock(store, product_id, data.delta)
    events.emit(
        "product.stock_adjusted",
        product_id=product_id,
        previous_quantity=current,
        quantity=row["quantity"],
        reason=data.reason,
    )
    return ProductRead.model_validate(row)
