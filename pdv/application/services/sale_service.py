"""
Sale service — creation, reversal and header updates of sales.

Sales span two tables (``sales`` and ``sale_items``) and touch product
stock, while the store is atomic per call only. Creation and removal are
therefore run as sagas: each completed step registers its undo action and
a failure rolls the completed steps back in reverse order.
"""

from collections import OrderedDict
from typing import Dict, List, Optional

from pdv.config import get_settings
from pdv.core.exceptions import NotFoundError, SilentRejectionError, ValidationError
from pdv.core.observability import EventSink, default_event_sink
from pdv.core.store_errors import unwrap, unwrap_single
from pdv.core.time_utils import month_bounds, to_utc_naive
from pdv.domain.repositories.store import Between, Eq, Store
from pdv.domain.schemas.pagination import CursorPage
from pdv.domain.schemas.sale import (
    SaleCreate,
    SaleDeleted,
    SaleItemInput,
    SaleItemRead,
    SaleListQuery,
    SaleRead,
    SaleUpdate,
    SaleWithItems,
)
from pdv.application.services.pagination import fetch_page
from pdv.application.services.price_validator import validate_sale_items_prices
from pdv.application.services.product_service import change_stock
from pdv.application.services.saga import Saga

settings = get_settings()

UPDATABLE_FIELDS = ("total_price", "discount", "payment_method", "notes", "sale_type")


def calculate_subtotal(items: List[SaleItemInput]) -> float:
    return sum(float(item.price_sale) * int(item.quantity) for item in items)


def check_amounts(subtotal: float, discount: float, total_price: float) -> None:
    """Discount may not exceed the subtotal; total must equal subtotal - discount."""
    # float noise only, no cent rounding
    if discount - subtotal > 1e-9:
        raise ValidationError(
            f"Discount of {discount} cannot be greater than the subtotal of {subtotal:.2f}.",
            {"discount": discount, "subtotal": round(subtotal, 2)},
        )

    expected_total = subtotal - discount
    if abs(total_price - expected_total) > settings.PRICE_TOLERANCE:
        raise ValidationError(
            f"Total price {total_price:.2f} does not match the expected value. "
            f"Subtotal {subtotal:.2f} - discount {discount:.2f} = {expected_total:.2f}.",
            {
                "total_price": round(total_price, 2),
                "subtotal": round(subtotal, 2),
                "discount": round(discount, 2),
                "expected_total": round(expected_total, 2),
            },
        )


def check_totals(data: SaleCreate) -> float:
    """Validate discount and total against the items; returns the discount used."""
    discount = float(data.discount or 0)
    check_amounts(calculate_subtotal(data.items), discount, float(data.total_price))
    return discount


def _quantities_by_product(items: List[dict]) -> Dict[str, int]:
    totals: Dict[str, int] = OrderedDict()
    for item in items:
        totals[item["product_id"]] = totals.get(item["product_id"], 0) + int(item["quantity"])
    return totals


def _delete_rows(store: Store, table: str, column: str, value: str) -> None:
    unwrap(store.delete(table, [Eq(column, value)]))


def create_sale(store: Store, data: SaleCreate, events: Optional[EventSink] = None) -> SaleWithItems:
    """Validate and persist a sale with its items.

    All checks run before the first write, so an invalid command leaves no
    trace. Stock of every sold product is decremented unless disabled in
    settings.
    """
    events = events or default_event_sink

    validate_sale_items_prices(store, data.items, data.sale_type)
    discount = check_totals(data)

    header = {
        "total_price": float(data.total_price),
        "discount": discount,
        "payment_method": data.payment_method,
        "sale_type": data.sale_type,
        "notes": data.notes,
    }
    if data.created_at is not None:
        header["created_at"] = to_utc_naive(data.created_at)

    saga = Saga("sale.create", events)

    sale = saga.step(
        "insert_sale",
        lambda: unwrap_single(store.insert("sales", header), "Sale not created")[0],
        lambda row: _delete_rows(store, "sales", "id", row["id"]),
    )
    sale_id = sale["id"]

    items = saga.step(
        "insert_items",
        lambda: unwrap(
            store.insert(
                "sale_items",
                [
                    {
                        "sale_id": sale_id,
                        "product_id": item.product_id,
                        "quantity": item.quantity,
                        "price_sale": float(item.price_sale),
                    }
                    for item in data.items
                ],
            )
        ),
        lambda _rows: _delete_rows(store, "sale_items", "sale_id", sale_id),
    )

    if settings.DECREMENT_STOCK_ON_SALE:
        for product_id, quantity in _quantities_by_product(items).items():
            row = saga.step(
                f"decrement_stock:{product_id}",
                lambda pid=product_id, qty=quantity: change_stock(store, pid, -qty),
                lambda _row, pid=product_id, qty=quantity: change_stock(store, pid, qty),
            )
            if row["quantity"] < 0:
                events.emit(
                    "sale.stock_negative",
                    sale_id=sale_id,
                    product_id=product_id,
                    quantity=row["quantity"],
                )

    events.emit(
        "sale.created",
        sale_id=sale_id,
        total_price=sale["total_price"],
        sale_type=sale["sale_type"],
        items=len(items),
    )
    return SaleWithItems(
        **SaleRead.model_validate(sale).model_dump(),
        items=[SaleItemRead.model_validate(r) for r in items],
    )


def list_sales(store: Store, query: SaleListQuery) -> CursorPage[SaleRead]:
    """Page through sales, optionally within a calendar month or year (UTC)."""
    filters = []
    if query.year:
        start, end = month_bounds(query.year, query.month)
        filters.append(Between("created_at", start, end))

    page = fetch_page(store, "sales", query, filters)
    return CursorPage[SaleRead](
        data=[SaleRead.model_validate(r) for r in page.data],
        next_cursor=page.next_cursor,
    )


def get_sale(store: Store, sale_id: str) -> SaleWithItems:
    sale = unwrap_single(store.select_one("sales", [Eq("id", sale_id)]), "Sale not found")
    items = unwrap(store.select("sale_items", [Eq("sale_id", sale_id)]))
    return SaleWithItems(
        **SaleRead.model_validate(sale).model_dump(),
        items=[SaleItemRead.model_validate(r) for r in items],
    )


def update_sale(
    store: Store,
    sale_id: str,
    data: SaleUpdate,
    events: Optional[EventSink] = None,
) -> SaleRead:
    """Patch header fields of a sale.

    Items and created_at are never touched here. An empty patch returns the
    current sale without writing. A new discount or total is checked against
    the stored items the same way as on creation.
    """
    events = events or default_event_sink
    sale_id = sale_id.strip()

    payload = {}
    for key, value in data.model_dump(exclude_unset=True).items():
        if key not in UPDATABLE_FIELDS:
            continue
        if key == "notes":
            payload[key] = value or None
        elif value is not None:
            payload[key] = float(value) if key in ("total_price", "discount") else value

    current = unwrap_single(store.select_one("sales", [Eq("id", sale_id)]), "Sale not found")
    if not payload:
        return SaleRead.model_validate(current)

    if "discount" in payload or "total_price" in payload:
        items = unwrap(store.select("sale_items", [Eq("sale_id", sale_id)]))
        check_amounts(
            sum(float(i["price_sale"]) * int(i["quantity"]) for i in items),
            float(payload.get("discount", current["discount"]) or 0),
            float(payload.get("total_price", current["total_price"])),
        )

    rows = unwrap(store.update("sales", payload, [Eq("id", sale_id)]))
    if not rows:
        events.emit("sale.update_silently_rejected", sale_id=sale_id, fields=sorted(payload))
        raise SilentRejectionError(
            "The store did not apply the sale update although the sale exists. "
            "Check row level access policies.",
            {"sale_id": sale_id, "fields": sorted(payload)},
        )

    events.emit("sale.updated", sale_id=sale_id, fields=sorted(payload))
    return SaleRead.model_validate(rows[0])


def _restock_item(store: Store, item: dict, events: EventSink) -> bool:
    """Give an item's quantity back to its product; False if the product is gone."""
    try:
        row = change_stock(store, item["product_id"], int(item["quantity"]))
    except NotFoundError:
        events.emit(
            "sale.stock_restore_skipped",
            sale_id=item["sale_id"],
            product_id=item["product_id"],
            quantity=item["quantity"],
        )
        return False
    events.emit(
        "sale.stock_restored",
        sale_id=item["sale_id"],
        product_id=item["product_id"],
        quantity=item["quantity"],
        new_quantity=row["quantity"],
    )
    return True


def _undo_restock(store: Store, item: dict, restocked: bool) -> None:
    if restocked:
        change_stock(store, item["product_id"], -int(item["quantity"]))


def remove_sale(store: Store, sale_id: str, events: Optional[EventSink] = None) -> SaleDeleted:
    """Delete a sale, returning each item's quantity to stock first.

    Order: fetch items, restock products, delete items, delete the header.
    Items go before the header because they reference it. A product that no
    longer exists is skipped without blocking the deletion.
    """
    events = events or default_event_sink
    sale_id = (sale_id or "").strip()
    if not sale_id:
        raise ValidationError("Invalid sale id")

    unwrap_single(store.select_one("sales", [Eq("id", sale_id)]), "Sale not found")

    saga = Saga("sale.remove", events, sale_id=sale_id)
    items = saga.step(
        "fetch_items",
        lambda: unwrap(store.select("sale_items", [Eq("sale_id", sale_id)])),
    )

    restocked: List[str] = []
    skipped: List[str] = []
    for item in items:
        done = saga.step(
            f"restock:{item['id']}",
            lambda item=item: _restock_item(store, item, events),
            lambda result, item=item: _undo_restock(store, item, result),
        )
        (restocked if done else skipped).append(item["product_id"])

    saga.step(
        "delete_items",
        lambda: _delete_rows(store, "sale_items", "sale_id", sale_id),
        lambda _result: unwrap(store.insert("sale_items", items)) if items else None,
    )
    saga.step("delete_sale", lambda: _delete_rows(store, "sales", "id", sale_id))

    events.emit("sale.deleted", sale_id=sale_id, restocked=len(restocked), skipped=len(skipped))
    return SaleDeleted(success=True, restocked=restocked, skipped=skipped)
