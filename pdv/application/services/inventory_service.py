"""Purchase records, weighted average cost and product profitability."""

from typing import Optional

from pdv.core.observability import EventSink, default_event_sink
from pdv.core.store_errors import unwrap
from pdv.core.time_utils import month_bounds, to_utc_naive
from pdv.domain.repositories.store import Between, Eq, Store
from pdv.domain.schemas.pagination import CursorPage
from pdv.domain.schemas.product import ProductStats
from pdv.domain.schemas.purchase import PurchaseCreate, PurchaseListQuery, PurchaseRead
from pdv.application.services.pagination import fetch_page
from pdv.application.services.product_service import get_product_row


def record_purchase(store: Store, data: PurchaseCreate, events: Optional[EventSink] = None) -> PurchaseRead:
    """Append a stock acquisition. Existing purchases are never changed."""
    events = events or default_event_sink
    get_product_row(store, data.product_id)

    payload = {
        "product_id": data.product_id,
        "quantity": data.quantity,
        "unit_cost": float(data.unit_cost),
    }
    if data.created_at is not None:
        payload["created_at"] = to_utc_naive(data.created_at)

    row = unwrap(store.insert("purchases", payload))[0]
    events.emit(
        "purchase.recorded",
        purchase_id=row["id"],
        product_id=row["product_id"],
        quantity=row["quantity"],
        unit_cost=row["unit_cost"],
    )
    return PurchaseRead.model_validate(row)


def list_purchases(store: Store, query: PurchaseListQuery) -> CursorPage[PurchaseRead]:
    filters = []
    if query.product_id:
        filters.append(Eq("product_id", query.product_id))
    if query.year:
        start, end = month_bounds(query.year, query.month)
        filters.append(Between("created_at", start, end))

    page = fetch_page(store, "purchases", query, filters)
    return CursorPage[PurchaseRead](
        data=[PurchaseRead.model_validate(r) for r in page.data],
        next_cursor=page.next_cursor,
    )


def get_product_stats(store: Store, product_id: str) -> ProductStats:
    """Cost and profitability of a product, recomputed from scratch on every call.

    average_cost is the weighted average over all purchases, falling back to
    the product's own cost when nothing was purchased yet.
    """
    product = get_product_row(store, product_id)
    purchases = unwrap(store.select("purchases", [Eq("product_id", product_id)]))
    sold_items = unwrap(store.select("sale_items", [Eq("product_id", product_id)]))

    total_purchased = sum(int(p["quantity"]) for p in purchases)
    total_invested = sum(int(p["quantity"]) * float(p["unit_cost"]) for p in purchases)
    if total_purchased > 0:
        average_cost = total_invested / total_purchased
    else:
        average_cost = float(product["cost"] or 0)

    total_sold = sum(int(i["quantity"]) for i in sold_items)
    total_revenue = sum(int(i["quantity"]) * float(i["price_sale"]) for i in sold_items)
    cost_of_sold_items = total_sold * average_cost
    gross_profit = total_revenue - cost_of_sold_items
    profit_margin = round(gross_profit / total_revenue * 100, 2) if total_revenue > 0 else 0.0

    return ProductStats(
        product_id=product_id,
        total_purchased=total_purchased,
        total_invested=total_invested,
        average_cost=average_cost,
        total_sold=total_sold,
        total_revenue=total_revenue,
        cost_of_sold_items=cost_of_sold_items,
        gross_profit=gross_profit,
        profit_margin=profit_margin,
    )
