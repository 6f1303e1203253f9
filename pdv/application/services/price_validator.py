"""Price consistency checks for sale items against the product price tiers."""

from typing import Dict, Iterable, List

from pdv.config import get_settings
from pdv.core.exceptions import ValidationError
from pdv.core.store_errors import unwrap
from pdv.domain.repositories.store import In, Store
from pdv.domain.schemas.sale import SaleItemInput

settings = get_settings()

TIER_COLUMN = {"retail": "price_sale", "wholesale": "price_wholesale"}
TIER_LABEL = {"retail": "varejo", "wholesale": "atacado"}


def expected_price(product: dict, sale_type: str) -> float:
    """Authoritative unit price of a product for the given sale type."""
    return float(product[TIER_COLUMN[sale_type]] or 0)


def load_products(store: Store, product_ids: Iterable[str]) -> Dict[str, dict]:
    """Resolve every referenced product with a single batched read."""
    ids = list(dict.fromkeys(product_ids))
    rows = unwrap(store.select("products", [In("id", ids)]))
    return {row["id"]: row for row in rows}


def validate_sale_items_prices(
    store: Store,
    items: List[SaleItemInput],
    sale_type: str,
) -> Dict[str, dict]:
    """Check each item's price against its product's tier price.

    Returns the resolved products keyed by id. Raises ValidationError on the
    first unknown product or price outside the tolerance. Never writes.
    """
    if sale_type not in TIER_COLUMN:
        raise ValidationError(f"Unknown sale type '{sale_type}'", {"sale_type": sale_type})

    products = load_products(store, (item.product_id for item in items))
    tolerance = settings.PRICE_TOLERANCE

    for item in items:
        product = products.get(item.product_id)
        if product is None:
            raise ValidationError(
                f"Product with ID {item.product_id} not found",
                {"product_id": item.product_id},
            )

        expected = expected_price(product, sale_type)
        received = float(item.price_sale)
        if abs(expected - received) > tolerance:
            raise ValidationError(
                f"Invalid price for product \"{product['name']}\" (ID: {item.product_id}). "
                f"For a {sale_type} ({TIER_LABEL[sale_type]}) sale the expected price is "
                f"{expected:.2f} ({TIER_COLUMN[sale_type]}), but {received:.2f} was received.",
                {
                    "product_id": item.product_id,
                    "product_name": product["name"],
                    "sale_type": sale_type,
                    "price_tier": TIER_COLUMN[sale_type],
                    "expected_price": round(expected, 2),
                    "received_price": round(received, 2),
                },
            )

    return products
