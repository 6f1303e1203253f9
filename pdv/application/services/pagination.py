"""
Cursor pagination engine.

Cursors carry the last row's ordering value (never an offset), so a page
boundary stays put when rows are inserted or deleted elsewhere in the set.
Ordering by ``created_at`` also carries the row id as a tie-breaker, which
keeps rows with identical timestamps from being skipped or repeated.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence

from pdv.config import get_settings
from pdv.core.store_errors import unwrap
from pdv.core.time_utils import parse_iso_datetime
from pdv.domain.repositories.store import After, Filter, Gt, Lt, Order, Store
from pdv.domain.schemas.pagination import CursorPage, CursorQuery

settings = get_settings()


@dataclass(frozen=True)
class CursorPosition:
    value: str
    tiebreaker: Optional[str] = None


def _raw(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def encode_cursor(value: Any, tiebreaker: Any = None) -> str:
    """Opaque, reversible token for an ordering value (and optional row id)."""
    raw = _raw(value)
    if tiebreaker is not None:
        raw = json.dumps([raw, _raw(tiebreaker)], separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: Optional[str]) -> Optional[CursorPosition]:
    """Decode a token from encode_cursor; anything unreadable yields None."""
    if not cursor:
        return None
    token = cursor.strip().replace("-", "+").replace("_", "/")
    token += "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not raw:
        return None

    if raw.startswith("["):
        try:
            pair = json.loads(raw)
        except ValueError:
            return None
        if (
            isinstance(pair, list)
            and len(pair) == 2
            and all(isinstance(part, str) for part in pair)
        ):
            return CursorPosition(pair[0], pair[1])
        return None
    return CursorPosition(raw)


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.PAGE_DEFAULT_LIMIT
    return min(max(int(limit), 1), settings.PAGE_MAX_LIMIT)


def _boundary(position: Optional[CursorPosition], order_by: str, ascending: bool) -> Optional[Filter]:
    """Range condition that starts the page strictly after the cursor."""
    if position is None:
        return None

    value: Any = position.value
    if order_by == "created_at":
        try:
            value = parse_iso_datetime(position.value)
        except ValueError:
            return None
        if value is None:
            return None
        if position.tiebreaker is not None:
            return After(order_by, value, "id", position.tiebreaker, ascending=ascending)

    return Gt(order_by, value) if ascending else Lt(order_by, value)


def fetch_page(
    store: Store,
    table: str,
    query: CursorQuery,
    filters: Sequence[Filter] = (),
    orderable: Sequence[str] = ("id", "created_at"),
) -> CursorPage[dict]:
    """Fetch one page of rows from ``table``.

    Reads limit + 1 rows; the extra row only tells whether another page
    exists. Columns outside ``orderable`` fall back to ordering by id.
    """
    limit = clamp_limit(query.limit)
    order_by = query.order_by if query.order_by in orderable else "id"
    ascending = query.order == "asc"

    conditions: List[Filter] = list(filters)
    boundary = _boundary(decode_cursor(query.cursor), order_by, ascending)
    if boundary is not None:
        conditions.append(boundary)

    tie_column = "id" if order_by != "id" else None
    rows = unwrap(store.select(table, conditions, Order(order_by, ascending, tie_column), limit + 1))

    has_more = len(rows) > limit
    page_rows = rows[:limit]
    next_cursor = None
    if has_more:
        last = page_rows[-1]
        next_cursor = encode_cursor(last[order_by], last["id"] if tie_column else None)

    return CursorPage[dict](data=page_rows, next_cursor=next_cursor)
