"""Tests for cursor encoding and the page fetcher."""

import base64
from datetime import datetime, timedelta

import pytest

from pdv.application.services.pagination import (
    CursorPosition,
    clamp_limit,
    decode_cursor,
    encode_cursor,
    fetch_page,
)
from pdv.core.exceptions import InternalError
from pdv.core.time_utils import parse_iso_datetime
from pdv.domain.schemas.pagination import CursorQuery


def _insert_sales(store, created_ats):
    rows = [
        {"total_price": 10.0, "discount": 0, "payment_method": "cash", "sale_type": "retail", "created_at": ts}
        for ts in created_ats
    ]
    result = store.insert("sales", rows)
    assert result.ok, result.error
    return result.data


def _walk(store, query):
    """Follow next cursors until the end; returns every page."""
    pages = []
    while True:
        page = fetch_page(store, "sales", query)
        pages.append(page)
        if page.next_cursor is None:
            return pages
        query = query.model_copy(update={"cursor": page.next_cursor})


class TestCursorEncoding:

    def test_identifier_round_trip(self):
        value = "6f1c2a4e-9a51-4c57-8a7e-3f0b3c7f5d21"
        assert decode_cursor(encode_cursor(value)) == CursorPosition(value)

    def test_timestamp_round_trip(self):
        ts = datetime(2025, 3, 14, 15, 9, 26, 535897)
        decoded = decode_cursor(encode_cursor(ts))
        assert parse_iso_datetime(decoded.value) == ts

    def test_tiebreaker_round_trip(self):
        token = encode_cursor("2025-01-01T00:00:00", "abc")
        assert decode_cursor(token) == CursorPosition("2025-01-01T00:00:00", "abc")

    def test_cursor_is_opaque(self):
        token = encode_cursor("2025-01-01T00:00:00", "abc")
        assert "2025" not in token

    def test_plain_base64_cursor_still_decodes(self):
        token = base64.b64encode(b"2025-01-01T10:00:00.000Z").decode()
        assert decode_cursor(token) == CursorPosition("2025-01-01T10:00:00.000Z")

    @pytest.mark.parametrize("token", [None, "", "%%%not-base64%%%", "gA==", "WyJvbmx5LW9uZSJd"])
    def test_malformed_cursor_is_no_cursor(self, token):
        assert decode_cursor(token) is None


class TestClampLimit:

    @pytest.mark.parametrize("limit,expected", [(None, 20), (0, 1), (-5, 1), (1, 1), (50, 50), (101, 100), (10_000, 100)])
    def test_limit_is_clamped(self, limit, expected):
        assert clamp_limit(limit) == expected


class TestFetchPage:

    def test_next_cursor_only_when_more_rows_exist(self, store):
        base = datetime(2025, 1, 1)
        _insert_sales(store, [base + timedelta(minutes=i) for i in range(4)])

        first = fetch_page(store, "sales", CursorQuery(limit=2))
        assert len(first.data) == 2
        assert first.next_cursor is not None

        second = fetch_page(store, "sales", CursorQuery(limit=2, cursor=first.next_cursor))
        assert len(second.data) == 2
        assert second.next_cursor is None

    def test_pages_are_disjoint_and_ordered(self, store):
        base = datetime(2025, 1, 1)
        _insert_sales(store, [base + timedelta(minutes=i) for i in range(7)])

        pages = _walk(store, CursorQuery(limit=3, order="asc"))
        rows = [row for page in pages for row in page.data]

        assert [len(p.data) for p in pages] == [3, 3, 1]
        assert len({row["id"] for row in rows}) == 7
        stamps = [row["created_at"] for row in rows]
        assert stamps == sorted(stamps)

    def test_descending_is_default(self, store):
        base = datetime(2025, 1, 1)
        _insert_sales(store, [base + timedelta(days=i) for i in range(3)])

        page = fetch_page(store, "sales", CursorQuery())
        stamps = [row["created_at"] for row in page.data]
        assert stamps == sorted(stamps, reverse=True)

    @pytest.mark.parametrize("order", ["asc", "desc"])
    def test_identical_timestamps_are_traversed_once(self, store, order):
        same = datetime(2025, 6, 1, 12, 0, 0)
        inserted = _insert_sales(store, [same] * 5 + [same + timedelta(seconds=1)] * 2)

        pages = _walk(store, CursorQuery(limit=2, order=order))
        ids = [row["id"] for page in pages for row in page.data]

        assert sorted(ids) == sorted(row["id"] for row in inserted)
        assert len(ids) == len(set(ids))

    def test_order_by_id(self, store):
        _insert_sales(store, [datetime(2025, 1, 1)] * 5)

        pages = _walk(store, CursorQuery(limit=2, order_by="id", order="asc"))
        ids = [row["id"] for page in pages for row in page.data]
        assert ids == sorted(ids)
        assert len(ids) == 5

    def test_malformed_cursor_starts_from_the_beginning(self, store):
        base = datetime(2025, 1, 1)
        _insert_sales(store, [base + timedelta(minutes=i) for i in range(3)])

        fresh = fetch_page(store, "sales", CursorQuery(limit=2))
        garbage = fetch_page(store, "sales", CursorQuery(limit=2, cursor="@@garbage@@"))
        assert [r["id"] for r in garbage.data] == [r["id"] for r in fresh.data]

    def test_unparseable_timestamp_cursor_is_ignored(self, store):
        _insert_sales(store, [datetime(2025, 1, 1)])
        page = fetch_page(store, "sales", CursorQuery(cursor=encode_cursor("yesterday")))
        assert len(page.data) == 1

    def test_unsupported_order_column_falls_back_to_id(self, store):
        _insert_sales(store, [datetime(2025, 1, 1)] * 3)
        page = fetch_page(store, "sales", CursorQuery(order="asc"), orderable=("id",))
        ids = [row["id"] for row in page.data]
        assert ids == sorted(ids)

    def test_store_failure_is_raised(self, faulty_store):
        faulty_store.fail("select", "sales")
        with pytest.raises(InternalError):
            fetch_page(faulty_store, "sales", CursorQuery())
