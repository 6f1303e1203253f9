"""
Pytest fixtures for the PDV backend tests.

Provides an in-memory database per test, the SQLAlchemy store, a store
wrapper for failure injection, a recording event sink and a test client.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import Any, Dict, List, Optional, Tuple

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pdv.domain.repositories.store import StoreError, StoreResult
from pdv.infrastructure.database import Base, make_engine
from pdv.infrastructure.repositories.sqlalchemy_store import SQLAlchemyStore


class RecordingEventSink:
    """Keeps every emitted event for assertions."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]


class FaultyStore:
    """Wraps a store and makes chosen calls fail or silently do nothing.

    ``fail("insert", "sale_items")`` makes the next insert into sale_items
    return an error; ``skip`` lets that many matching calls through first and
    ``times=None`` keeps failing forever.
    """

    def __init__(self, inner):
        self.inner = inner
        self.calls: List[Tuple[str, str]] = []
        self._rules: List[Dict[str, Any]] = []
        self._silent: set = set()

    def fail(self, op: str, table: str, error: Optional[StoreError] = None, skip: int = 0, times: Optional[int] = 1):
        self._rules.append({
            "op": op,
            "table": table,
            "error": error or StoreError(f"{op} on {table} failed", code="XX000"),
            "skip": skip,
            "times": times,
        })

    def silence(self, op: str, table: str):
        """Calls succeed but touch no rows (like a row level policy would)."""
        self._silent.add((op, table))

    def _intercept(self, op: str, table: str) -> Optional[StoreResult]:
        self.calls.append((op, table))
        for rule in self._rules:
            if rule["op"] != op or rule["table"] != table or rule["times"] == 0:
                continue
            if rule["skip"] > 0:
                rule["skip"] -= 1
                continue
            if rule["times"] is not None:
                rule["times"] -= 1
            return StoreResult(error=rule["error"])
        if (op, table) in self._silent:
            return StoreResult(data=[])
        return None

    def insert(self, table, rows):
        return self._intercept("insert", table) or self.inner.insert(table, rows)

    def select(self, table, filters=(), order=None, limit=None):
        return self._intercept("select", table) or self.inner.select(table, filters, order, limit)

    def select_one(self, table, filters=()):
        return self._intercept("select_one", table) or self.inner.select_one(table, filters)

    def update(self, table, patch, filters):
        return self._intercept("update", table) or self.inner.update(table, patch, filters)

    def delete(self, table, filters):
        return self._intercept("delete", table) or self.inner.delete(table, filters)


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory schema for each test."""
    engine = make_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture(scope="function")
def store(db_session):
    return SQLAlchemyStore(db_session)


@pytest.fixture(scope="function")
def faulty_store(store):
    return FaultyStore(store)


@pytest.fixture(scope="function")
def events():
    return RecordingEventSink()


@pytest.fixture(scope="function")
def make_product(store):
    """Factory inserting a product row and returning it."""
    def _make(**overrides) -> dict:
        row = {
            "name": "Coca-Cola 2L",
            "price_sale": 10.00,
            "price_wholesale": 8.50,
            "cost": 6.00,
            "quantity": 50,
        }
        row.update(overrides)
        result = store.insert("products", row)
        assert result.ok, result.error
        return result.data[0]
    return _make


@pytest.fixture(scope="function")
def client(store):
    """Test client whose requests all use the test store."""
    from fastapi.testclient import TestClient
    from pdv.interfaces.deps import get_store
    from pdv.main import app

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
