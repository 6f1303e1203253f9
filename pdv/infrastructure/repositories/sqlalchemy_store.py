"""
SQLAlchemy implementation of the backing Store.

Each call works on one table and commits on its own, so atomicity holds
per call only. Database exceptions are never raised to the caller; they
come back as a StoreError with a SQLSTATE-like code.
"""

from typing import Any, Dict, List, Optional, Sequence, Type, Union

import structlog
from sqlalchemy import and_, inspect, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from pdv.domain.models.product import Product
from pdv.domain.models.purchase import Purchase
from pdv.domain.models.sale import Sale, SaleItem
from pdv.domain.repositories.store import (
    After,
    Between,
    Eq,
    Filter,
    Gt,
    In,
    Lt,
    Order,
    Row,
    StoreError,
    StoreResult,
)
from pdv.infrastructure.database import Base

logger = structlog.get_logger(__name__)

TABLES: Dict[str, Type[Base]] = {
    model.__tablename__: model for model in (Product, Purchase, Sale, SaleItem)
}

# sqlite reports constraint failures only as text
_SQLITE_CODES = (
    ("UNIQUE constraint failed", "23505"),
    ("FOREIGN KEY constraint failed", "23503"),
    ("NOT NULL constraint failed", "23502"),
    ("CHECK constraint failed", "23514"),
)


def to_row(obj: Base) -> Row:
    """Plain dict of an ORM object's column values."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def error_from_exception(exc: SQLAlchemyError) -> StoreError:
    orig = getattr(exc, "orig", None)
    message = str(orig) if orig is not None else str(exc)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is None and isinstance(exc, IntegrityError):
        for needle, sqlstate in _SQLITE_CODES:
            if needle in message:
                code = sqlstate
                break
    return StoreError(message=message, code=code, details=exc.__class__.__name__)


class UnknownRelation(Exception):
    pass


class UnknownColumn(Exception):
    pass


class SQLAlchemyStore:
    """Store implementation over a SQLAlchemy Session."""

    def __init__(self, db: Session):
        self.db = db

    # --- helpers ---------------------------------------------------------------

    def _model(self, table: str) -> Type[Base]:
        model = TABLES.get(table)
        if model is None:
            raise UnknownRelation(f'relation "{table}" does not exist')
        return model

    def _column(self, model: Type[Base], name: str):
        if name not in model.__table__.columns:
            raise UnknownColumn(f'column "{name}" does not exist on "{model.__tablename__}"')
        return getattr(model, name)

    def _condition(self, model: Type[Base], f: Filter):
        if isinstance(f, Eq):
            column = self._column(model, f.column)
            return column.is_(None) if f.value is None else column == f.value
        if isinstance(f, Gt):
            return self._column(model, f.column) > f.value
        if isinstance(f, Lt):
            return self._column(model, f.column) < f.value
        if isinstance(f, Between):
            column = self._column(model, f.column)
            return and_(column >= f.start, column < f.end)
        if isinstance(f, In):
            return self._column(model, f.column).in_(list(f.values))
        if isinstance(f, After):
            column = self._column(model, f.column)
            tie = self._column(model, f.tie_column)
            if f.ascending:
                return or_(column > f.value, and_(column == f.value, tie > f.tie_value))
            return or_(column < f.value, and_(column == f.value, tie < f.tie_value))
        raise TypeError(f"Unsupported filter {f!r}")

    def _query(self, model: Type[Base], filters: Sequence[Filter]) -> Query:
        query = self.db.query(model)
        for f in filters:
            query = query.filter(self._condition(model, f))
        return query

    def _run(self, operation: str, table: str, func) -> StoreResult:
        try:
            return StoreResult(data=func(self._model(table)))
        except UnknownRelation as exc:
            self.db.rollback()
            return StoreResult(error=StoreError(str(exc), code="42P01"))
        except UnknownColumn as exc:
            self.db.rollback()
            return StoreResult(error=StoreError(str(exc), code="42703"))
        except SQLAlchemyError as exc:
            self.db.rollback()
            error = error_from_exception(exc)
            logger.warning("Store operation failed", operation=operation, table=table, code=error.code)
            return StoreResult(error=error)

    # --- Store protocol --------------------------------------------------------

    def insert(self, table: str, rows: Union[Row, List[Row]]) -> StoreResult:
        payload = [rows] if isinstance(rows, dict) else list(rows)

        def _op(model):
            for row in payload:
                for key in row:
                    self._column(model, key)
            objs = [model(**row) for row in payload]
            self.db.add_all(objs)
            self.db.commit()
            for obj in objs:
                self.db.refresh(obj)
            return [to_row(obj) for obj in objs]

        return self._run("insert", table, _op)

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
        limit: Optional[int] = None,
    ) -> StoreResult:
        def _op(model):
            query = self._query(model, filters)
            if order is not None:
                columns = [self._column(model, order.column)]
                if order.tie_column:
                    columns.append(self._column(model, order.tie_column))
                query = query.order_by(*[c.asc() if order.ascending else c.desc() for c in columns])
            if limit is not None:
                query = query.limit(limit)
            return [to_row(obj) for obj in query.all()]

        return self._run("select", table, _op)

    def select_one(self, table: str, filters: Sequence[Filter] = ()) -> StoreResult:
        result = self.select(table, filters, limit=2)
        if not result.ok:
            return result
        if len(result.data) != 1:
            return StoreResult(
                error=StoreError(
                    "JSON object requested, multiple (or no) rows returned",
                    code="PGRST116",
                    details=f"The result contains {len(result.data)} rows",
                )
            )
        return StoreResult(data=result.data[0])

    def update(self, table: str, patch: Row, filters: Sequence[Filter]) -> StoreResult:
        def _op(model):
            for key in patch:
                self._column(model, key)
            objs = self._query(model, filters).all()
            for obj in objs:
                for key, value in patch.items():
                    setattr(obj, key, value)
            self.db.commit()
            for obj in objs:
                self.db.refresh(obj)
            return [to_row(obj) for obj in objs]

        return self._run("update", table, _op)

    def delete(self, table: str, filters: Sequence[Filter]) -> StoreResult:
        def _op(model):
            objs = self._query(model, filters).all()
            rows = [to_row(obj) for obj in objs]
            for obj in objs:
                self.db.delete(obj)
            self.db.commit()
            return rows

        return self._run("delete", table, _op)
