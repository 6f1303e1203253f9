"""
Backing Store Interface.
Single-table data access: every call is one round trip and returns either
rows or a structured error, never both.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

Row = Dict[str, Any]


@dataclass(frozen=True)
class StoreError:
    """Structured failure reported by the store (SQLSTATE-like code)."""
    message: str
    code: Optional[str] = None
    details: Optional[str] = None


@dataclass
class StoreResult:
    data: Any = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# --- filters -----------------------------------------------------------------

@dataclass(frozen=True)
class Eq:
    column: str
    value: Any


@dataclass(frozen=True)
class Gt:
    column: str
    value: Any


@dataclass(frozen=True)
class Lt:
    column: str
    value: Any


@dataclass(frozen=True)
class Between:
    """Half-open range: start <= column < end."""
    column: str
    start: Any
    end: Any


@dataclass(frozen=True)
class In:
    column: str
    values: Sequence[Any] = field(default_factory=tuple)


@dataclass(frozen=True)
class After:
    """Keyset condition on (column, tie_column) in the given direction.

    Ascending: column > value OR (column = value AND tie_column > tie_value).
    Descending uses < on both.
    """
    column: str
    value: Any
    tie_column: str
    tie_value: Any
    ascending: bool = True


Filter = Union[Eq, Gt, Lt, Between, In, After]


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True
    # secondary sort key for stable keyset traversal
    tie_column: Optional[str] = None


class Store(Protocol):
    """Minimum capability the sales workflows need from persistence."""

    def insert(self, table: str, rows: Union[Row, List[Row]]) -> StoreResult:
        """Insert one or many rows; data is the list of inserted rows."""
        ...

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
        limit: Optional[int] = None,
    ) -> StoreResult:
        """Read rows; data is a (possibly empty) list."""
        ...

    def select_one(self, table: str, filters: Sequence[Filter] = ()) -> StoreResult:
        """Read exactly one row; zero matches is an error with code PGRST116."""
        ...

    def update(self, table: str, patch: Row, filters: Sequence[Filter]) -> StoreResult:
        """Patch matching rows; data is the list of updated rows."""
        ...

    def delete(self, table: str, filters: Sequence[Filter]) -> StoreResult:
        """Delete matching rows; data is the list of deleted rows."""
        ...
