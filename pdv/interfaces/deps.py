"""
API Dependencies.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from pdv.core.observability import EventSink, default_event_sink
from pdv.domain.repositories.store import Store
from pdv.infrastructure.database import get_db
from pdv.infrastructure.repositories.sqlalchemy_store import SQLAlchemyStore


def get_store(db: Session = Depends(get_db)) -> Store:
    """Get the request-scoped backing store."""
    return SQLAlchemyStore(db)


def get_event_sink() -> EventSink:
    """Get the sink for domain events."""
    return default_event_sink
