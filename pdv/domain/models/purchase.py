"""Append-only stock acquisitions, mapped to the 'purchases' table."""

import uuid

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey

from pdv.core.time_utils import utcnow
from pdv.infrastructure.database import Base


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<Purchase {self.id} product={self.product_id} qty={self.quantity}>"
