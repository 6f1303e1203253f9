"""Product domain model — maps to the 'products' table."""

import uuid

from sqlalchemy import Column, Integer, String, Float, DateTime, Text

from pdv.core.time_utils import utcnow
from pdv.infrastructure.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Price tiers
    price_sale = Column(Float, nullable=False, default=0)  # retail
    price_wholesale = Column(Float, nullable=False, default=0)

    # Legacy unit cost, used when there are no purchases
    cost = Column(Float, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0)

    # Opaque reference returned by the object storage
    image = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    def __repr__(self):
        return f"<Product {self.id} - {self.name}>"
