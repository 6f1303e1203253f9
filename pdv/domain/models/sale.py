"""Sale and SaleItem domain models — 'sales' and 'sale_items' tables."""

import uuid

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text

from pdv.core.time_utils import utcnow
from pdv.infrastructure.database import Base


class Sale(Base):
    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    total_price = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)
    payment_method = Column(String(20), nullable=False)  # cash, credit, debit, pix, other
    sale_type = Column(String(20), nullable=False, default="retail")  # retail, wholesale
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<Sale {self.id} total={self.total_price}>"


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # No ON DELETE cascade: items must be removed before their sale
    sale_id = Column(String(36), ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price_sale = Column(Float, nullable=False)

    def __repr__(self):
        return f"<SaleItem {self.id} sale={self.sale_id} product={self.product_id}>"
