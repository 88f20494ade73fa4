"""
SQLAlchemy models for the inventory module

Item: a stocked product owned by a manager's scope. Stock is only changed
through the StockLedger (checkout, refund, failure, explicit adjustment).
Items are never hard-deleted; is_active=False hides them.
"""

from smartpoint.database.database import Base
from sqlalchemy import Column, String, Boolean, Integer, Numeric, CheckConstraint, Uuid
from uuid import uuid4
from smartpoint.common.mixins import ScopeMixin, TimestampMixin
from smartpoint.core.config import settings


class Item(Base, ScopeMixin, TimestampMixin):
    __tablename__ = "items"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    price = Column(Numeric(15, 2), nullable=False)
    cost = Column(Numeric(15, 2), nullable=False, default=0)
    category = Column(String(100), nullable=False, index=True)
    brand = Column(String(100), nullable=True)
    sku = Column(String(50), unique=True, nullable=True)
    barcode = Column(String(50), nullable=True, index=True)
    stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),
        CheckConstraint("min_stock >= 0", name="ck_items_min_stock_non_negative"),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

    @property
    def is_critical_stock(self) -> bool:
        return self.stock <= settings.CRITICAL_STOCK_THRESHOLD
