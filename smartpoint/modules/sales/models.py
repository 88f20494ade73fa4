"""
SQLAlchemy models for the sales module

Sale owns its SaleItem lines (created once at checkout, never edited).
The money fields and payment status are re-derived from the lines on every
insert and update, see ``enforce_sale_invariants``.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Text, Enum, ForeignKey, CheckConstraint,
    UniqueConstraint, Uuid, event
)
from sqlalchemy.orm import relationship

from smartpoint.database.database import Base
from smartpoint.common.mixins import ScopeMixin, TimestampMixin
from smartpoint.modules.sales.computation import PaymentMethod, PaymentStatus, compute_totals


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Sale(Base, ScopeMixin, TimestampMixin):
    __tablename__ = "sales"

    id = Column(Uuid, primary_key=True, default=uuid4)
    receipt_number = Column(String(50), nullable=False, index=True)

    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    tax = Column(Numeric(15, 2), nullable=False, default=0)
    discount = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False, default=0)

    payment_method = Column(
        Enum(PaymentMethod, values_callable=_enum_values, name="payment_method"),
        nullable=False, default=PaymentMethod.CASH
    )
    payment_status = Column(
        Enum(PaymentStatus, values_callable=_enum_values, name="payment_status"),
        nullable=False, default=PaymentStatus.PENDING, index=True
    )
    paid_amount = Column(Numeric(15, 2), nullable=False, default=0)
    change = Column(Numeric(15, 2), nullable=False, default=0)

    # Customer snapshot
    customer_name = Column(String(200), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_email = Column(String(200), nullable=True)

    notes = Column(Text, nullable=True)
    sale_date = Column(DateTime, nullable=False, default=datetime.now, index=True)

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SaleItem.position"
    )

    __table_args__ = (
        CheckConstraint("paid_amount >= 0", name="ck_sales_paid_amount_non_negative"),
        CheckConstraint("change >= 0", name="ck_sales_change_non_negative"),
        UniqueConstraint("manager_id", "receipt_number", name="uq_sales_manager_receipt"),
    )

    @property
    def outstanding(self):
        return max(self.total - self.paid_amount, 0)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def __repr__(self):
        return f"<Sale(receipt='{self.receipt_number}', total={self.total}, status={self.payment_status})>"


class SaleItem(Base):
    """Line of a sale with the item's name and price at checkout time"""
    __tablename__ = "sale_items"

    id = Column(Uuid, primary_key=True, default=uuid4)
    sale_id = Column(Uuid, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Uuid, ForeignKey("items.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    price = Column(Numeric(15, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Numeric(15, 2), nullable=False)

    sale = relationship("Sale", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_sale_items_quantity_positive"),
    )


@event.listens_for(Sale, "before_insert")
@event.listens_for(Sale, "before_update")
def enforce_sale_invariants(mapper, connection, target):
    totals = compute_totals(
        [line.subtotal for line in target.items],
        tax=target.tax,
        discount=target.discount,
        paid_amount=target.paid_amount,
        current_status=target.payment_status
    )
    target.subtotal = totals.subtotal
    target.tax = totals.tax
    target.discount = totals.discount
    target.total = totals.total
    target.paid_amount = totals.paid_amount
    target.change = totals.change
    target.payment_status = totals.payment_status
