"""
Pydantic schemas for the sales module
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from smartpoint.common.schemas import CamelModel
from smartpoint.modules.sales.computation import PaymentMethod, PaymentStatus


class CheckoutItem(CamelModel):
    product_id: UUID
    name: Optional[str] = Field(None, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0)
    quantity: int = Field(..., ge=1)
    subtotal: Optional[Decimal] = Field(None, ge=0)


class CheckoutRequest(CamelModel):
    """
    Checkout payload sent by the register.

    ``total`` and ``paidAmount`` are required by the service rather than the
    schema so a missing value is reported as invalid input, not as a
    validation error list.
    """
    items: List[CheckoutItem] = Field(default_factory=list)
    total: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = Field(None, ge=0)
    change: Optional[Decimal] = Field(None, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    cashier_id: Optional[UUID] = None
    receipt_number: Optional[str] = Field(None, min_length=1, max_length=50)
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_email: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None
    device_id: Optional[str] = Field(None, max_length=100)

    @field_validator('customer_name', 'customer_phone', 'customer_email', 'notes', 'receipt_number')
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None


class RefundRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)


class FailRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)


class CashierReassignRequest(CamelModel):
    cashier_id: Optional[UUID] = Field(None, description="Cashier to attribute the sale to; null clears it")


class SaleItemOut(CamelModel):
    item_id: UUID
    name: str
    category: Optional[str] = None
    price: Decimal
    quantity: int
    subtotal: Decimal


class SaleOut(CamelModel):
    id: UUID
    receipt_number: str
    items: List[SaleItemOut]
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    paid_amount: Decimal
    change: Decimal
    outstanding: Decimal
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    user_id: UUID
    manager_id: UUID
    cashier_id: Optional[UUID] = None
    device_id: str
    sale_date: datetime
    created_at: datetime
    updated_at: datetime


class SaleResponse(CamelModel):
    success: bool = True
    data: SaleOut
    message: Optional[str] = None
