"""
Pydantic schemas for the inventory module
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from pydantic import Field, field_validator

from smartpoint.common.schemas import CamelModel
from smartpoint.modules.inventory.ledger import StockOperation


class ItemCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    cost: Decimal = Field(default=Decimal("0"), ge=0)
    category: str = Field(..., min_length=1, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    sku: Optional[str] = Field(None, max_length=50)
    barcode: Optional[str] = Field(None, max_length=50)
    stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)
    device_id: Optional[str] = Field(None, max_length=100)

    @field_validator('name', 'category')
    @classmethod
    def strip_required(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('Value cannot be blank')
        return cleaned


class ItemOut(CamelModel):
    id: UUID
    name: str
    price: Decimal
    cost: Decimal
    category: str
    brand: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    stock: int
    min_stock: int
    is_active: bool
    is_low_stock: bool
    is_critical_stock: bool
    user_id: UUID
    manager_id: UUID
    cashier_id: Optional[UUID] = None
    device_id: str
    created_at: datetime
    updated_at: datetime


class StockAdjustment(CamelModel):
    quantity: int = Field(..., ge=0, description="Quantity to set, add or subtract")
    operation: StockOperation = Field(default=StockOperation.SET)


class LowStockResponse(CamelModel):
    success: bool = True
    data: List[ItemOut]
    count: int
    critical_count: int
