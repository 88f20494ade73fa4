from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from smartpoint.common.schemas import CamelModel


class CashierOut(CamelModel):
    id: UUID
    username: str
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str] = None
    business_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    today_sales: Decimal = Decimal("0")
    today_transactions: int = 0


class CashierListResponse(CamelModel):
    success: bool = True
    data: List[CashierOut]


class CashierStatusResponse(CamelModel):
    success: bool = True
    data: CashierOut
    message: str
