"""
Stock Ledger

Every stock change runs as a single conditional UPDATE so two concurrent
checkouts cannot both pass a stale stock check. The ledger never commits:
callers own the transaction, which is what makes a multi-line checkout
all-or-nothing.
"""

import enum
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from smartpoint.common.exceptions import InsufficientStock, InvalidInput, ItemNotFound
from smartpoint.modules.inventory.models import Item

logger = logging.getLogger(__name__)


class StockOperation(str, enum.Enum):
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"


class StockLedger:
    """Per-item quantity on hand"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def available(self, item_id: UUID) -> Optional[int]:
        result = await self.db.execute(select(Item.stock).where(Item.id == item_id))
        return result.scalar_one_or_none()

    async def reserve_and_decrement(self, item_id: UUID, quantity: int,
                                    item_name: Optional[str] = None) -> int:
        """
        Decrement stock by quantity, only if at least quantity is on hand.

        Returns the remaining stock. Raises InsufficientStock otherwise and
        leaves the row untouched.
        """
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1")

        result = await self.db.execute(
            update(Item)
            .where(Item.id == item_id, Item.stock >= quantity)
            .values(stock=Item.stock - quantity)
            .execution_options(synchronize_session=False)
        )

        remaining = await self.available(item_id)
        if result.rowcount == 0:
            if remaining is None:
                raise ItemNotFound(f"Item with ID {item_id} not found")
            raise InsufficientStock(item_name or str(item_id), remaining, quantity)

        return remaining

    async def restore(self, item_id: UUID, quantity: int) -> Optional[int]:
        """Increment stock by quantity. Returns None when the item row is gone."""
        result = await self.db.execute(
            update(Item)
            .where(Item.id == item_id)
            .values(stock=Item.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(f"Stock restore skipped, item {item_id} no longer exists")
            return None
        return await self.available(item_id)

    async def adjust(self, item_id: UUID, operation: StockOperation, quantity: int) -> int:
        """
        Operator-triggered adjustment.

        set replaces the value; add and subtract are relative; subtract clamps
        at zero.
        """
        if quantity < 0:
            raise InvalidInput("Valid quantity is required")

        if operation == StockOperation.ADD:
            new_value = Item.stock + quantity
        elif operation == StockOperation.SUBTRACT:
            new_value = case((Item.stock > quantity, Item.stock - quantity), else_=0)
        else:
            new_value = quantity

        result = await self.db.execute(
            update(Item)
            .where(Item.id == item_id)
            .values(stock=new_value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ItemNotFound()

        return await self.available(item_id)
