"""
Item service: scoped reads, manual entry, stock adjustment, soft delete.

Every lookup by id goes through the caller's Scope; items of another store
read as not found.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smartpoint.common.exceptions import InvalidInput, ItemNotFound, internal_error
from smartpoint.core.config import settings
from smartpoint.modules.access.policy import Scope
from smartpoint.modules.inventory.ledger import StockLedger
from smartpoint.modules.inventory.models import Item
from smartpoint.modules.inventory.schemas import ItemCreate, StockAdjustment

logger = logging.getLogger(__name__)


class ItemService:
    """Service for stocked products"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = StockLedger(db)

    async def get_item(self, item_id: UUID, scope: Scope, active_only: bool = True) -> Item:
        query = select(Item).where(Item.id == item_id, scope.filter(Item))
        if active_only:
            query = query.where(Item.is_active.is_(True))
        result = await self.db.execute(query)
        return scope.ensure_owns(result.scalar_one_or_none(), ItemNotFound)

    async def create_item(self, item_data: ItemCreate, scope: Scope, device_id: str = None) -> Item:
        try:
            item = Item(
                name=item_data.name,
                price=item_data.price,
                cost=item_data.cost,
                category=item_data.category,
                brand=item_data.brand,
                sku=item_data.sku,
                barcode=item_data.barcode,
                stock=item_data.stock,
                min_stock=item_data.min_stock,
                is_active=True,
                user_id=scope.actor_id,
                manager_id=scope.manager_id,
                cashier_id=scope.cashier_id,
                device_id=item_data.device_id or device_id or settings.DEFAULT_DEVICE_ID
            )
            self.db.add(item)
            await self.db.commit()
            await self.db.refresh(item)

            logger.info(f"Item {item.id} '{item.name}' created in scope {scope.manager_id}")
            return item

        except HTTPException:
            raise
        except IntegrityError:
            await self.db.rollback()
            raise InvalidInput("An item with this SKU already exists")
        except Exception as e:
            await self.db.rollback()
            raise internal_error(e, "create item")

    async def get_low_stock(self, scope: Scope) -> List[Item]:
        """Active items with stock <= min_stock, lowest stock first."""
        result = await self.db.execute(
            select(Item)
            .where(
                scope.filter(Item),
                Item.is_active.is_(True),
                Item.stock <= Item.min_stock
            )
            .order_by(Item.stock, Item.name)
        )
        return list(result.scalars().all())

    async def adjust_stock(self, item_id: UUID, adjustment: StockAdjustment, scope: Scope) -> Item:
        """Set, add or subtract stock on an item in scope (cashiers included)."""
        try:
            item = await self.get_item(item_id, scope)
            previous = item.stock
            new_stock = await self.ledger.adjust(item.id, adjustment.operation, adjustment.quantity)
            await self.db.commit()
            await self.db.refresh(item)

            logger.info(
                f"Stock of item {item.id} adjusted by {scope.actor_id}: "
                f"{adjustment.operation.value} {adjustment.quantity} ({previous} -> {new_stock})"
            )
            return item

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            raise internal_error(e, "update stock")

    async def deactivate_item(self, item_id: UUID, scope: Scope) -> Item:
        """Soft delete; sales keep their reference and name snapshot."""
        try:
            item = await self.get_item(item_id, scope)
            item.is_active = False
            await self.db.commit()
            await self.db.refresh(item)
            return item

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise internal_error(e, "delete item")
