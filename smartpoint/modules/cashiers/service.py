"""
Cashier management for managers: listing with today's collected revenue,
deactivation and reactivation.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartpoint.common.exceptions import NotFound, internal_error
from smartpoint.modules.access.policy import Scope
from smartpoint.modules.auth.models import User, UserRole
from smartpoint.modules.cashiers.schemas import CashierOut
from smartpoint.modules.finance import windows
from smartpoint.modules.finance.aggregator import RevenueAggregator

logger = logging.getLogger(__name__)


class CashierService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_cashiers(self, scope: Scope, include_inactive: bool = False) -> List[CashierOut]:
        scope.require_manager("Access denied. Only managers can view cashiers.")

        query = select(User).where(User.role == UserRole.CASHIER, User.manager_id == scope.manager_id)
        if not include_inactive:
            query = query.where(User.is_active.is_(True))
        result = await self.db.execute(query.order_by(User.first_name, User.last_name))
        cashiers = result.scalars().all()

        today = {
            c.cashier_id: c
            for c in await RevenueAggregator(self.db, scope).cashier_breakdown(windows.today())
        }

        listing = []
        for cashier in cashiers:
            out = CashierOut.model_validate(cashier)
            figures = today.get(cashier.id)
            if figures is not None:
                out.today_sales = figures.total_revenue
                out.today_transactions = figures.transaction_count
            listing.append(out)
        return listing

    async def set_active(self, cashier_id: UUID, active: bool, scope: Scope) -> User:
        """Flip a cashier's active flag; 404 when already in the requested state."""
        action = "reactivate" if active else "deactivate"
        scope.require_manager(f"Access denied. Only managers can {action} cashiers.")

        try:
            result = await self.db.execute(
                select(User).where(
                    User.id == cashier_id,
                    User.role == UserRole.CASHIER,
                    User.manager_id == scope.manager_id,
                    User.is_active.is_(not active)
                )
            )
            cashier = result.scalar_one_or_none()
            if cashier is None:
                state = "active" if active else "inactive"
                raise NotFound(f"Cashier not found or already {state}")

            cashier.is_active = active
            await self.db.commit()
            await self.db.refresh(cashier)

            logger.info(f"Cashier {cashier.id} {action}d by manager {scope.manager_id}")
            return cashier

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise internal_error(e, f"{action} cashier")
