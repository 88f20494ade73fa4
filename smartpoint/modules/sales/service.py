"""
Sale service: checkout, refund, failure and cashier re-attribution.

Checkout and refund each run in the request session's single transaction:
every stock change goes through the StockLedger without committing, and the
commit at the end makes the sale and its stock movements land together. Any
error rolls the whole unit back.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smartpoint.common.exceptions import (
    DuplicateReceipt, Forbidden, InvalidInput, InvalidStatusTransition, ItemNotFound,
    NotFound, NotRefundable, SaleNotFound, UnauthorizedScope, internal_error
)
from smartpoint.core.config import settings
from smartpoint.modules.access.policy import Scope
from smartpoint.modules.auth.models import User, UserRole
from smartpoint.modules.inventory.ledger import StockLedger
from smartpoint.modules.inventory.models import Item
from smartpoint.modules.sales.computation import (
    PaymentStatus, compute_totals, generate_receipt_number, line_subtotal, to_money
)
from smartpoint.modules.sales.models import Sale, SaleItem
from smartpoint.modules.sales.schemas import CheckoutRequest

logger = logging.getLogger(__name__)

FAILABLE_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PARTIAL)


def _append_note(notes: Optional[str], label: str, reason: Optional[str]) -> Optional[str]:
    if not reason or not reason.strip():
        return notes
    entry = f"{label}: {reason.strip()}"
    return f"{notes}\n{entry}" if notes else entry


class SaleService:
    """Service for sales"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = StockLedger(db)

    # ===== READS =====

    async def get_sale(self, sale_id: UUID, scope: Scope) -> Sale:
        result = await self.db.execute(
            select(Sale).where(Sale.id == sale_id, scope.filter(Sale))
        )
        return scope.ensure_owns(result.scalar_one_or_none(), SaleNotFound)

    async def get_by_receipt(self, receipt_number: str, scope: Scope) -> Sale:
        result = await self.db.execute(
            select(Sale).where(Sale.receipt_number == receipt_number, scope.filter(Sale))
        )
        return scope.ensure_owns(result.scalar_one_or_none(), SaleNotFound)

    async def _reload(self, sale: Sale) -> Sale:
        result = await self.db.execute(
            select(Sale).where(Sale.id == sale.id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _get_cashier(self, cashier_id: UUID, scope: Scope) -> User:
        """Active cashier linked to the scope's manager."""
        result = await self.db.execute(
            select(User).where(
                User.id == cashier_id,
                User.role == UserRole.CASHIER,
                User.manager_id == scope.manager_id,
                User.is_active.is_(True)
            )
        )
        cashier = result.scalar_one_or_none()
        if cashier is None:
            raise NotFound("Cashier not found or inactive")
        return cashier

    async def _receipt_exists(self, receipt_number: str, scope: Scope) -> bool:
        result = await self.db.execute(
            select(Sale.id).where(Sale.receipt_number == receipt_number, scope.filter(Sale))
        )
        return result.first() is not None

    # ===== CHECKOUT =====

    async def create_sale(self, data: CheckoutRequest, scope: Scope, device_id: str = None) -> Sale:
        """
        Ring up a sale.

        Lines are processed in request order; each decrements stock through
        the ledger. The first failing line aborts the checkout and rolls back
        every decrement made so far.
        """
        if not data.items:
            raise InvalidInput("At least one item is required")
        if data.total is None or data.paid_amount is None:
            raise InvalidInput("Total and paidAmount are required")

        receipt_number = data.receipt_number
        try:
            if scope.is_cashier:
                cashier_id = scope.actor_id
            elif data.cashier_id is not None:
                cashier_id = (await self._get_cashier(data.cashier_id, scope)).id
            else:
                cashier_id = None

            if receipt_number is not None:
                if await self._receipt_exists(receipt_number, scope):
                    raise DuplicateReceipt(receipt_number)
            else:
                receipt_number = generate_receipt_number()

            lines: List[SaleItem] = []
            for position, line in enumerate(data.items):
                result = await self.db.execute(select(Item).where(Item.id == line.product_id))
                item = result.scalar_one_or_none()
                if item is None or not item.is_active:
                    raise ItemNotFound(f"Item with ID {line.product_id} not found")
                if not scope.owns(item):
                    raise UnauthorizedScope(f"Item with ID {line.product_id} does not belong to your store")

                await self.ledger.reserve_and_decrement(item.id, line.quantity, item.name)

                price = line.price if line.price is not None else item.price
                lines.append(SaleItem(
                    item_id=item.id,
                    position=position,
                    name=line.name or item.name,
                    category=item.category,
                    price=to_money(price),
                    quantity=line.quantity,
                    subtotal=line_subtotal(price, line.quantity, line.subtotal)
                ))

            totals = compute_totals(
                [line.subtotal for line in lines],
                tax=data.tax,
                discount=data.discount,
                paid_amount=data.paid_amount
            )
            if totals.total < 0:
                raise InvalidInput("Discount cannot exceed subtotal plus tax")
            if to_money(data.total) != totals.total:
                logger.warning(
                    f"Checkout {receipt_number}: declared total {data.total} differs from "
                    f"computed total {totals.total}, keeping computed"
                )

            sale = Sale(
                receipt_number=receipt_number,
                items=lines,
                tax=totals.tax,
                discount=totals.discount,
                paid_amount=totals.paid_amount,
                payment_method=data.payment_method,
                customer_name=data.customer_name,
                customer_phone=data.customer_phone,
                customer_email=data.customer_email,
                notes=data.notes,
                user_id=scope.actor_id,
                manager_id=scope.manager_id,
                cashier_id=cashier_id,
                device_id=data.device_id or device_id or settings.DEFAULT_DEVICE_ID
            )
            self.db.add(sale)
            await self.db.commit()

            sale = await self._reload(sale)
            logger.info(
                f"Sale {sale.receipt_number} created by {scope.actor_id}: total={sale.total} "
                f"paid={sale.paid_amount} status={sale.payment_status.value}"
            )
            return sale

        except HTTPException:
            await self.db.rollback()
            raise
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateReceipt(receipt_number)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Checkout failed: {e}")
            raise internal_error(e, "checkout")

    # ===== STATUS ACTIONS =====

    async def _restore_stock(self, sale: Sale) -> None:
        for line in sale.items:
            await self.ledger.restore(line.item_id, line.quantity)

    async def refund_sale(self, sale_id: UUID, reason: Optional[str], scope: Scope) -> Sale:
        """Refund a completed sale and put its quantities back on the shelf."""
        try:
            result = await self.db.execute(
                select(Sale).where(
                    Sale.id == sale_id,
                    scope.filter(Sale),
                    Sale.payment_status == PaymentStatus.COMPLETED
                )
            )
            sale = result.scalar_one_or_none()
            if not scope.owns(sale):
                raise NotRefundable()

            sale.payment_status = PaymentStatus.REFUNDED
            sale.notes = _append_note(sale.notes, "Refund Reason", reason)
            await self._restore_stock(sale)
            await self.db.commit()

            logger.info(f"Sale {sale.receipt_number} refunded by {scope.actor_id}")
            return await self._reload(sale)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            raise internal_error(e, "refund sale")

    async def fail_sale(self, sale_id: UUID, reason: Optional[str], scope: Scope) -> Sale:
        """Mark a pending or partial sale as failed and restore its stock."""
        try:
            sale = await self.get_sale(sale_id, scope)
            if sale.payment_status not in FAILABLE_STATUSES:
                raise InvalidStatusTransition(
                    f"Cannot mark a {sale.payment_status.value} sale as failed"
                )

            sale.payment_status = PaymentStatus.FAILED
            sale.notes = _append_note(sale.notes, "Failure Reason", reason)
            await self._restore_stock(sale)
            await self.db.commit()

            logger.info(f"Sale {sale.receipt_number} marked failed by {scope.actor_id}")
            return await self._reload(sale)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            raise internal_error(e, "mark sale as failed")

    async def reassign_cashier(self, sale_id: UUID, cashier_id: Optional[UUID], scope: Scope) -> Sale:
        try:
            sale = await self.get_sale(sale_id, scope)
            if not scope.can_reassign_cashier(sale):
                raise Forbidden("You can only change the cashier on sales you created")

            if cashier_id is None:
                if not scope.is_manager:
                    raise InvalidInput("cashierId is required")
                sale.cashier_id = None
            else:
                sale.cashier_id = (await self._get_cashier(cashier_id, scope)).id

            await self.db.commit()
            logger.info(f"Sale {sale.receipt_number} attributed to cashier {sale.cashier_id}")
            return await self._reload(sale)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            raise internal_error(e, "update sale cashier")
