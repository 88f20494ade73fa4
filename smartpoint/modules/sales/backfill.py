"""
Paid-amount backfill for sales recorded before collected-revenue reporting.

Rules:
- completed sales with paid_amount = 0: paid_amount = total
- pending sales: paid_amount = 0
- partial, refunded and failed sales are left unchanged

Change and payment status are re-derived when each sale is saved.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartpoint.modules.sales.computation import PaymentStatus, ZERO
from smartpoint.modules.sales.models import Sale

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


@dataclass
class BackfillResult:
    updated: int = 0
    skipped: int = 0
    dry_run: bool = False


def target_paid_amount(sale: Sale):
    if sale.payment_status == PaymentStatus.COMPLETED and sale.paid_amount == ZERO:
        return sale.total
    if sale.payment_status == PaymentStatus.PENDING:
        return ZERO
    return sale.paid_amount


async def backfill_paid_amounts(session: AsyncSession, dry_run: bool = False,
                                batch_size: int = BATCH_SIZE) -> BackfillResult:
    """Apply the rules to every pending or completed sale, committing in batches."""
    outcome = BackfillResult(dry_run=dry_run)
    result = await session.execute(
        select(Sale).where(Sale.payment_status.in_((PaymentStatus.PENDING, PaymentStatus.COMPLETED)))
    )
    try:
        for sale in result.scalars().all():
            new_paid = target_paid_amount(sale)
            if new_paid == sale.paid_amount:
                outcome.skipped += 1
                continue

            logger.debug(f"{sale.receipt_number}: paid_amount {sale.paid_amount} -> {new_paid}")
            sale.paid_amount = new_paid
            outcome.updated += 1
            if not dry_run and outcome.updated % batch_size == 0:
                await session.commit()
                logger.info(f"Updated {outcome.updated} sales...")

        if dry_run:
            await session.rollback()
        else:
            await session.commit()
    except Exception:
        await session.rollback()
        raise

    mode = "would update" if dry_run else "updated"
    logger.info(f"Backfill done: {mode} {outcome.updated} sales, {outcome.skipped} already correct")
    return outcome
