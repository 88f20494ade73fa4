"""
Revenue Aggregator

Scoped, time-windowed rollups of sales. ``total_revenue`` is the sum of
``paid_amount``; ``total_billed`` is the sum of ``total``. Refunded and failed
sales are not revenue and are excluded.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartpoint.modules.access.policy import Scope
from smartpoint.modules.auth.models import User
from smartpoint.modules.finance.windows import DateWindow
from smartpoint.modules.sales.computation import PaymentStatus, ZERO, to_money
from smartpoint.modules.sales.models import Sale, SaleItem

REVENUE_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PARTIAL, PaymentStatus.COMPLETED)


def calculate_growth(current, previous) -> float:
    """Growth percentage of current over previous"""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(float((current - previous) / previous * 100), 2)


@dataclass
class RevenueSummary:
    total_revenue: Decimal = ZERO
    total_billed: Decimal = ZERO
    total_outstanding: Decimal = ZERO
    partial_payments_count: int = 0
    transaction_count: int = 0
    item_count: int = 0

    @property
    def average_transaction_value(self) -> Decimal:
        if not self.transaction_count:
            return ZERO
        return to_money(self.total_revenue / self.transaction_count)

    def add(self, sale: Sale) -> None:
        """Fold one sale into the running figures."""
        outstanding = max(ZERO, sale.total - sale.paid_amount)
        self.total_revenue += sale.paid_amount
        self.total_billed += sale.total
        self.total_outstanding += outstanding
        if ZERO < sale.paid_amount < sale.total:
            self.partial_payments_count += 1
        self.transaction_count += 1
        self.item_count += sale.item_count

    @classmethod
    def from_sales(cls, sales: Iterable[Sale]) -> "RevenueSummary":
        summary = cls()
        for sale in sales:
            summary.add(sale)
        return summary


@dataclass
class CashierRevenue(RevenueSummary):
    cashier_id: Optional[UUID] = None
    cashier_name: str = ""


@dataclass
class ItemSales:
    item_id: UUID
    name: str
    quantity: int
    revenue: Decimal


@dataclass
class HourlySales:
    hour: int
    revenue: Decimal
    transaction_count: int

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:00"


class RevenueAggregator:
    """Runs the rollups in the database, inside one scope"""

    def __init__(self, db: AsyncSession, scope: Scope):
        self.db = db
        self.scope = scope

    def _conditions(self, window: Optional[DateWindow], cashier_id: Optional[UUID] = None,
                    statuses=REVENUE_STATUSES):
        conditions = [self.scope.filter(Sale), Sale.payment_status.in_(statuses)]
        if window is not None:
            conditions.append(Sale.sale_date.between(window.start, window.end))
        if cashier_id is not None:
            conditions.append(Sale.cashier_id == cashier_id)
        return conditions

    async def summarize(self, window: Optional[DateWindow], cashier_id: Optional[UUID] = None,
                        statuses=REVENUE_STATUSES) -> RevenueSummary:
        conditions = self._conditions(window, cashier_id, statuses)
        outstanding = case((Sale.total > Sale.paid_amount, Sale.total - Sale.paid_amount), else_=0)
        is_partial = case((and_(Sale.paid_amount > 0, Sale.paid_amount < Sale.total), 1), else_=0)

        result = await self.db.execute(
            select(
                func.coalesce(func.sum(Sale.paid_amount), 0).label("total_revenue"),
                func.coalesce(func.sum(Sale.total), 0).label("total_billed"),
                func.coalesce(func.sum(outstanding), 0).label("total_outstanding"),
                func.coalesce(func.sum(is_partial), 0).label("partial_payments_count"),
                func.count(Sale.id).label("transaction_count")
            ).where(*conditions)
        )
        row = result.one()

        items = await self.db.execute(
            select(func.coalesce(func.sum(SaleItem.quantity), 0))
            .join(Sale, SaleItem.sale_id == Sale.id)
            .where(*conditions)
        )

        return RevenueSummary(
            total_revenue=to_money(row.total_revenue),
            total_billed=to_money(row.total_billed),
            total_outstanding=to_money(row.total_outstanding),
            partial_payments_count=int(row.partial_payments_count),
            transaction_count=int(row.transaction_count),
            item_count=int(items.scalar_one())
        )

    async def cashier_breakdown(self, window: Optional[DateWindow],
                                statuses=REVENUE_STATUSES) -> List[CashierRevenue]:
        """Per-cashier figures joined with display names, highest revenue first."""
        conditions = self._conditions(window, statuses=statuses)
        conditions.append(Sale.cashier_id.is_not(None))
        outstanding = case((Sale.total > Sale.paid_amount, Sale.total - Sale.paid_amount), else_=0)
        is_partial = case((and_(Sale.paid_amount > 0, Sale.paid_amount < Sale.total), 1), else_=0)

        result = await self.db.execute(
            select(
                Sale.cashier_id,
                User.first_name,
                User.last_name,
                User.username,
                func.coalesce(func.sum(Sale.paid_amount), 0).label("total_revenue"),
                func.coalesce(func.sum(Sale.total), 0).label("total_billed"),
                func.coalesce(func.sum(outstanding), 0).label("total_outstanding"),
                func.coalesce(func.sum(is_partial), 0).label("partial_payments_count"),
                func.count(Sale.id).label("transaction_count")
            )
            .join(User, User.id == Sale.cashier_id)
            .where(*conditions)
            .group_by(Sale.cashier_id, User.first_name, User.last_name, User.username)
        )
        rows = result.all()

        items = await self.db.execute(
            select(Sale.cashier_id, func.coalesce(func.sum(SaleItem.quantity), 0))
            .join(Sale, SaleItem.sale_id == Sale.id)
            .where(*conditions)
            .group_by(Sale.cashier_id)
        )
        item_counts = {cashier_id: int(count) for cashier_id, count in items.all()}

        breakdown = []
        for row in rows:
            name = f"{row.first_name or ''} {row.last_name or ''}".strip() or row.username
            breakdown.append(CashierRevenue(
                cashier_id=row.cashier_id,
                cashier_name=name,
                total_revenue=to_money(row.total_revenue),
                total_billed=to_money(row.total_billed),
                total_outstanding=to_money(row.total_outstanding),
                partial_payments_count=int(row.partial_payments_count),
                transaction_count=int(row.transaction_count),
                item_count=item_counts.get(row.cashier_id, 0)
            ))

        breakdown.sort(key=lambda c: c.total_revenue, reverse=True)
        return breakdown

    async def load_sales(self, window: Optional[DateWindow], cashier_id: Optional[UUID] = None,
                         statuses=REVENUE_STATUSES) -> List[Sale]:
        """Matching sales with their lines, newest first."""
        result = await self.db.execute(
            select(Sale)
            .where(*self._conditions(window, cashier_id, statuses))
            .order_by(Sale.sale_date.desc())
        )
        return list(result.scalars().all())

    async def top_items(self, window: Optional[DateWindow], limit: int = 10,
                        cashier_id: Optional[UUID] = None) -> List[ItemSales]:
        """
        Best sellers in the window by line revenue, then quantity.

        Revenue here is the sum of line subtotals (what was billed for the
        item), since payments are recorded per sale and not per line.
        """
        revenue = func.coalesce(func.sum(SaleItem.subtotal), 0).label("revenue")
        quantity = func.coalesce(func.sum(SaleItem.quantity), 0).label("quantity")

        result = await self.db.execute(
            select(SaleItem.item_id, func.max(SaleItem.name).label("name"), quantity, revenue)
            .join(Sale, SaleItem.sale_id == Sale.id)
            .where(*self._conditions(window, cashier_id))
            .group_by(SaleItem.item_id)
            .order_by(revenue.desc(), quantity.desc())
            .limit(limit)
        )
        return [
            ItemSales(item_id=row.item_id, name=row.name, quantity=int(row.quantity), revenue=to_money(row.revenue))
            for row in result.all()
        ]

    async def hourly_sales(self, window: Optional[DateWindow],
                           cashier_id: Optional[UUID] = None) -> List[HourlySales]:
        """Collected revenue per hour of day, only hours with sales, in hour order."""
        hour = func.extract("hour", Sale.sale_date).label("hour")
        result = await self.db.execute(
            select(
                hour,
                func.coalesce(func.sum(Sale.paid_amount), 0).label("revenue"),
                func.count(Sale.id).label("transaction_count")
            )
            .where(*self._conditions(window, cashier_id))
            .group_by(hour)
            .order_by(hour)
        )
        return [
            HourlySales(hour=int(row.hour), revenue=to_money(row.revenue), transaction_count=int(row.transaction_count))
            for row in result.all()
        ]
