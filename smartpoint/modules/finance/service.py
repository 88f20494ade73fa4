"""
Finance service: home dashboard, revenue summary and sales reports.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import case, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartpoint.common.exceptions import InvalidInput
from smartpoint.core.config import settings
from smartpoint.modules.access.policy import Scope
from smartpoint.modules.auth.models import User, UserRole
from smartpoint.modules.finance import windows
from smartpoint.modules.finance.aggregator import (
    CashierRevenue, RevenueAggregator, RevenueSummary, calculate_growth
)
from smartpoint.modules.finance.windows import DateWindow, GroupBy, Period
from smartpoint.modules.finance.schemas import (
    CashierActivities, CashierDailySalesData, CashierDailySummary, CashierPerformance, CashierTransaction,
    CategoryBreakdown, ComprehensiveReportData, ComprehensiveReportPeriod, DashboardHomeData,
    HourlyBucket, InventoryStats, PaymentMethodBreakdown, RevenueFigures, SalesBucket,
    SalesReportData, SalesReportPeriod, SalesReportSummary, SummaryData, TopItem
)
from smartpoint.modules.inventory.models import Item
from smartpoint.modules.sales.computation import PaymentStatus, ZERO, to_money
from smartpoint.modules.sales.models import Sale

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


def _performance(cashier: CashierRevenue) -> CashierPerformance:
    return CashierPerformance(
        cashier_id=cashier.cashier_id,
        cashier_name=cashier.cashier_name,
        total_sales=cashier.total_revenue,
        total_billed=cashier.total_billed,
        total_transactions=cashier.transaction_count,
        total_items=cashier.item_count,
        outstanding_balance=cashier.total_outstanding,
        partial_payments=cashier.partial_payments_count,
        average_transaction_value=cashier.average_transaction_value
    )


def _transaction(sale: Sale) -> CashierTransaction:
    return CashierTransaction(
        id=sale.id,
        receipt_number=sale.receipt_number,
        customer_name=sale.customer_name,
        total=sale.total,
        paid_amount=sale.paid_amount,
        outstanding_balance=sale.outstanding,
        payment_status=sale.payment_status,
        payment_method=sale.payment_method,
        item_count=sale.item_count,
        sale_date=sale.sale_date
    )


class FinanceService:
    """Service for revenue reporting within one scope"""

    def __init__(self, db: AsyncSession, scope: Scope):
        self.db = db
        self.scope = scope
        self.aggregator = RevenueAggregator(db, scope)

    # ===== DASHBOARD =====

    async def _inventory_counts(self, week: DateWindow) -> Dict[str, int]:
        active = [self.scope.filter(Item), Item.is_active.is_(True)]
        result = await self.db.execute(
            select(
                func.count(Item.id).label("total_products"),
                func.count(distinct(Item.category)).label("categories_count")
            ).where(*active)
        )
        row = result.one()

        async def count(*conditions) -> int:
            counted = await self.db.execute(select(func.count(Item.id)).where(*active, *conditions))
            return counted.scalar_one()

        return {
            "total_products": row.total_products,
            "categories_count": row.categories_count,
            "low_stock_count": await count(Item.stock <= Item.min_stock),
            "critical_stock_count": await count(Item.stock <= settings.CRITICAL_STOCK_THRESHOLD),
            "products_added_this_week": await count(Item.created_at.between(week.start, week.end))
        }

    async def _cashier_counts(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(User.is_active, func.count(User.id))
            .where(User.role == UserRole.CASHIER, User.manager_id == self.scope.manager_id)
            .group_by(User.is_active)
        )
        counts = {bool(is_active): count for is_active, count in result.all()}
        active = counts.get(True, 0)
        inactive = counts.get(False, 0)
        return {
            "total_cashiers": active + inactive,
            "active_cashiers": active,
            "inactive_cashiers": inactive
        }

    async def dashboard_home(self, now: Optional[datetime] = None) -> DashboardHomeData:
        now = now or datetime.now()
        today_window = windows.today(now)
        week_window = windows.this_week(self.scope.first_day_of_week, now)

        today = await self.aggregator.summarize(today_window)
        yesterday = await self.aggregator.summarize(windows.yesterday(now))
        week = await self.aggregator.summarize(week_window)
        month = await self.aggregator.summarize(windows.this_month(now))
        pending = await self.aggregator.summarize(None, statuses=(PaymentStatus.PENDING,))

        daily_average = week.total_revenue / DAYS_PER_WEEK

        data = dict(
            today_sales=today.total_revenue,
            today_billed=today.total_billed,
            today_transactions=today.transaction_count,
            today_items=today.item_count,
            today_outstanding=today.total_outstanding,
            today_partial_payments=today.partial_payments_count,
            today_average_transaction_value=today.average_transaction_value,
            yesterday_sales=yesterday.total_revenue,
            yesterday_transactions=yesterday.transaction_count,
            week_sales=week.total_revenue,
            week_transactions=week.transaction_count,
            monthly_revenue=month.total_revenue,
            monthly_transactions=month.transaction_count,
            sales_growth=calculate_growth(today.total_revenue, yesterday.total_revenue),
            today_vs_average=calculate_growth(today.total_revenue, daily_average),
            pending_orders=pending.transaction_count,
            pending_amount=pending.total_outstanding,
            **await self._inventory_counts(week_window)
        )

        if self.scope.is_manager:
            performance_today = [_performance(c) for c in await self.aggregator.cashier_breakdown(today_window)]
            performance_week = [_performance(c) for c in await self.aggregator.cashier_breakdown(week_window)]
            data.update(await self._cashier_counts())
            data.update(
                cashier_performance=performance_today,
                weekly_performance=performance_week,
                top_performing_cashier=performance_today[0] if performance_today else None
            )

        return DashboardHomeData(**data)

    # ===== SUMMARY =====

    def _resolve_window(self, period: Optional[Period], start_date: Optional[date],
                        end_date: Optional[date]) -> DateWindow:
        if start_date or end_date:
            if not (start_date and end_date):
                raise InvalidInput("Start date and end date are required together")
            return windows.custom_range(start_date, end_date)
        return windows.resolve_period(period or Period.TODAY, self.scope.first_day_of_week)

    async def summary(self, period: Optional[Period] = None, start_date: Optional[date] = None,
                      end_date: Optional[date] = None, cashier_id: Optional[UUID] = None) -> SummaryData:
        window = self._resolve_window(period, start_date, end_date)
        current = await self.aggregator.summarize(window, cashier_id)
        previous = await self.aggregator.summarize(window.previous(), cashier_id)

        return SummaryData(
            start_date=window.start,
            end_date=window.end,
            total_revenue=current.total_revenue,
            total_billed=current.total_billed,
            total_outstanding=current.total_outstanding,
            partial_payments_count=current.partial_payments_count,
            transaction_count=current.transaction_count,
            item_count=current.item_count,
            average_transaction_value=current.average_transaction_value,
            previous_revenue=previous.total_revenue,
            growth=calculate_growth(current.total_revenue, previous.total_revenue)
        )

    # ===== REPORTS =====

    def _series(self, sales: List[Sale], group_by: GroupBy) -> List[SalesBucket]:
        buckets: Dict[date, List[Sale]] = {}
        for sale in sales:
            key = windows.bucket_key(sale.sale_date, group_by, self.scope.first_day_of_week)
            buckets.setdefault(key, []).append(sale)

        series = []
        for key in sorted(buckets):
            bucket_sales = buckets[key]
            figures = RevenueSummary.from_sales(bucket_sales)
            series.append(SalesBucket(
                period=key,
                total_sales=figures.total_revenue,
                total_billed=figures.total_billed,
                total_transactions=figures.transaction_count,
                average_transaction=figures.average_transaction_value,
                total_items=figures.item_count,
                total_tax=to_money(sum((s.tax for s in bucket_sales), ZERO)),
                total_discount=to_money(sum((s.discount for s in bucket_sales), ZERO)),
                total_outstanding=figures.total_outstanding
            ))
        return series

    @staticmethod
    def _categories(sales: List[Sale]) -> List[CategoryBreakdown]:
        categories: Dict[str, Dict] = {}
        for sale in sales:
            for line in sale.items:
                category = categories.setdefault(
                    line.category or "Uncategorized", {"total": ZERO, "quantity": 0, "count": 0}
                )
                category["total"] += line.subtotal
                category["quantity"] += line.quantity
                category["count"] += 1

        overall = sum((c["total"] for c in categories.values()), ZERO)
        breakdown = [
            CategoryBreakdown(
                category=name,
                percentage=round(float(values["total"] / overall * 100), 2) if overall else 0.0,
                **values
            )
            for name, values in categories.items()
        ]
        return sorted(breakdown, key=lambda b: b.total, reverse=True)

    async def sales_report(self, start_date: Optional[date], end_date: Optional[date],
                           group_by: GroupBy = GroupBy.DAY) -> SalesReportData:
        """Collected revenue series plus payment-method and category breakdowns."""
        if not start_date or not end_date:
            raise InvalidInput("Start date and end date are required")
        window = windows.custom_range(start_date, end_date)
        sales = await self.aggregator.load_sales(window)

        methods: Dict[str, Dict] = {}
        for sale in sales:
            method = methods.setdefault(sale.payment_method, {"total": ZERO, "count": 0})
            method["total"] += sale.paid_amount
            method["count"] += 1

        series = self._series(sales, group_by)
        overall = RevenueSummary.from_sales(sales)
        logger.debug(
            f"Sales report for {self.scope.manager_id}: {len(sales)} sales in {len(series)} {group_by.value} buckets"
        )

        return SalesReportData(
            period=SalesReportPeriod(start_date=window.start, end_date=window.end, group_by=group_by),
            sales_data=series,
            payment_methods=sorted(
                (PaymentMethodBreakdown(payment_method=m, **v) for m, v in methods.items()),
                key=lambda b: b.total, reverse=True
            ),
            categories=self._categories(sales),
            summary=SalesReportSummary(
                total_sales=overall.total_revenue,
                total_billed=overall.total_billed,
                total_transactions=overall.transaction_count,
                total_items=overall.item_count,
                total_outstanding=overall.total_outstanding
            )
        )

    async def _inventory_stats(self) -> InventoryStats:
        healthy = case((Item.stock > Item.min_stock, 1), else_=0)
        low = case((Item.stock <= Item.min_stock, 1), else_=0)
        empty = case((Item.stock == 0, 1), else_=0)

        result = await self.db.execute(
            select(
                func.count(Item.id).label("total_products"),
                func.coalesce(func.sum(Item.stock * Item.price), 0).label("total_stock_value"),
                func.coalesce(func.sum(low), 0).label("low_stock_items"),
                func.coalesce(func.sum(empty), 0).label("out_of_stock_items"),
                func.coalesce(func.sum(healthy), 0).label("healthy_items")
            ).where(self.scope.filter(Item), Item.is_active.is_(True))
        )
        row = result.one()
        total = int(row.total_products)

        return InventoryStats(
            total_products=total,
            total_stock_value=to_money(row.total_stock_value),
            low_stock_items=int(row.low_stock_items),
            out_of_stock_items=int(row.out_of_stock_items),
            stock_health=round(int(row.healthy_items) / total * 100, 2) if total else 0.0
        )

    async def comprehensive_report(self, period: Optional[Period] = None, start_date: Optional[date] = None,
                                   end_date: Optional[date] = None,
                                   top_limit: int = 10) -> ComprehensiveReportData:
        """
        One-call report for the reports screen.

        Sales summary, best sellers, category shares, daily and hourly series,
        inventory health, and for managers the cashier activity block.
        """
        window = self._resolve_window(period, start_date, end_date)
        period_type = "custom" if start_date else (period or Period.TODAY).value

        summary = await self.aggregator.summarize(window)
        top_items = await self.aggregator.top_items(window, limit=top_limit)
        hourly = await self.aggregator.hourly_sales(window)
        sales = await self.aggregator.load_sales(window)

        top_hour = max(hourly, key=lambda h: h.revenue) if hourly else None

        activities = None
        if self.scope.is_manager:
            performance = [_performance(c) for c in await self.aggregator.cashier_breakdown(window)]
            activities = CashierActivities(
                **await self._cashier_counts(),
                top_performing_cashier=performance[0] if performance else None,
                cashier_performance=performance
            )

        return ComprehensiveReportData(
            period=ComprehensiveReportPeriod(type=period_type, start_date=window.start, end_date=window.end),
            summary=RevenueFigures(
                total_revenue=summary.total_revenue,
                total_billed=summary.total_billed,
                total_outstanding=summary.total_outstanding,
                partial_payments_count=summary.partial_payments_count,
                transaction_count=summary.transaction_count,
                item_count=summary.item_count,
                average_transaction_value=summary.average_transaction_value
            ),
            top_products=[
                TopItem(item_id=t.item_id, name=t.name, quantity=t.quantity, revenue=t.revenue)
                for t in top_items
            ],
            sales_by_category=self._categories(sales),
            daily_sales=self._series(sales, GroupBy.DAY),
            hourly_sales=[
                HourlyBucket(hour=h.label, amount=h.revenue, transactions=h.transaction_count)
                for h in hourly
            ],
            top_selling_hour=top_hour.label if top_hour else None,
            inventory=await self._inventory_stats(),
            cashier_activities=activities
        )

    async def cashier_daily_sales(self, day: Optional[date] = None, start_date: Optional[date] = None,
                                  end_date: Optional[date] = None,
                                  cashier_id: Optional[UUID] = None) -> CashierDailySalesData:
        """Per-cashier transactions with outstanding balances. Managers only."""
        self.scope.require_manager("Only managers can access cashier daily sales reports")

        if day is not None:
            window = windows.day_window(day)
        elif start_date or end_date:
            window = self._resolve_window(None, start_date, end_date)
        else:
            window = windows.today()

        sales = await self.aggregator.load_sales(window, cashier_id)

        result = await self.db.execute(
            select(User).where(User.role == UserRole.CASHIER, User.manager_id == self.scope.manager_id)
        )
        names = {user.id: user.full_name for user in result.scalars().all()}

        grouped: Dict[Optional[UUID], List[Sale]] = {}
        for sale in sales:
            grouped.setdefault(sale.cashier_id, []).append(sale)

        summaries = []
        for group_cashier_id, cashier_sales in grouped.items():
            figures = RevenueSummary.from_sales(cashier_sales)
            partial = [s for s in cashier_sales if s.outstanding > 0]
            summaries.append(CashierDailySummary(
                cashier_id=group_cashier_id,
                cashier_name=names.get(group_cashier_id, "Unassigned" if group_cashier_id is None else "Unknown Cashier"),
                total_sales=figures.total_revenue,
                total_billed=figures.total_billed,
                total_transactions=figures.transaction_count,
                total_items=figures.item_count,
                partial_payments=len(partial),
                outstanding_balance=figures.total_outstanding,
                partial_transactions=[_transaction(s) for s in partial],
                transactions=[_transaction(s) for s in cashier_sales]
            ))
        summaries.sort(key=lambda s: s.total_sales, reverse=True)

        overall = RevenueSummary.from_sales(sales)
        return CashierDailySalesData(
            start_date=window.start,
            end_date=window.end,
            total_sales=overall.total_revenue,
            total_outstanding=overall.total_outstanding,
            cashier_summaries=summaries
        )
