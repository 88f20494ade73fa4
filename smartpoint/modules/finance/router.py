from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query

from smartpoint.dependencies.dbDependecies import async_db_dependency
from smartpoint.dependencies.scopeDependencies import scope_dependency
from smartpoint.modules.finance.service import FinanceService
from smartpoint.modules.finance.windows import GroupBy, Period
from smartpoint.modules.finance.schemas import (
    CashierDailySalesResponse, ComprehensiveReportResponse, DashboardHomeResponse, SalesReportResponse,
    SummaryResponse
)

finance_router = APIRouter(prefix="/finance", tags=["Finance"])


@finance_router.get("/dashboard/home", response_model=DashboardHomeResponse)
async def get_home_dashboard(db: async_db_dependency, scope: scope_dependency):
    """
    Home dashboard figures for the caller's store.

    Sales figures are collected amounts (paidAmount). Cashier performance is
    included for managers only.
    """
    service = FinanceService(db, scope)
    return DashboardHomeResponse(data=await service.dashboard_home())


@finance_router.get("/summary", response_model=SummaryResponse)
async def get_revenue_summary(
    db: async_db_dependency,
    scope: scope_dependency,
    period: Optional[Period] = Query(None, description="today, yesterday, week or month"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    cashier_id: Optional[UUID] = Query(None, alias="cashierId")
):
    """Revenue figures for a period or date range, with growth over the preceding window."""
    service = FinanceService(db, scope)
    return SummaryResponse(data=await service.summary(period, start_date, end_date, cashier_id))


@finance_router.get("/reports/sales", response_model=SalesReportResponse)
async def get_sales_report(
    db: async_db_dependency,
    scope: scope_dependency,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    group_by: GroupBy = Query(GroupBy.DAY, alias="groupBy")
):
    service = FinanceService(db, scope)
    return SalesReportResponse(data=await service.sales_report(start_date, end_date, group_by))


@finance_router.get("/reports/comprehensive", response_model=ComprehensiveReportResponse)
async def get_comprehensive_report(
    db: async_db_dependency,
    scope: scope_dependency,
    period: Optional[Period] = Query(None, description="today, yesterday, week or month"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    limit: int = Query(10, ge=1, le=50, description="Number of top products")
):
    """
    Reports screen data: summary, top products, category shares, daily and
    hourly series, inventory health. Cashier activity is included for
    managers only.
    """
    service = FinanceService(db, scope)
    data = await service.comprehensive_report(period, start_date, end_date, top_limit=limit)
    return ComprehensiveReportResponse(data=data)


@finance_router.get("/reports/cashier-daily-sales", response_model=CashierDailySalesResponse)
async def get_cashier_daily_sales(
    db: async_db_dependency,
    scope: scope_dependency,
    day: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    cashier_id: Optional[UUID] = Query(None, alias="cashierId")
):
    """
    Per-cashier transaction breakdown (managers only).

    Defaults to today when neither date nor startDate/endDate is given.
    """
    service = FinanceService(db, scope)
    data = await service.cashier_daily_sales(day, start_date, end_date, cashier_id)
    return CashierDailySalesResponse(data=data)
