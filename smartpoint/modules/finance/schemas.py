"""
Pydantic schemas for the finance module
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from smartpoint.common.schemas import CamelModel
from smartpoint.modules.finance.windows import GroupBy
from smartpoint.modules.sales.computation import PaymentMethod, PaymentStatus


class RevenueFigures(CamelModel):
    total_revenue: Decimal = Field(description="Sum of collected paid amounts")
    total_billed: Decimal = Field(description="Sum of sale totals")
    total_outstanding: Decimal
    partial_payments_count: int
    transaction_count: int
    item_count: int
    average_transaction_value: Decimal


class SummaryData(RevenueFigures):
    start_date: datetime
    end_date: datetime
    previous_revenue: Decimal
    growth: float


class SummaryResponse(CamelModel):
    success: bool = True
    data: SummaryData


class CashierPerformance(CamelModel):
    cashier_id: UUID
    cashier_name: str
    total_sales: Decimal = Field(description="Collected revenue")
    total_billed: Decimal
    total_transactions: int
    total_items: int
    outstanding_balance: Decimal
    partial_payments: int
    average_transaction_value: Decimal


class DashboardHomeData(CamelModel):
    # Today
    today_sales: Decimal
    today_billed: Decimal
    today_transactions: int
    today_items: int
    today_outstanding: Decimal
    today_partial_payments: int
    today_average_transaction_value: Decimal

    # Comparisons
    yesterday_sales: Decimal
    yesterday_transactions: int
    week_sales: Decimal
    week_transactions: int
    monthly_revenue: Decimal
    monthly_transactions: int
    sales_growth: float
    today_vs_average: float

    # Inventory
    total_products: int
    products_added_this_week: int
    categories_count: int
    low_stock_count: int
    critical_stock_count: int

    # Orders
    pending_orders: int
    pending_amount: Decimal

    # Cashiers, filled for managers only
    total_cashiers: int = 0
    active_cashiers: int = 0
    inactive_cashiers: int = 0
    top_performing_cashier: Optional[CashierPerformance] = None
    cashier_performance: List[CashierPerformance] = Field(default_factory=list)
    weekly_performance: List[CashierPerformance] = Field(default_factory=list)


class DashboardHomeResponse(CamelModel):
    success: bool = True
    data: DashboardHomeData


class SalesBucket(CamelModel):
    period: date
    total_sales: Decimal
    total_billed: Decimal
    total_transactions: int
    average_transaction: Decimal
    total_items: int
    total_tax: Decimal
    total_discount: Decimal
    total_outstanding: Decimal


class PaymentMethodBreakdown(CamelModel):
    payment_method: PaymentMethod
    total: Decimal = Field(description="Collected amount")
    count: int


class CategoryBreakdown(CamelModel):
    category: str
    total: Decimal = Field(description="Sum of line subtotals")
    quantity: int
    count: int
    percentage: float = Field(default=0.0, description="Share of all line subtotals in the window")


class SalesReportPeriod(CamelModel):
    start_date: datetime
    end_date: datetime
    group_by: GroupBy


class SalesReportSummary(CamelModel):
    total_sales: Decimal
    total_billed: Decimal
    total_transactions: int
    total_items: int
    total_outstanding: Decimal


class SalesReportData(CamelModel):
    period: SalesReportPeriod
    sales_data: List[SalesBucket]
    payment_methods: List[PaymentMethodBreakdown]
    categories: List[CategoryBreakdown]
    summary: SalesReportSummary


class SalesReportResponse(CamelModel):
    success: bool = True
    data: SalesReportData


class CashierTransaction(CamelModel):
    id: UUID
    receipt_number: str
    customer_name: Optional[str] = None
    total: Decimal
    paid_amount: Decimal
    outstanding_balance: Decimal
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    item_count: int
    sale_date: datetime


class CashierDailySummary(CamelModel):
    cashier_id: Optional[UUID] = None
    cashier_name: str
    total_sales: Decimal = Field(description="Collected revenue")
    total_billed: Decimal
    total_transactions: int
    total_items: int
    partial_payments: int
    outstanding_balance: Decimal
    partial_transactions: List[CashierTransaction]
    transactions: List[CashierTransaction]


class CashierDailySalesData(CamelModel):
    start_date: datetime
    end_date: datetime
    total_sales: Decimal
    total_outstanding: Decimal
    cashier_summaries: List[CashierDailySummary]


class CashierDailySalesResponse(CamelModel):
    success: bool = True
    data: CashierDailySalesData


class TopItem(CamelModel):
    item_id: UUID
    name: str
    quantity: int
    revenue: Decimal = Field(description="Sum of line subtotals")


class HourlyBucket(CamelModel):
    hour: str
    amount: Decimal = Field(description="Collected amount")
    transactions: int


class InventoryStats(CamelModel):
    total_products: int
    total_stock_value: Decimal
    low_stock_items: int
    out_of_stock_items: int
    stock_health: float = Field(description="Percentage of active items above their minimum stock")


class CashierActivities(CamelModel):
    total_cashiers: int = 0
    active_cashiers: int = 0
    inactive_cashiers: int = 0
    top_performing_cashier: Optional[CashierPerformance] = None
    cashier_performance: List[CashierPerformance] = Field(default_factory=list)


class ComprehensiveReportPeriod(CamelModel):
    type: str
    start_date: datetime
    end_date: datetime


class ComprehensiveReportData(CamelModel):
    period: ComprehensiveReportPeriod
    summary: RevenueFigures
    top_products: List[TopItem]
    sales_by_category: List[CategoryBreakdown]
    daily_sales: List[SalesBucket]
    hourly_sales: List[HourlyBucket]
    top_selling_hour: Optional[str] = None
    inventory: InventoryStats
    cashier_activities: Optional[CashierActivities] = None


class ComprehensiveReportResponse(CamelModel):
    success: bool = True
    data: ComprehensiveReportData
