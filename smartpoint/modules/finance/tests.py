"""
Tests for the finance module

Growth rule, reporting windows, collected-revenue aggregation and the
dashboard/report endpoints.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import auth_headers, persist
from smartpoint.common.exceptions import Forbidden, InvalidInput
from smartpoint.modules.access.policy import resolve_scope
from smartpoint.modules.auth.models import User, UserRole
from smartpoint.modules.finance import windows
from smartpoint.modules.finance.aggregator import RevenueAggregator, calculate_growth
from smartpoint.modules.finance.service import FinanceService
from smartpoint.modules.finance.windows import GroupBy
from smartpoint.modules.sales.computation import PaymentMethod, PaymentStatus
from smartpoint.modules.sales.models import Sale, SaleItem


def build_sale(owner, item, paid, quantity=1, cashier=None, status=None, sale_date=None,
               method=PaymentMethod.CASH, receipt=None):
    line_total = item.price * quantity
    return Sale(
        receipt_number=receipt or uuid4().hex[:12],
        items=[SaleItem(
            item_id=item.id, name=item.name, category=item.category,
            price=item.price, quantity=quantity, subtotal=line_total
        )],
        paid_amount=Decimal(str(paid)),
        payment_status=status,
        payment_method=method,
        user_id=cashier.id if cashier else owner.id,
        manager_id=owner.id,
        cashier_id=cashier.id if cashier else None,
        device_id="test-device",
        sale_date=sale_date or datetime.now()
    )


# ===== GROWTH =====

class TestGrowth:

    @pytest.mark.parametrize("current,previous,expected", [
        (0, 0, 0.0),
        (50, 0, 100.0),
        (150, 100, 50.0),
        (50, 100, -50.0),
        (Decimal("0"), Decimal("20"), -100.0),
    ])
    def test_growth(self, current, previous, expected):
        assert calculate_growth(current, previous) == expected


# ===== WINDOWS =====

class TestWindows:
    NOW = datetime(2026, 10, 14, 15, 30)  # a Wednesday

    def test_today_and_yesterday_are_inclusive(self):
        today = windows.today(self.NOW)
        yesterday = windows.yesterday(self.NOW)

        assert today.start == datetime(2026, 10, 14)
        assert today.end == datetime.combine(date(2026, 10, 14), time.max)
        assert yesterday.start == datetime(2026, 10, 13)
        assert today.contains(today.end)

    @pytest.mark.parametrize("first_day,expected_start", [
        (6, date(2026, 10, 11)),   # Sunday
        (0, date(2026, 10, 12)),   # Monday
        (2, date(2026, 10, 14)),   # Wednesday itself
        (3, date(2026, 10, 8)),    # Thursday
    ])
    def test_week_starts_on_first_day_of_week(self, first_day, expected_start):
        week = windows.this_week(first_day, self.NOW)

        assert week.start.date() == expected_start
        assert week.end.date() == expected_start + timedelta(days=6)
        assert week.contains(self.NOW)

    def test_this_month_handles_leap_february(self):
        month = windows.this_month(datetime(2024, 2, 10))

        assert month.start == datetime(2024, 2, 1)
        assert month.end.date() == date(2024, 2, 29)

    def test_custom_range(self):
        window = windows.custom_range(date(2026, 10, 1), date(2026, 10, 1))

        assert window.contains(datetime(2026, 10, 1, 23, 59, 59))
        with pytest.raises(InvalidInput):
            windows.custom_range(date(2026, 10, 2), date(2026, 10, 1))

    def test_previous_window_has_same_length(self):
        window = windows.today(self.NOW)
        previous = window.previous()

        assert previous.end < window.start
        assert previous.start == datetime(2026, 10, 13)

    def test_bucket_keys(self):
        assert windows.bucket_key(self.NOW, GroupBy.DAY, 6) == date(2026, 10, 14)
        assert windows.bucket_key(self.NOW, GroupBy.WEEK, 6) == date(2026, 10, 11)
        assert windows.bucket_key(self.NOW, GroupBy.MONTH, 6) == date(2026, 10, 1)


# ===== AGGREGATION =====

@pytest.mark.anyio
class TestRevenueAggregator:

    async def test_revenue_equals_sum_of_paid_amounts(self, session, database, manager, cashier, make_item):
        item = await make_item(manager, price=Decimal("20.00"), stock=100)
        await persist(
            database,
            build_sale(manager, item, paid=20, receipt="A1"),
            build_sale(manager, item, paid=15, receipt="A2", cashier=cashier),
            build_sale(manager, item, paid=0, quantity=2, receipt="A3", cashier=cashier),
            build_sale(manager, item, paid="33.33", quantity=3, receipt="A4"),
            build_sale(manager, item, paid=20, receipt="A5", status=PaymentStatus.REFUNDED),
            build_sale(manager, item, paid=0, receipt="A6", status=PaymentStatus.FAILED),
        )

        aggregator = RevenueAggregator(session, resolve_scope(manager))
        window = windows.today()
        summary = await aggregator.summarize(window)
        sales = await aggregator.load_sales(window)

        assert summary.total_revenue == sum(s.paid_amount for s in sales)
        assert summary.total_revenue == Decimal("68.33")
        assert summary.total_billed == Decimal("140.00")
        assert summary.total_outstanding == Decimal("71.67")
        assert summary.partial_payments_count == 2
        assert summary.transaction_count == 4
        assert summary.item_count == 7
        assert summary.average_transaction_value == Decimal("17.08")

    async def test_window_excludes_other_days(self, session, database, manager, make_item):
        item = await make_item(manager, price=Decimal("10.00"))
        await persist(
            database,
            build_sale(manager, item, paid=10, receipt="B1"),
            build_sale(manager, item, paid=10, receipt="B2", sale_date=datetime.now() - timedelta(days=1)),
        )

        aggregator = RevenueAggregator(session, resolve_scope(manager))

        assert (await aggregator.summarize(windows.today())).total_revenue == Decimal("10.00")
        assert (await aggregator.summarize(windows.yesterday())).total_revenue == Decimal("10.00")

    async def test_cashier_breakdown_sorted_by_revenue(self, session, database, manager, cashier, make_item):
        top = await persist(database, User(
            username="tina", first_name="Tina", last_name="Top", role=UserRole.CASHIER, manager_id=manager.id
        ))
        item = await make_item(manager, price=Decimal("10.00"), stock=50)
        await persist(
            database,
            build_sale(manager, item, paid=10, receipt="C1", cashier=cashier),
            build_sale(manager, item, paid=30, quantity=3, receipt="C2", cashier=top),
            build_sale(manager, item, paid=5, receipt="C3", cashier=top),
            build_sale(manager, item, paid=100, quantity=10, receipt="C4"),
        )

        breakdown = await RevenueAggregator(session, resolve_scope(manager)).cashier_breakdown(windows.today())

        assert [c.cashier_name for c in breakdown] == ["Tina Top", "Carlos Ruiz"]
        assert breakdown[0].total_revenue == Decimal("35.00")
        assert breakdown[0].item_count == 4
        assert breakdown[0].total_outstanding == Decimal("5.00")
        assert breakdown[0].partial_payments_count == 1

    async def test_other_store_is_not_counted(self, session, database, manager, other_manager, make_item):
        item = await make_item(other_manager, price=Decimal("10.00"))
        await persist(database, build_sale(other_manager, item, paid=10, receipt="D1"))

        summary = await RevenueAggregator(session, resolve_scope(manager)).summarize(windows.today())
        assert summary.transaction_count == 0
        assert summary.total_revenue == Decimal("0")

    async def test_top_items_and_hourly_sales(self, session, database, manager, make_item):
        rice = await make_item(manager, name="Rice", price=Decimal("5.00"), stock=50)
        oil = await make_item(manager, name="Oil", price=Decimal("20.00"), stock=50)
        morning = datetime.combine(date.today(), time(9, 10))
        evening = datetime.combine(date.today(), time(17, 5))
        await persist(
            database,
            build_sale(manager, rice, paid=20, quantity=4, receipt="T1", sale_date=morning),
            build_sale(manager, oil, paid=20, receipt="T2", sale_date=morning + timedelta(minutes=30)),
            build_sale(manager, oil, paid=10, quantity=2, receipt="T3", sale_date=evening),
            build_sale(manager, rice, paid=50, quantity=10, receipt="T4", sale_date=evening,
                       status=PaymentStatus.REFUNDED),
        )

        aggregator = RevenueAggregator(session, resolve_scope(manager))
        top = await aggregator.top_items(windows.today())
        hourly = await aggregator.hourly_sales(windows.today())

        assert [(t.name, t.quantity, t.revenue) for t in top] == [
            ("Oil", 3, Decimal("60.00")),
            ("Rice", 4, Decimal("20.00")),
        ]
        assert [t.name for t in await aggregator.top_items(windows.today(), limit=1)] == ["Oil"]
        assert [(h.label, h.revenue, h.transaction_count) for h in hourly] == [
            ("09:00", Decimal("40.00"), 2),
            ("17:00", Decimal("10.00"), 1),
        ]


# ===== ENDPOINTS =====

@pytest.mark.anyio
class TestFinanceEndpoints:

    async def test_dashboard_revenue_is_collected_amount(self, client, manager, make_item):
        small = await make_item(manager, name="Rice", price=Decimal("500.00"), stock=10)
        large = await make_item(manager, name="Oil", price=Decimal("6000.00"), stock=10)
        for item in (small, large):
            response = await client.post(
                "/sales/checkout",
                json={
                    "items": [{"productId": str(item.id), "quantity": 1}],
                    "total": str(item.price),
                    "paidAmount": str(item.price)
                },
                headers=auth_headers(manager)
            )
            assert response.status_code == 201

        response = await client.get("/finance/dashboard/home", headers=auth_headers(manager))

        assert response.status_code == 200
        data = response.json()["data"]
        assert Decimal(data["todaySales"]) == Decimal("6500")
        assert data["todayTransactions"] == 2
        assert data["todayItems"] == 2
        assert data["totalProducts"] == 2
        assert data["categoriesCount"] == 1
        assert data["salesGrowth"] == 100.0

    async def test_dashboard_tracks_partial_payments(self, client, database, manager, cashier, make_item):
        item = await make_item(manager, price=Decimal("100.00"), stock=2, min_stock=5)
        await persist(
            database,
            build_sale(manager, item, paid=40, receipt="E1", cashier=cashier),
            build_sale(manager, item, paid=0, receipt="E2"),
        )

        response = await client.get("/finance/dashboard/home", headers=auth_headers(manager))

        data = response.json()["data"]
        assert Decimal(data["todaySales"]) == Decimal("40")
        assert Decimal(data["todayBilled"]) == Decimal("200")
        assert Decimal(data["todayOutstanding"]) == Decimal("160")
        assert data["todayPartialPayments"] == 1
        assert data["pendingOrders"] == 1
        assert Decimal(data["pendingAmount"]) == Decimal("100")
        assert data["lowStockCount"] == 1
        assert data["criticalStockCount"] == 1
        assert data["totalCashiers"] == 1
        assert data["topPerformingCashier"]["cashierName"] == "Carlos Ruiz"
        assert Decimal(data["topPerformingCashier"]["totalSales"]) == Decimal("40")

    async def test_cashier_dashboard_hides_cashier_block(self, client, cashier, manager):
        response = await client.get("/finance/dashboard/home", headers=auth_headers(cashier))

        data = response.json()["data"]
        assert data["totalCashiers"] == 0
        assert data["cashierPerformance"] == []

    async def test_sales_report_groups_by_day(self, client, database, manager, make_item):
        item = await make_item(manager, price=Decimal("10.00"), stock=50)
        today = datetime.now()
        await persist(
            database,
            build_sale(manager, item, paid=10, receipt="F1", sale_date=today),
            build_sale(manager, item, paid=20, quantity=2, receipt="F2", sale_date=today, method=PaymentMethod.CARD),
            build_sale(manager, item, paid=5, receipt="F3", sale_date=today - timedelta(days=1)),
            build_sale(manager, item, paid=10, receipt="F4", sale_date=today, status=PaymentStatus.REFUNDED),
        )
        start = (today - timedelta(days=1)).date().isoformat()
        end = today.date().isoformat()

        response = await client.get(
            f"/finance/reports/sales?startDate={start}&endDate={end}&groupBy=day",
            headers=auth_headers(manager)
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [b["period"] for b in data["salesData"]] == [start, end]
        assert Decimal(data["salesData"][1]["totalSales"]) == Decimal("30")
        assert Decimal(data["summary"]["totalSales"]) == Decimal("35")
        assert Decimal(data["summary"]["totalOutstanding"]) == Decimal("5")
        assert data["summary"]["totalTransactions"] == 3
        assert data["paymentMethods"][0]["paymentMethod"] == "card"
        assert data["categories"][0]["category"] == "Beverages"
        assert data["categories"][0]["quantity"] == 4

    async def test_sales_report_requires_dates(self, client, manager):
        response = await client.get("/finance/reports/sales", headers=auth_headers(manager))

        assert response.status_code == 400
        assert response.json()["message"] == "Start date and end date are required"

    async def test_cashier_daily_sales(self, client, database, manager, cashier, make_item):
        item = await make_item(manager, price=Decimal("50.00"), stock=10)
        await persist(
            database,
            build_sale(manager, item, paid=20, receipt="G1", cashier=cashier),
            build_sale(manager, item, paid=50, receipt="G2", cashier=cashier),
            build_sale(manager, item, paid=50, receipt="G3"),
        )

        response = await client.get(
            f"/finance/reports/cashier-daily-sales?date={date.today().isoformat()}",
            headers=auth_headers(manager)
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert Decimal(data["totalSales"]) == Decimal("120")
        carlos = data["cashierSummaries"][0]
        assert carlos["cashierName"] == "Carlos Ruiz"
        assert carlos["totalTransactions"] == 2
        assert carlos["partialPayments"] == 1
        assert Decimal(carlos["outstandingBalance"]) == Decimal("30")
        assert carlos["partialTransactions"][0]["receiptNumber"] == "G1"
        assert data["cashierSummaries"][1]["cashierName"] == "Unassigned"

    async def test_cashier_daily_sales_is_manager_only(self, client, cashier):
        response = await client.get(
            "/finance/reports/cashier-daily-sales", headers=auth_headers(cashier)
        )
        assert response.status_code == 403

    async def test_summary_period(self, client, database, manager, make_item):
        item = await make_item(manager, price=Decimal("10.00"))
        await persist(database, build_sale(manager, item, paid=10, receipt="H1"))

        response = await client.get("/finance/summary?period=today", headers=auth_headers(manager))

        data = response.json()["data"]
        assert Decimal(data["totalRevenue"]) == Decimal("10")
        assert Decimal(data["previousRevenue"]) == Decimal("0")
        assert data["growth"] == 100.0

    async def test_service_requires_manager_for_daily_sales(self, session, cashier, manager):
        service = FinanceService(session, resolve_scope(cashier, manager))
        with pytest.raises(Forbidden):
            await service.cashier_daily_sales()

    async def test_comprehensive_report(self, client, database, manager, cashier, make_item):
        rice = await make_item(manager, name="Rice", price=Decimal("5.00"), stock=50, min_stock=5, category="Grains")
        oil = await make_item(manager, name="Oil", price=Decimal("20.00"), stock=0, min_stock=1, category="Pantry")
        await make_item(manager, name="Salt", price=Decimal("2.00"), stock=3, min_stock=5, category="Pantry")
        await persist(
            database,
            build_sale(manager, rice, paid=20, quantity=4, receipt="J1",
                       sale_date=datetime.combine(date.today(), time(9, 10))),
            build_sale(manager, oil, paid=40, quantity=2, receipt="J2", cashier=cashier,
                       sale_date=datetime.combine(date.today(), time(17, 5))),
        )

        response = await client.get("/finance/reports/comprehensive?period=today", headers=auth_headers(manager))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["period"]["type"] == "today"
        assert Decimal(data["summary"]["totalRevenue"]) == Decimal("60")
        assert data["topProducts"][0]["name"] == "Oil"
        assert data["topProducts"][0]["quantity"] == 2
        assert [(c["category"], c["percentage"]) for c in data["salesByCategory"]] == [
            ("Pantry", 66.67), ("Grains", 33.33)
        ]
        assert len(data["dailySales"]) == 1
        assert [h["hour"] for h in data["hourlySales"]] == ["09:00", "17:00"]
        assert data["topSellingHour"] == "17:00"

        inventory = data["inventory"]
        assert inventory["totalProducts"] == 3
        assert Decimal(inventory["totalStockValue"]) == Decimal("256")
        assert inventory["lowStockItems"] == 2
        assert inventory["outOfStockItems"] == 1
        assert inventory["stockHealth"] == 33.33

        assert data["cashierActivities"]["totalCashiers"] == 1
        assert data["cashierActivities"]["topPerformingCashier"]["cashierName"] == "Carlos Ruiz"

    async def test_comprehensive_report_for_cashier(self, client, cashier, manager):
        response = await client.get("/finance/reports/comprehensive", headers=auth_headers(cashier))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["cashierActivities"] is None
        assert data["topSellingHour"] is None
        assert data["inventory"]["stockHealth"] == 0.0

    async def test_comprehensive_report_needs_both_dates(self, client, manager):
        response = await client.get(
            f"/finance/reports/comprehensive?startDate={date.today().isoformat()}",
            headers=auth_headers(manager)
        )
        assert response.status_code == 400
