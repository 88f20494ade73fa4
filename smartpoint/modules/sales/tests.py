"""
Tests for the sales module

Covers the computation engine (totals, change, payment status, receipt
numbers), checkout with all-or-nothing stock, refunds, failures, cashier
attribution and scoped lookups.
"""

import re
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import insert, select

from conftest import auth_headers, persist, stock_of
from smartpoint.modules.sales.computation import (
    PaymentStatus, compute_change, compute_totals, derive_payment_status,
    generate_receipt_number, line_subtotal
)
from smartpoint.modules.auth.models import User, UserRole
from smartpoint.modules.sales.backfill import backfill_paid_amounts
from smartpoint.modules.sales.models import Sale, SaleItem


def checkout_body(*lines, total="20", paid="20", **extra):
    body = {
        "items": [
            {"productId": str(item.id), "quantity": quantity}
            for item, quantity in lines
        ],
        "total": total,
        "paidAmount": paid,
    }
    body.update(extra)
    return body


# ===== COMPUTATION ENGINE =====

class TestComputation:

    def test_partial_payment_scenario(self):
        totals = compute_totals([line_subtotal(10, 2)], tax=0, discount=0, paid_amount=15)

        assert totals.subtotal == Decimal("20.00")
        assert totals.total == Decimal("20.00")
        assert totals.change == Decimal("0")
        assert totals.payment_status == PaymentStatus.PARTIAL
        assert totals.outstanding == Decimal("5.00")

    def test_overpayment_gives_change(self):
        totals = compute_totals([line_subtotal(10, 2)], paid_amount=25)

        assert totals.change == Decimal("5.00")
        assert totals.payment_status == PaymentStatus.COMPLETED

    def test_total_applies_tax_and_discount(self):
        totals = compute_totals(["12.50", "7.50"], tax="3.20", discount="1.20", paid_amount=0)

        assert totals.subtotal == Decimal("20.00")
        assert totals.total == Decimal("22.00")
        assert totals.payment_status == PaymentStatus.PENDING

    def test_provided_subtotal_wins(self):
        assert line_subtotal(10, 2, subtotal=18) == Decimal("18.00")
        assert line_subtotal("2.5", 3) == Decimal("7.50")

    @pytest.mark.parametrize("paid,total,expected", [
        (0, 20, PaymentStatus.PENDING),
        (5, 20, PaymentStatus.PARTIAL),
        (20, 20, PaymentStatus.COMPLETED),
        (30, 20, PaymentStatus.COMPLETED),
        (0, 0, PaymentStatus.PENDING),
    ])
    def test_derived_status(self, paid, total, expected):
        assert derive_payment_status(paid, total) == expected

    @pytest.mark.parametrize("sticky", [PaymentStatus.REFUNDED, PaymentStatus.FAILED])
    def test_terminal_status_is_sticky(self, sticky):
        assert derive_payment_status(50, 20, current=sticky) == sticky
        assert derive_payment_status(0, 20, current=sticky) == sticky

    def test_change_never_negative(self):
        assert compute_change(5, 20) == Decimal("0")

    def test_receipt_number_format(self):
        receipt = generate_receipt_number(now_ms=1718000000123456)

        assert re.fullmatch(r"00123456[A-Z0-9]{4}", receipt)


# ===== CHECKOUT =====

@pytest.mark.anyio
class TestCheckout:

    async def test_partial_checkout(self, client, database, manager, item):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, 2), total="20", paid="15"),
            headers=auth_headers(manager)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Transaction completed successfully"
        sale = body["data"]
        assert Decimal(sale["subtotal"]) == Decimal("20")
        assert Decimal(sale["total"]) == Decimal("20")
        assert Decimal(sale["change"]) == Decimal("0")
        assert Decimal(sale["outstanding"]) == Decimal("5")
        assert sale["paymentStatus"] == "partial"
        assert sale["items"][0]["name"] == "Cola 500ml"
        assert sale["cashierId"] is None
        assert sale["deviceId"] == "mobile-app"
        assert len(sale["receiptNumber"]) == 12
        assert await stock_of(database, item.id) == 3

    async def test_completed_checkout_with_change(self, client, manager, item):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, 2), total="20", paid="25"),
            headers=auth_headers(manager)
        )

        sale = response.json()["data"]
        assert Decimal(sale["change"]) == Decimal("5")
        assert sale["paymentStatus"] == "completed"

    async def test_cashier_checkout_is_attributed(self, client, manager, cashier, item):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, 1), total="10", paid="0"),
            headers={**auth_headers(cashier), "X-Device-ID": "till-1"}
        )

        sale = response.json()["data"]
        assert sale["paymentStatus"] == "pending"
        assert sale["managerId"] == str(manager.id)
        assert sale["cashierId"] == str(cashier.id)
        assert sale["userId"] == str(cashier.id)
        assert sale["deviceId"] == "till-1"

    async def test_manager_attributes_checkout_to_cashier(self, client, manager, cashier, item):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, 1), total="10", paid="10", cashierId=str(cashier.id)),
            headers=auth_headers(manager)
        )
        assert response.json()["data"]["cashierId"] == str(cashier.id)

    async def test_declared_total_mismatch_keeps_computed(self, client, manager, item):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, 2), total="99", paid="20", tax="2", discount="1"),
            headers=auth_headers(manager)
        )

        sale = response.json()["data"]
        assert Decimal(sale["total"]) == Decimal("21")
        assert sale["paymentStatus"] == "partial"

    async def test_insufficient_stock_is_all_or_nothing(self, client, database, manager, make_item):
        first = await make_item(manager, name="Chips", stock=10)
        second = await make_item(manager, name="Juice", stock=1)

        response = await client.post(
            "/sales/checkout",
            json=checkout_body((first, 4), (second, 2), total="60", paid="60"),
            headers=auth_headers(manager)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "insufficient_stock"
        assert body["message"] == 'Insufficient stock for item "Juice". Available: 1, Requested: 2'
        assert await stock_of(database, first.id) == 10
        assert await stock_of(database, second.id) == 1

        async with database.session_factory() as session:
            result = await session.execute(select(Sale))
            assert result.scalars().all() == []

    async def test_same_item_on_two_lines(self, client, database, manager, item):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, 3), (item, 3), total="60", paid="60"),
            headers=auth_headers(manager)
        )

        assert response.status_code == 400
        assert await stock_of(database, item.id) == 5

    @pytest.mark.parametrize("body,message", [
        ({"items": [], "total": "10", "paidAmount": "10"}, "At least one item is required"),
        ({"total": "10", "paidAmount": "10"}, "At least one item is required"),
    ])
    async def test_missing_items(self, client, manager, body, message):
        response = await client.post("/sales/checkout", json=body, headers=auth_headers(manager))

        assert response.status_code == 400
        assert response.json()["message"] == message

    async def test_missing_paid_amount(self, client, manager, item):
        body = checkout_body((item, 1))
        del body["paidAmount"]

        response = await client.post("/sales/checkout", json=body, headers=auth_headers(manager))

        assert response.status_code == 400
        assert response.json()["message"] == "Total and paidAmount are required"

    async def test_zero_quantity_is_invalid(self, client, database, manager, item):
        response = await client.post(
            "/sales/checkout", json=checkout_body((item, 0)), headers=auth_headers(manager)
        )
        assert response.status_code == 400
        assert await stock_of(database, item.id) == 5

    async def test_unknown_item(self, client, manager):
        response = await client.post(
            "/sales/checkout",
            json={"items": [{"productId": str(uuid4()), "quantity": 1}], "total": "1", "paidAmount": "1"},
            headers=auth_headers(manager)
        )
        assert response.status_code == 404

    async def test_item_from_other_store(self, client, database, other_manager, item):
        response = await client.post(
            "/sales/checkout", json=checkout_body((item, 1)), headers=auth_headers(other_manager)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "unauthorized_scope"
        assert await stock_of(database, item.id) == 5

    async def test_duplicate_receipt(self, client, database, manager, item):
        body = checkout_body((item, 1), total="10", paid="10", receiptNumber="R-1001")

        first = await client.post("/sales/checkout", json=body, headers=auth_headers(manager))
        second = await client.post("/sales/checkout", json=body, headers=auth_headers(manager))

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error"] == "duplicate_receipt"
        assert await stock_of(database, item.id) == 4

    async def test_same_receipt_in_another_store(self, client, database, manager, other_manager,
                                                 item, make_item):
        other_item = await make_item(other_manager, name="Water 1L")
        body_a = checkout_body((item, 1), total="10", paid="10", receiptNumber="SHARED")
        body_b = checkout_body((other_item, 1), total="10", paid="10", receiptNumber="SHARED")

        first = await client.post("/sales/checkout", json=body_a, headers=auth_headers(manager))
        second = await client.post("/sales/checkout", json=body_b, headers=auth_headers(other_manager))

        assert first.status_code == 201
        assert second.status_code == 201
        assert await stock_of(database, other_item.id) == 4

        mine = await client.get("/sales/receipt/SHARED", headers=auth_headers(other_manager))
        assert mine.json()["data"]["id"] == second.json()["data"]["id"]


# ===== STATUS ACTIONS =====

@pytest.mark.anyio
class TestSaleActions:

    async def checkout(self, client, user, item, quantity=2, paid="20"):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, quantity), total="20", paid=paid),
            headers=auth_headers(user)
        )
        assert response.status_code == 201
        return response.json()["data"]

    async def test_refund_restores_stock(self, client, database, manager, item):
        sale = await self.checkout(client, manager, item)
        assert await stock_of(database, item.id) == 3

        response = await client.put(
            f"/sales/{sale['id']}/refund", json={"reason": "Damaged"}, headers=auth_headers(manager)
        )

        assert response.status_code == 200
        refunded = response.json()["data"]
        assert refunded["paymentStatus"] == "refunded"
        assert refunded["notes"] == "Refund Reason: Damaged"
        assert await stock_of(database, item.id) == 5

    async def test_refund_is_terminal(self, client, database, manager, item):
        sale = await self.checkout(client, manager, item)
        await client.put(f"/sales/{sale['id']}/refund", json={}, headers=auth_headers(manager))

        response = await client.put(f"/sales/{sale['id']}/refund", json={}, headers=auth_headers(manager))

        assert response.status_code == 404
        assert response.json()["error"] == "not_refundable"
        assert await stock_of(database, item.id) == 5

    async def test_refund_of_partial_sale_fails(self, client, database, manager, item):
        sale = await self.checkout(client, manager, item, paid="15")

        response = await client.put(f"/sales/{sale['id']}/refund", json={}, headers=auth_headers(manager))

        assert response.status_code == 404
        assert response.json()["message"] == "Sale not found or cannot be refunded"
        assert await stock_of(database, item.id) == 3

    async def test_refund_from_other_store(self, client, manager, other_manager, item):
        sale = await self.checkout(client, manager, item)
        response = await client.put(
            f"/sales/{sale['id']}/refund", json={}, headers=auth_headers(other_manager)
        )
        assert response.status_code == 404

    async def test_refund_stays_refunded_after_later_flush(self, database, manager, item):
        sale = Sale(
            receipt_number="R-STICKY",
            items=[SaleItem(item_id=item.id, name=item.name, price=Decimal("10"), quantity=2, subtotal=Decimal("20"))],
            paid_amount=Decimal("20"),
            payment_status=PaymentStatus.REFUNDED,
            user_id=manager.id,
            manager_id=manager.id,
            device_id="test-device"
        )
        await persist(database, sale)

        async with database.session_factory() as session:
            stored = (await session.execute(select(Sale).where(Sale.id == sale.id))).scalar_one()
            stored.paid_amount = Decimal("25")
            await session.commit()
            assert stored.payment_status == PaymentStatus.REFUNDED
            assert stored.change == Decimal("5.00")
            assert stored.total == Decimal("20.00")

    async def test_fail_pending_sale(self, client, database, cashier, item):
        sale = await self.checkout(client, cashier, item, paid="0")

        response = await client.put(
            f"/sales/{sale['id']}/fail", json={"reason": "Card declined"}, headers=auth_headers(cashier)
        )

        assert response.status_code == 200
        assert response.json()["data"]["paymentStatus"] == "failed"
        assert await stock_of(database, item.id) == 5

    async def test_cannot_fail_completed_sale(self, client, manager, item):
        sale = await self.checkout(client, manager, item)
        response = await client.put(f"/sales/{sale['id']}/fail", json={}, headers=auth_headers(manager))
        assert response.status_code == 409

    async def test_cashier_reassigns_own_sale_only(self, client, database, manager, cashier, item):
        second_cashier = await persist(database, User(
            username="cora", first_name="Cora", role=UserRole.CASHIER, manager_id=manager.id
        ))
        own = await self.checkout(client, cashier, item, quantity=1)
        managers = await self.checkout(client, manager, item, quantity=1)

        response = await client.put(
            f"/sales/{own['id']}/cashier",
            json={"cashierId": str(second_cashier.id)},
            headers=auth_headers(cashier)
        )
        assert response.status_code == 200
        assert response.json()["data"]["cashierId"] == str(second_cashier.id)

        response = await client.put(
            f"/sales/{managers['id']}/cashier",
            json={"cashierId": str(second_cashier.id)},
            headers=auth_headers(cashier)
        )
        assert response.status_code == 403

    async def test_manager_clears_cashier(self, client, manager, cashier, item):
        sale = await self.checkout(client, cashier, item, quantity=1)
        response = await client.put(
            f"/sales/{sale['id']}/cashier", json={"cashierId": None}, headers=auth_headers(manager)
        )
        assert response.json()["data"]["cashierId"] is None


# ===== LOOKUPS =====

@pytest.mark.anyio
class TestSaleLookups:

    async def test_get_by_id_and_receipt(self, client, manager, cashier, item):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, 1), total="10", paid="10", receiptNumber="R-77"),
            headers=auth_headers(cashier)
        )
        sale_id = response.json()["data"]["id"]

        by_id = await client.get(f"/sales/{sale_id}", headers=auth_headers(manager))
        by_receipt = await client.get("/sales/receipt/R-77", headers=auth_headers(manager))

        assert by_id.status_code == 200
        assert by_receipt.json()["data"]["id"] == sale_id

    async def test_other_store_cannot_read(self, client, manager, other_manager, item):
        response = await client.post(
            "/sales/checkout",
            json=checkout_body((item, 1), total="10", paid="10", receiptNumber="R-88"),
            headers=auth_headers(manager)
        )
        sale_id = response.json()["data"]["id"]

        assert (await client.get(f"/sales/{sale_id}", headers=auth_headers(other_manager))).status_code == 404
        assert (await client.get("/sales/receipt/R-88", headers=auth_headers(other_manager))).status_code == 404


# ===== PAID-AMOUNT BACKFILL =====

async def seed_legacy_sale(database, owner, item, receipt, status, total, paid):
    """Insert a sale as older versions stored it, bypassing the save-time derivation."""
    sale_id = uuid4()
    async with database.session_factory() as session:
        await session.execute(insert(Sale.__table__).values(
            id=sale_id, receipt_number=receipt, subtotal=Decimal(total), total=Decimal(total),
            paid_amount=Decimal(paid), payment_status=status,
            user_id=owner.id, manager_id=owner.id, device_id="legacy"
        ))
        await session.execute(insert(SaleItem.__table__).values(
            id=uuid4(), sale_id=sale_id, item_id=item.id, name=item.name,
            price=Decimal(total), quantity=1, subtotal=Decimal(total)
        ))
        await session.commit()
    return sale_id


@pytest.mark.anyio
class TestBackfill:

    @pytest.fixture
    async def legacy(self, database, manager, item):
        return {
            "L1": await seed_legacy_sale(database, manager, item, "L1", PaymentStatus.COMPLETED, "30", "0"),
            "L2": await seed_legacy_sale(database, manager, item, "L2", PaymentStatus.PENDING, "20", "5"),
            "L3": await seed_legacy_sale(database, manager, item, "L3", PaymentStatus.PARTIAL, "20", "5"),
            "L4": await seed_legacy_sale(database, manager, item, "L4", PaymentStatus.REFUNDED, "10", "0"),
            "L5": await seed_legacy_sale(database, manager, item, "L5", PaymentStatus.COMPLETED, "10", "10"),
        }

    async def stored(self, database):
        async with database.session_factory() as session:
            result = await session.execute(select(Sale))
            return {
                sale.receipt_number: (sale.paid_amount, sale.payment_status, sale.change)
                for sale in result.scalars().all()
            }

    async def test_dry_run_persists_nothing(self, database, legacy):
        before = await self.stored(database)

        async with database.session_factory() as session:
            outcome = await backfill_paid_amounts(session, dry_run=True)

        assert outcome.updated == 2
        assert outcome.skipped == 1
        assert await self.stored(database) == before

    async def test_backfill_rules(self, database, legacy):
        async with database.session_factory() as session:
            outcome = await backfill_paid_amounts(session, batch_size=1)

        assert outcome.updated == 2
        stored = await self.stored(database)
        assert stored["L1"] == (Decimal("30.00"), PaymentStatus.COMPLETED, Decimal("0.00"))
        assert stored["L2"] == (Decimal("0.00"), PaymentStatus.PENDING, Decimal("0.00"))
        assert stored["L3"][:2] == (Decimal("5.00"), PaymentStatus.PARTIAL)
        assert stored["L4"][:2] == (Decimal("0.00"), PaymentStatus.REFUNDED)
        assert stored["L5"][:2] == (Decimal("10.00"), PaymentStatus.COMPLETED)

    async def test_second_run_changes_nothing(self, database, legacy):
        async with database.session_factory() as session:
            await backfill_paid_amounts(session)
        async with database.session_factory() as session:
            outcome = await backfill_paid_amounts(session)

        assert outcome.updated == 0
        assert outcome.skipped == 3
