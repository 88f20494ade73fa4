"""
Tests for the inventory module

- StockLedger: conditional decrement, restore, operator adjustments
- Item endpoints: manual entry, low stock listing, adjustments, soft delete
"""

import pytest
from uuid import uuid4

from conftest import auth_headers, stock_of
from smartpoint.common.exceptions import InsufficientStock, InvalidInput, ItemNotFound
from smartpoint.modules.inventory.ledger import StockLedger, StockOperation

pytestmark = pytest.mark.anyio


# ===== STOCK LEDGER =====

class TestStockLedger:

    async def test_reserve_and_decrement(self, session, item):
        ledger = StockLedger(session)

        remaining = await ledger.reserve_and_decrement(item.id, 3, item.name)

        assert remaining == 2
        assert await ledger.available(item.id) == 2

    async def test_decrement_to_zero(self, session, item):
        ledger = StockLedger(session)
        assert await ledger.reserve_and_decrement(item.id, 5) == 0

    async def test_insufficient_stock_leaves_row_untouched(self, session, item):
        ledger = StockLedger(session)

        with pytest.raises(InsufficientStock) as exc_info:
            await ledger.reserve_and_decrement(item.id, 6, item.name)

        assert exc_info.value.available == 5
        assert exc_info.value.requested == 6
        assert exc_info.value.detail == 'Insufficient stock for item "Cola 500ml". Available: 5, Requested: 6'
        assert await ledger.available(item.id) == 5

    async def test_unknown_item(self, session, database):
        with pytest.raises(ItemNotFound):
            await StockLedger(session).reserve_and_decrement(uuid4(), 1)

    async def test_restore_has_no_upper_bound(self, session, item):
        ledger = StockLedger(session)
        assert await ledger.restore(item.id, 100) == 105

    async def test_restore_missing_item_is_skipped(self, session, database):
        assert await StockLedger(session).restore(uuid4(), 1) is None

    @pytest.mark.parametrize("operation,quantity,expected", [
        (StockOperation.SET, 12, 12),
        (StockOperation.ADD, 4, 9),
        (StockOperation.SUBTRACT, 2, 3),
        (StockOperation.SUBTRACT, 50, 0),
    ])
    async def test_adjust(self, session, item, operation, quantity, expected):
        assert await StockLedger(session).adjust(item.id, operation, quantity) == expected

    async def test_adjust_rejects_negative_quantity(self, session, item):
        with pytest.raises(InvalidInput):
            await StockLedger(session).adjust(item.id, StockOperation.ADD, -1)


# ===== ITEM ENDPOINTS =====

class TestItemEndpoints:

    async def test_create_item_as_cashier(self, client, cashier, manager):
        response = await client.post(
            "/items",
            json={"name": "  Bread ", "price": "2.50", "category": "Bakery", "stock": 3, "minStock": 5},
            headers={**auth_headers(cashier), "X-Device-ID": "till-2"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Bread"
        assert data["managerId"] == str(manager.id)
        assert data["cashierId"] == str(cashier.id)
        assert data["deviceId"] == "till-2"
        assert data["isLowStock"] is True
        assert data["isCriticalStock"] is False

    async def test_create_item_rejects_negative_stock(self, client, manager):
        response = await client.post(
            "/items",
            json={"name": "Bread", "price": "2.50", "category": "Bakery", "stock": -1},
            headers=auth_headers(manager)
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_low_stock(self, client, manager, make_item):
        await make_item(manager, name="Plenty", stock=40, min_stock=5)
        await make_item(manager, name="Low", stock=4, min_stock=5)
        await make_item(manager, name="Critical", stock=1, min_stock=5)
        await make_item(manager, name="Hidden", stock=0, min_stock=5, is_active=False)

        response = await client.get("/items/low-stock", headers=auth_headers(manager))

        assert response.status_code == 200
        body = response.json()
        assert [i["name"] for i in body["data"]] == ["Critical", "Low"]
        assert body["count"] == 2
        assert body["criticalCount"] == 1

    async def test_adjust_stock_endpoint(self, client, database, manager, item):
        response = await client.post(
            f"/items/{item.id}/stock",
            json={"quantity": 10, "operation": "subtract"},
            headers=auth_headers(manager)
        )

        assert response.status_code == 200
        assert response.json()["stock"] == 0
        assert await stock_of(database, item.id) == 0

    async def test_adjust_defaults_to_set(self, client, manager, item):
        response = await client.post(
            f"/items/{item.id}/stock", json={"quantity": 7}, headers=auth_headers(manager)
        )
        assert response.json()["stock"] == 7

    async def test_adjust_other_store_item(self, client, other_manager, item):
        response = await client.post(
            f"/items/{item.id}/stock", json={"quantity": 7}, headers=auth_headers(other_manager)
        )
        assert response.status_code == 404

    async def test_soft_delete(self, client, database, manager, item):
        response = await client.delete(f"/items/{item.id}", headers=auth_headers(manager))
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = await client.get(f"/items/{item.id}", headers=auth_headers(manager))
        assert response.status_code == 404
        assert await stock_of(database, item.id) == 5
