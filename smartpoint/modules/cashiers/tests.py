"""
Tests for cashier management
"""

from decimal import Decimal

import pytest

from conftest import auth_headers

pytestmark = pytest.mark.anyio


class TestCashierEndpoints:

    async def test_list_includes_todays_collected_sales(self, client, manager, cashier, item):
        await client.post(
            "/sales/checkout",
            json={"items": [{"productId": str(item.id), "quantity": 2}], "total": "20", "paidAmount": "15"},
            headers=auth_headers(cashier)
        )

        response = await client.get("/cashiers", headers=auth_headers(manager))

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["fullName"] == "Carlos Ruiz"
        assert Decimal(data[0]["todaySales"]) == Decimal("15")
        assert data[0]["todayTransactions"] == 1

    async def test_list_is_manager_only(self, client, cashier):
        response = await client.get("/cashiers", headers=auth_headers(cashier))

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Only managers can view cashiers."

    async def test_other_manager_sees_none(self, client, cashier, other_manager):
        response = await client.get("/cashiers", headers=auth_headers(other_manager))
        assert response.json()["data"] == []

    async def test_deactivate_and_reactivate(self, client, manager, cashier):
        response = await client.post(f"/cashiers/{cashier.id}/deactivate", headers=auth_headers(manager))
        assert response.status_code == 200
        assert response.json()["data"]["isActive"] is False

        # Deactivated cashiers can no longer authenticate
        response = await client.get("/items/low-stock", headers=auth_headers(cashier))
        assert response.status_code == 401

        response = await client.post(f"/cashiers/{cashier.id}/deactivate", headers=auth_headers(manager))
        assert response.status_code == 404
        assert response.json()["message"] == "Cashier not found or already inactive"

        response = await client.get("/cashiers?includeInactive=true", headers=auth_headers(manager))
        assert len(response.json()["data"]) == 1

        response = await client.post(f"/cashiers/{cashier.id}/reactivate", headers=auth_headers(manager))
        assert response.status_code == 200
        assert response.json()["message"] == "Cashier Carlos Ruiz has been reactivated successfully"

    async def test_cannot_manage_other_stores_cashier(self, client, cashier, other_manager):
        response = await client.post(f"/cashiers/{cashier.id}/deactivate", headers=auth_headers(other_manager))
        assert response.status_code == 404
