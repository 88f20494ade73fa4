"""
Tests for the Access Scoping Policy

Scope resolution for managers and cashiers, by-id re-validation and the
NotLinked failure on every scoped endpoint.
"""

import pytest
from types import SimpleNamespace
from uuid import uuid4

from conftest import auth_headers
from smartpoint.common.exceptions import Forbidden, ItemNotFound, NotLinked
from smartpoint.core.config import settings
from smartpoint.modules.access.policy import resolve_scope
from smartpoint.modules.auth.models import User, UserRole


def build_user(role: UserRole, manager_id=None, first_day_of_week=None) -> User:
    return User(
        id=uuid4(),
        username=f"user-{uuid4().hex[:8]}",
        first_name="Test",
        role=role,
        manager_id=manager_id,
        first_day_of_week=first_day_of_week
    )


# ===== RESOLUTION =====

class TestResolveScope:

    def test_manager_scope_is_self(self):
        manager = build_user(UserRole.MANAGER)
        scope = resolve_scope(manager)

        assert scope.is_manager
        assert scope.manager_id == manager.id
        assert scope.actor_id == manager.id
        assert scope.cashier_id is None

    def test_cashier_scope_is_linked_manager(self):
        manager = build_user(UserRole.MANAGER, first_day_of_week=0)
        cashier = build_user(UserRole.CASHIER, manager_id=manager.id)
        scope = resolve_scope(cashier, manager)

        assert scope.is_cashier
        assert scope.manager_id == manager.id
        assert scope.cashier_id == cashier.id
        assert scope.first_day_of_week == 0

    def test_cashier_without_manager_is_not_linked(self):
        cashier = build_user(UserRole.CASHIER)
        with pytest.raises(NotLinked):
            resolve_scope(cashier)

    def test_week_start_defaults_from_settings(self):
        scope = resolve_scope(build_user(UserRole.MANAGER))
        assert scope.first_day_of_week == settings.DEFAULT_FIRST_DAY_OF_WEEK


class TestScopeChecks:

    def test_ensure_owns_rejects_other_store(self):
        scope = resolve_scope(build_user(UserRole.MANAGER))
        foreign = SimpleNamespace(manager_id=uuid4())

        with pytest.raises(ItemNotFound):
            scope.ensure_owns(foreign, ItemNotFound)
        with pytest.raises(ItemNotFound):
            scope.ensure_owns(None, ItemNotFound)

    def test_require_manager(self):
        manager = build_user(UserRole.MANAGER)
        cashier = build_user(UserRole.CASHIER, manager_id=manager.id)

        resolve_scope(manager).require_manager()
        with pytest.raises(Forbidden):
            resolve_scope(cashier, manager).require_manager()

    def test_cashier_reassigns_only_own_sales(self):
        manager = build_user(UserRole.MANAGER)
        cashier = build_user(UserRole.CASHIER, manager_id=manager.id)
        own_sale = SimpleNamespace(manager_id=manager.id, user_id=cashier.id)
        managers_sale = SimpleNamespace(manager_id=manager.id, user_id=manager.id)

        cashier_scope = resolve_scope(cashier, manager)
        assert cashier_scope.can_reassign_cashier(own_sale)
        assert not cashier_scope.can_reassign_cashier(managers_sale)
        assert resolve_scope(manager).can_reassign_cashier(own_sale)


# ===== ENDPOINTS =====

@pytest.mark.anyio
class TestScopedEndpoints:

    @pytest.mark.parametrize("path", [
        "/finance/dashboard/home",
        "/items/low-stock",
        f"/sales/{uuid4()}",
    ])
    async def test_unlinked_cashier_is_rejected(self, client, unlinked_cashier, path):
        response = await client.get(path, headers=auth_headers(unlinked_cashier))

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "not_linked"
        assert body["message"] == "Cashier not properly linked to a manager"

    async def test_missing_token(self, client, database):
        response = await client.get("/finance/dashboard/home")
        assert response.status_code == 401

    async def test_item_from_other_store_reads_as_missing(self, client, item, other_manager):
        response = await client.get(f"/items/{item.id}", headers=auth_headers(other_manager))
        assert response.status_code == 404

    async def test_cashier_sees_manager_items(self, client, item, cashier):
        response = await client.get(f"/items/{item.id}", headers=auth_headers(cashier))
        assert response.status_code == 200
        assert response.json()["id"] == str(item.id)
