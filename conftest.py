"""
Shared fixtures: in-memory aiosqlite database, HTTP client over the ASGI app,
users in two stores and a stocked item.
"""

from decimal import Decimal

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from smartpoint.database.database import Database
from smartpoint.main import app
from smartpoint.modules.access.policy import resolve_scope
from smartpoint.modules.auth.models import User, UserRole
from smartpoint.modules.auth.utils import create_access_token
from smartpoint.modules.inventory.models import Item


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def database():
    database = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    await database.create_all()
    app.state.database = database
    yield database
    app.state.database = None
    await database.dispose()


@pytest.fixture
async def session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def client(database):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def persist(database, *objects):
    async with database.session_factory() as session:
        session.add_all(objects)
        await session.commit()
    return objects[0] if len(objects) == 1 else objects


async def stock_of(database, item_id) -> int:
    async with database.session_factory() as session:
        result = await session.execute(select(Item.stock).where(Item.id == item_id))
        return result.scalar_one()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
async def manager(database):
    return await persist(database, User(
        username="maria",
        first_name="Maria",
        last_name="Lopez",
        business_name="Corner Shop",
        role=UserRole.MANAGER
    ))


@pytest.fixture
async def cashier(database, manager):
    return await persist(database, User(
        username="carlos",
        first_name="Carlos",
        last_name="Ruiz",
        role=UserRole.CASHIER,
        manager_id=manager.id
    ))


@pytest.fixture
async def other_manager(database):
    return await persist(database, User(
        username="otto",
        first_name="Otto",
        business_name="Other Store",
        role=UserRole.MANAGER
    ))


@pytest.fixture
async def unlinked_cashier(database):
    return await persist(database, User(
        username="lone",
        first_name="Lone",
        role=UserRole.CASHIER
    ))


@pytest.fixture
def make_item(database):
    async def factory(owner: User, **overrides) -> Item:
        scope = resolve_scope(owner) if owner.is_manager else None
        values = dict(
            name="Cola 500ml",
            price=Decimal("10.00"),
            cost=Decimal("6.00"),
            category="Beverages",
            stock=5,
            min_stock=1,
            user_id=owner.id,
            manager_id=scope.manager_id if scope else owner.manager_id,
            cashier_id=None if scope else owner.id,
            device_id="test-device"
        )
        values.update(overrides)
        return await persist(database, Item(**values))
    return factory


@pytest.fixture
async def item(make_item, manager):
    return await make_item(manager)
