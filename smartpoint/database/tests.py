"""
Tests for the Alembic migrations

Runs the revisions against a file-backed SQLite database and checks the
result against the models.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from alembic import command
from sqlalchemy import create_engine, insert, inspect, select

from migrate import get_alembic_config
from smartpoint.database.database import Base
from smartpoint.modules.sales.computation import PaymentStatus
from smartpoint.modules.sales.models import Sale

import smartpoint.modules.auth.models
import smartpoint.modules.inventory.models


# ===== FIXTURES =====

@pytest.fixture
def db_file(tmp_path):
    return tmp_path / "migrated.db"


@pytest.fixture
def alembic_config(db_file):
    config = get_alembic_config(f"sqlite+aiosqlite:///{db_file}")
    config.attributes["configure_logger"] = False
    return config


@pytest.fixture
def sync_engine(db_file):
    engine = create_engine(f"sqlite:///{db_file}")
    yield engine
    engine.dispose()


def legacy_sale(receipt, status, total, paid):
    owner = uuid4()
    return dict(
        id=uuid4(), receipt_number=receipt, subtotal=Decimal(total), total=Decimal(total),
        paid_amount=Decimal(paid), payment_status=status, user_id=owner, manager_id=owner,
        device_id="legacy"
    )


# ===== SCHEMA =====

class TestMigrations:

    def test_upgrade_matches_models(self, alembic_config, sync_engine):
        command.upgrade(alembic_config, "head")

        inspector = inspect(sync_engine)
        assert "alembic_version" in inspector.get_table_names()
        for table in Base.metadata.sorted_tables:
            columns = {column["name"] for column in inspector.get_columns(table.name)}
            assert columns == {column.name for column in table.columns}, table.name

        receipt_unique = inspector.get_unique_constraints("sales")
        assert ["manager_id", "receipt_number"] in [c["column_names"] for c in receipt_unique]

    def test_downgrade_removes_tables(self, alembic_config, sync_engine):
        command.upgrade(alembic_config, "head")
        command.downgrade(alembic_config, "base")

        assert set(inspect(sync_engine).get_table_names()) == {"alembic_version"}

    def test_paid_amount_revision(self, alembic_config, sync_engine):
        command.upgrade(alembic_config, "0001")
        with sync_engine.begin() as conn:
            conn.execute(insert(Sale.__table__), [
                legacy_sale("L1", PaymentStatus.COMPLETED, "30", "0"),
                legacy_sale("L2", PaymentStatus.PENDING, "20", "5"),
                legacy_sale("L3", PaymentStatus.PARTIAL, "20", "5"),
                legacy_sale("L4", PaymentStatus.REFUNDED, "10", "0"),
            ])

        command.upgrade(alembic_config, "head")

        with sync_engine.connect() as conn:
            rows = conn.execute(select(Sale.receipt_number, Sale.paid_amount, Sale.payment_status)).all()
        paid = {receipt: (amount, status) for receipt, amount, status in rows}
        assert paid["L1"] == (Decimal("30.00"), PaymentStatus.COMPLETED)
        assert paid["L2"] == (Decimal("0.00"), PaymentStatus.PENDING)
        assert paid["L3"] == (Decimal("5.00"), PaymentStatus.PARTIAL)
        assert paid["L4"] == (Decimal("0.00"), PaymentStatus.REFUNDED)
