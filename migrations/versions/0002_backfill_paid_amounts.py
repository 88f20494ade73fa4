"""backfill paid amounts on legacy sales

Completed sales recorded with no paid amount were paid in full; pending
sales have collected nothing. Change is reset to match. Partial, refunded
and failed sales are left as they are.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 10:05:00
"""
from alembic import op


revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        "UPDATE sales SET paid_amount = total, change = 0 "
        "WHERE payment_status = 'completed' AND paid_amount = 0"
    )
    op.execute(
        "UPDATE sales SET paid_amount = 0, change = 0 "
        "WHERE payment_status = 'pending' AND paid_amount <> 0"
    )


def downgrade() -> None:
    # The original paid amounts are not recoverable
    pass
