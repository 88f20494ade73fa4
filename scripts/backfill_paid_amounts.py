"""
Backfill script: set paid_amount on sales recorded before collected-revenue
reporting. See ``smartpoint.modules.sales.backfill`` for the rules.

The same change ships as an Alembic data revision; this script is for
databases that were created with ``create_all`` and are not under Alembic.

Run inside the API container to use 'postgres' host and project PYTHONPATH:
    docker compose exec api python scripts/backfill_paid_amounts.py --dry-run
"""

# Add project root to sys.path so `smartpoint.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import asyncio
import logging

from smartpoint.core.config import settings
from smartpoint.database.database import create_database
from smartpoint.modules.sales.backfill import backfill_paid_amounts


async def run(dry_run: bool = False) -> None:
    database = create_database(settings)
    try:
        async with database.session_factory() as session:
            await backfill_paid_amounts(session, dry_run=dry_run)
    finally:
        await database.dispose()


def main():
    parser = argparse.ArgumentParser(description="Backfill paid_amount on legacy sales")
    parser.add_argument("--dry-run", action="store_true", help="Report changes without saving")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    asyncio.run(run(dry_run=args.dry_run))


if __name__ == "__main__":
    main()
