#!/usr/bin/env python3
"""
Manage database migrations with Alembic.
"""
import sys
from pathlib import Path

# Add the project root to the path
root_dir = Path(__file__).parent
sys.path.insert(0, str(root_dir))

from alembic.config import Config
from alembic import command
from smartpoint.core.config import settings


def get_alembic_config(url: str = None) -> Config:
    """Alembic config pointed at the application database (or ``url``)."""
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    # ConfigParser interpolation: escape % in passwords
    alembic_cfg.set_main_option("sqlalchemy.url", (url or settings.async_database_url).replace("%", "%%"))
    return alembic_cfg


def create_migration(message: str):
    alembic_cfg = get_alembic_config()
    command.revision(alembic_cfg, autogenerate=True, message=message)
    print(f"Migration created: {message}")


def run_migrations():
    alembic_cfg = get_alembic_config()
    command.upgrade(alembic_cfg, "head")
    print("Migrations applied")


def rollback_migration():
    alembic_cfg = get_alembic_config()
    command.downgrade(alembic_cfg, "-1")
    print("Rolled back one revision")


def show_history():
    command.history(get_alembic_config())


def show_current():
    command.current(get_alembic_config())


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage:")
        print("  python migrate.py create 'message'  # Create a migration")
        print("  python migrate.py upgrade            # Apply pending migrations")
        print("  python migrate.py downgrade          # Roll back one revision")
        print("  python migrate.py history            # Show history")
        print("  python migrate.py current            # Show current revision")
        sys.exit(1)

    action = sys.argv[1]

    if action == "create":
        if len(sys.argv) < 3:
            print("Error: a migration message is required")
            sys.exit(1)
        create_migration(sys.argv[2])
    elif action == "upgrade":
        run_migrations()
    elif action == "downgrade":
        rollback_migration()
    elif action == "history":
        show_history()
    elif action == "current":
        show_current()
    else:
        print(f"Unknown action: {action}")
        sys.exit(1)
