"""
scripts/setup_db.py — Create the leads table.

Run once before starting the API for the first time:
    python scripts/setup_db.py [--check-config]
"""

import argparse
import os
import sys

# Ensure the project root is on the path so we can import `app`
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import inspect, text

from app.config import check_startup_config, settings
from app.db.models import Base
from app.db.session import engine


def setup_db(check_config: bool = False) -> list[str]:
    """Create any missing tables and return the table names now present."""
    if check_config:
        check_startup_config(settings)
        print("✅ Configuration looks valid.")

    print(f"🔌 Connecting to {settings.database_url.split('://', 1)[0]} database...")
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))

    Base.metadata.create_all(bind=engine)

    tables = inspect(engine).get_table_names()
    print(f"✅ Tables in database: {tables}")
    return tables


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the lead tables.")
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Also validate CAPTCHA settings and score weight tables.",
    )
    args = parser.parse_args()
    setup_db(check_config=args.check_config)


if __name__ == "__main__":
    main()
