"""
Create Database Tables Using SQLAlchemy

Creates every table defined in the models on the configured database
(settings.database_url). Existing tables are left untouched.

Usage:
    python scripts/create_database_tables.py [--reset]
"""
import sys
from pathlib import Path

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse

from sqlalchemy import inspect

from src.vanproperty.db.session import create_db_engine, drop_db, init_db
from src.vanproperty.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main():
    """Create all database tables."""
    parser = argparse.ArgumentParser(description="Create VanProperty database tables")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop all tables first (deletes all data)"
    )
    args = parser.parse_args()

    setup_logging()
    engine = create_db_engine()

    if args.reset:
        drop_db(engine)

    init_db(engine)

    tables = sorted(inspect(engine).get_table_names())
    logger.info("tables_verified", count=len(tables), tables=tables)
    engine.dispose()


if __name__ == "__main__":
    main()
