"""
Import Vancouver Property Tax Data

Fetches records from the City of Vancouver open data portal and loads them
into the configured database. Re-running skips properties already imported.

Usage:
    python scripts/import_vancouver_data.py [--max-records 500] [--batch-size 100] [--skip-fetch]
"""
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse

from config.settings import settings
from src.vanproperty.db.repository import NeighborhoodRepository, PropertyRepository, UserRepository
from src.vanproperty.db.session import create_db_engine, create_session_factory, init_db, session_scope
from src.vanproperty.ingestion.importer import VancouverImporter
from src.vanproperty.ingestion.vancouver_client import VancouverPropertyClient
from src.vanproperty.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def import_data(max_records: int, batch_size: int, skip_fetch: bool = False):
    """
    Fetch and import property records.

    Args:
        max_records: Upper bound on records fetched
        batch_size: Records per API request
        skip_fetch: Do not call the API; load defaults only

    Returns:
        ImportSummary
    """
    engine = create_db_engine()
    init_db(engine)
    session_factory = create_session_factory(engine)

    records = []
    if not skip_fetch:
        client = VancouverPropertyClient()
        records = client.fetch_all(max_records=max_records, batch_size=batch_size)

    with session_scope(session_factory) as session:
        summary = VancouverImporter(session).run(records)

    with session_scope(session_factory) as session:
        logger.info(
            "database_statistics",
            neighborhoods=NeighborhoodRepository().count(session),
            properties=PropertyRepository().count(session),
            users=UserRepository().count(session)
        )

    engine.dispose()
    return summary


def main():
    parser = argparse.ArgumentParser(description="Import Vancouver property tax data")
    parser.add_argument(
        "--max-records",
        type=int,
        default=settings.import_max_records,
        help="Maximum number of records to fetch"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.import_batch_size,
        help="Records per API request"
    )
    parser.add_argument(
        "--skip-fetch",
        action="store_true",
        help="Skip the API and load default neighbourhoods and sample users only"
    )
    args = parser.parse_args()

    setup_logging()
    logger.info("import_starting", database_url=settings.database_url, max_records=args.max_records)

    try:
        summary = import_data(args.max_records, args.batch_size, args.skip_fetch)
    except Exception as e:
        logger.error("import_failed", error=str(e), error_type=type(e).__name__, exc_info=True)
        sys.exit(1)

    logger.info("import_finished", **summary.to_dict())


if __name__ == "__main__":
    main()
