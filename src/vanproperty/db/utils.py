"""
Database Utilities

Helper functions for dialect-aware statements and row conversion.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from src.vanproperty.utils.logger import get_logger

logger = get_logger(__name__)


def dialect_insert(session: Session, model):
    """
    INSERT construct that supports ``on_conflict_do_nothing`` for the bound
    database (PostgreSQL or SQLite).

    Args:
        session: Database session
        model: Mapped class to insert into

    Returns:
        Dialect-specific Insert
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise NotImplementedError(f"conditional insert not supported for dialect {dialect!r}")


def model_to_dict(instance: Any, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Convert an ORM instance to a dict of its column attributes.

    Args:
        instance: Mapped object
        exclude: Attribute names to leave out

    Returns:
        Dict keyed by attribute name
    """
    skip = set(exclude)
    mapper = inspect(instance).mapper
    return {
        attr.key: getattr(instance, attr.key)
        for attr in mapper.column_attrs
        if attr.key not in skip
    }


def rows_to_dicts(rows) -> List[Dict[str, Any]]:
    """Convert Core result rows to plain dicts."""
    return [dict(row._mapping) for row in rows]


def row_to_dict(row) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return dict(row._mapping)


def utc_now() -> datetime:
    """Naive UTC timestamp, comparable with SQLite CURRENT_TIMESTAMP values."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_ago(days: int) -> datetime:
    return utc_now() - timedelta(days=days)
