"""
Database Session Management

Engine and session-factory construction. Nothing here holds a global
connection: the API receives a session factory at startup and scripts build
their own.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event, exc, pool
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import settings
from src.vanproperty.utils.logger import get_logger

logger = get_logger(__name__)


def _ensure_sqlite_directory(url: str) -> None:
    prefix = "sqlite:///"
    if not url.startswith(prefix) or ":memory:" in url:
        return
    Path(url[len(prefix):]).parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(
    database_url: Optional[str] = None,
    echo: Optional[bool] = None,
) -> Engine:
    """
    Build an engine for the configured database.

    SQLite connections get foreign-key enforcement switched on at connect time.

    Args:
        database_url: SQLAlchemy URL (defaults to settings.database_url)
        echo: Log SQL statements (defaults to settings.database_echo)

    Returns:
        SQLAlchemy engine
    """
    url = database_url or settings.database_url
    echo = settings.database_echo if echo is None else echo

    kwargs = {"echo": echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = pool.StaticPool
        _ensure_sqlite_directory(url)

    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            logger.debug("database_connection_established", foreign_keys=True)

    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine``."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False
    )


@contextmanager
def transactional(session: Session) -> Generator[Session, None, None]:
    """
    Run a unit of work on an existing session.

    Commits when the block exits normally, rolls back and re-raises otherwise.

    Usage:
        with transactional(db):
            repo.add(db, ...)
    """
    try:
        yield session
        session.commit()
        logger.debug("database_session_committed")
    except exc.SQLAlchemyError as e:
        session.rollback()
        logger.error(
            "database_session_rollback",
            error=str(e),
            error_type=type(e).__name__
        )
        raise
    except Exception as e:
        session.rollback()
        logger.debug(
            "database_session_rollback",
            error=str(e),
            error_type=type(e).__name__
        )
        raise


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Open a session, commit on success and always close it.

    Usage:
        with session_scope(factory) as session:
            session.execute(...)
    """
    session = session_factory()
    try:
        with transactional(session):
            yield session
    finally:
        session.close()
        logger.debug("database_session_closed")


def init_db(engine: Engine) -> None:
    """
    Create all tables defined in models.
    """
    from src.vanproperty.db.base import Base, import_all_models

    logger.info("creating_database_tables")
    import_all_models()
    Base.metadata.create_all(bind=engine)
    logger.info("database_tables_created")


def drop_db(engine: Engine) -> None:
    """
    Drop all tables.

    WARNING: This will delete all data! Only use in development/testing.
    """
    from src.vanproperty.db.base import Base, import_all_models

    logger.warning("dropping_all_database_tables")
    import_all_models()
    Base.metadata.drop_all(bind=engine)
