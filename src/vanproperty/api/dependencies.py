"""
FastAPI Dependencies

Provides dependency injection for database sessions.
"""
from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency.

    The session factory is attached to the application at startup
    (see main.create_app); each request gets its own session.

    Yields:
        SQLAlchemy database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

