"""
FastAPI Main Application

VanProperty Insights REST API.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from config.settings import settings
from src.vanproperty.api.errors import register_exception_handlers
from src.vanproperty.api.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from src.vanproperty.api.routers import properties, saved_searches, users, watchlist
from src.vanproperty.api.schemas import StatusResponse
from src.vanproperty.db.session import create_db_engine, create_session_factory, init_db
from src.vanproperty.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(session_factory: Optional[sessionmaker] = None) -> FastAPI:
    """
    Build the application.

    Args:
        session_factory: Session factory handlers draw their sessions from.
            When omitted, an engine for settings.database_url is created and
            its tables are ensured at startup.

    Returns:
        Configured FastAPI app
    """
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if session_factory is None:
            engine = create_db_engine()
            init_db(engine)
            app.state.session_factory = create_session_factory(engine)
        logger.info(
            "api_started",
            environment=settings.environment,
            api_prefix=settings.api_prefix,
        )
        yield
        if session_factory is None:
            engine.dispose()
        logger.info("api_stopped")

    app = FastAPI(
        title=settings.app_name,
        description="REST API for browsing Vancouver property tax records, watchlists and saved searches",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    if session_factory is not None:
        app.state.session_factory = session_factory

    # Last added runs first: request id is bound before anything logs.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    prefix = settings.api_prefix
    app.include_router(properties.router, prefix=prefix)
    app.include_router(watchlist.router, prefix=prefix)
    app.include_router(saved_searches.router, prefix=prefix)
    app.include_router(users.router, prefix=prefix)

    @app.get("/", tags=["root"])
    def root():
        """
        Root endpoint.

        Returns:
            API information
        """
        return {
            "success": True,
            "message": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "properties": f"{prefix}/properties",
                "watchlist": f"{prefix}/watchlist",
                "savedSearches": f"{prefix}/saved-searches",
                "users": f"{prefix}/users",
            },
        }

    @app.get(f"{prefix}/status", response_model=StatusResponse, tags=["health"])
    def status():
        return StatusResponse(
            status="online",
            timestamp=datetime.now(timezone.utc),
            environment=settings.environment,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.vanproperty.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
