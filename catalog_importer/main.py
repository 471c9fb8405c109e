"""
FastAPI Application

Admin API for the catalog importer. The lifespan owns the database
engine; routes reach the session factory and migration trigger through
app.state.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import structlog

from catalog_importer.config import Settings, get_settings
from catalog_importer.config.logging import configure_logging
from catalog_importer.database.connection import (
    create_engine_from_settings,
    create_schema,
    create_session_factory,
    verify_connection,
)
from catalog_importer.ingestion.importer import import_catalog_file
from catalog_importer.ingestion.store import CatalogStore, DryRunStore
from catalog_importer.serving.api.middleware import RequestLoggingMiddleware
from catalog_importer.serving.api.routes import health_router, migration_router
from catalog_importer.serving.api.routes.migration import MigrationTrigger

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (defaults to the cached settings)

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        configure_logging(settings=settings)
        logger.info("Starting catalog importer API", environment=settings.app_env)

        engine = create_engine_from_settings(settings)
        session_factory = create_session_factory(engine)

        try:
            await verify_connection(engine)
            await create_schema(engine)
        except Exception as e:
            logger.warning(f"Database init failed: {e}")

        async def run_import():
            if settings.importer.dry_run:
                store = DryRunStore()
            else:
                store = CatalogStore(session_factory)
            return await import_catalog_file(settings.importer.source_path, store, settings)

        app.state.settings = settings
        app.state.engine = engine
        app.state.session_factory = session_factory
        app.state.migration_trigger = MigrationTrigger(run_import)

        yield

        logger.info("Shutting down...")
        await engine.dispose()

    app = FastAPI(
        title="Catalog Importer API",
        description="Imports the JSON product catalog into the relational store",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(migration_router, prefix="/api/v1/admin", tags=["Admin"])

    return app


app = create_app()
