"""FastAPI application configuration."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from src.api.databases import router as databases_router
from src.api.discovery import router as discovery_router
from src.api.entries import router as entries_router
from src.api.health import router as health_router
from src.api.models import ErrorResponse
from src.api.security import verify_api_key
from src.dynamic.config import get_dynamic_settings
from src.dynamic.registry import SchemaRegistry
from src.dynamic.storage import SchemaStore
from src.notion.client import NotionClient
from src.observability.sentry import init_sentry
from src.utils.logging import configure_logging

configure_logging()
init_sentry()

logger = logging.getLogger(__name__)


def build_registry() -> SchemaRegistry:
    """Build the process-wide schema registry from settings.

    :returns: An uninitialised SchemaRegistry.
    :raises ValueError: If the Notion integration token is not configured.
    """
    settings = get_dynamic_settings()
    return SchemaRegistry(
        NotionClient(token=settings.integration_secret),
        SchemaStore(settings.schema_dir),
        reserved_id=settings.tasks_database_id,
        default_parent_page_id=settings.parent_page_id,
    )


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Load the schema registry on startup and drop it on shutdown."""
    registry = build_registry()
    registry.initialize()
    application.state.registry = registry

    try:
        yield
    finally:
        registry.teardown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    :returns: Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Notion Dynamic Databases API",
        version="1.0.0",
        lifespan=lifespan,
        responses={
            401: {"model": ErrorResponse, "description": "Missing API key"},
            403: {"model": ErrorResponse, "description": "Invalid API key"},
            500: {"model": ErrorResponse, "description": "Internal server error"},
        },
    )

    # Register routers
    application.include_router(health_router)
    for router in (databases_router, entries_router, discovery_router):
        application.include_router(router, dependencies=[Depends(verify_api_key)])

    logger.info("FastAPI application created")

    return application


# Application instance for uvicorn
app = create_app()
