"""Shared dependencies for API endpoints."""

import logging

from fastapi import Depends, HTTPException, Request, status

from src.dynamic.batch import BatchConfig, BatchExecutor
from src.dynamic.config import get_dynamic_settings
from src.dynamic.discovery import DiscoveryService
from src.dynamic.entries import EntryRepository
from src.dynamic.exceptions import NotFoundError
from src.dynamic.registry import SchemaRegistry
from src.notion.client import NotionClient
from src.notion.exceptions import NotionClientError
from src.notion.models import DatabaseSchema

logger = logging.getLogger(__name__)


def get_notion_client() -> NotionClient:
    """Create a NotionClient instance."""
    try:
        return NotionClient(token=get_dynamic_settings().integration_secret)
    except ValueError as e:
        logger.error(f"Failed to initialise Notion client: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notion integration not configured",
        ) from e


def get_registry(request: Request) -> SchemaRegistry:
    """Get the schema registry created at application startup."""
    registry: SchemaRegistry | None = getattr(request.app.state, "registry", None)
    if registry is None:
        logger.error("Schema registry requested before application startup")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Schema registry not initialised",
        )
    return registry


def get_discovery(client: NotionClient = Depends(get_notion_client)) -> DiscoveryService:
    """Create a DiscoveryService bound to the request's Notion client."""
    return DiscoveryService(client)


def get_batch_executor() -> BatchExecutor:
    """Create a BatchExecutor tuned from settings."""
    settings = get_dynamic_settings()
    return BatchExecutor(
        BatchConfig(
            chunk_size=settings.batch_chunk_size,
            max_parallel=settings.batch_max_parallel,
            delay_between_chunks_ms=settings.batch_delay_ms,
            retry_attempts=settings.batch_retry_attempts,
        )
    )


def get_registered_schema(
    database_id: str,
    registry: SchemaRegistry = Depends(get_registry),
    discovery: DiscoveryService = Depends(get_discovery),
) -> DatabaseSchema:
    """Resolve a database's schema, hydrating it from Notion on a registry miss.

    :param database_id: Database ID from the request path.
    :param registry: Schema registry.
    :param discovery: Discovery service used to hydrate unknown databases.
    :returns: The registered schema.
    :raises HTTPException: 404 if unknown or reserved, 502 if Notion fails.
    """
    if registry.is_reserved(database_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Database {database_id} is not managed by this service",
        )

    schema = registry.get(database_id)
    if schema is not None:
        return schema

    logger.info(f"Schema not registered, hydrating from Notion: id={database_id}")
    try:
        schema = discovery.hydrate(registry, database_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except NotionClientError as e:
        logger.exception(f"Failed to hydrate schema: id={database_id}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    if schema is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Database {database_id} not found",
        )
    return schema


def get_entry_repository(
    schema: DatabaseSchema = Depends(get_registered_schema),
    client: NotionClient = Depends(get_notion_client),
    registry: SchemaRegistry = Depends(get_registry),
    executor: BatchExecutor = Depends(get_batch_executor),
) -> EntryRepository:
    """Create an EntryRepository for the database in the request path."""
    try:
        return EntryRepository(
            client,
            registry,
            schema.id,
            executor=executor,
            default_page_size=get_dynamic_settings().default_page_size,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
