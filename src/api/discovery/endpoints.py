"""Read-only endpoints for finding Notion databases and their live schemas."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_discovery, get_registry
from src.api.discovery.models import DiscoveredDatabasesResponse, DiscoveredSchemasResponse
from src.api.models import NOTION_ERROR_RESPONSES
from src.dynamic.discovery import DiscoveryService
from src.dynamic.exceptions import NotFoundError
from src.dynamic.registry import SchemaRegistry
from src.notion.exceptions import NotionClientError
from src.notion.models import DatabaseSchema

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/discovery",
    tags=["Discovery"],
    responses=NOTION_ERROR_RESPONSES,
)


@router.get(
    "/databases",
    response_model=DiscoveredDatabasesResponse,
    summary="Discover databases",
)
def discover_databases(
    discovery: DiscoveryService = Depends(get_discovery),
    registry: SchemaRegistry = Depends(get_registry),
) -> DiscoveredDatabasesResponse:
    """List every database shared with the Notion integration."""
    start = time.perf_counter()
    logger.info("Discover databases")
    try:
        summaries = discovery.list_all()
    except NotionClientError as e:
        logger.exception(f"Failed to discover databases: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Discover databases complete: count={len(summaries)}, elapsed={elapsed_ms:.0f}ms")

    return DiscoveredDatabasesResponse(
        results=summaries,
        registered=[s.id for s in summaries if registry.get(s.id) is not None],
    )


@router.get(
    "/databases/complete",
    response_model=DiscoveredSchemasResponse,
    summary="Discover databases with schemas",
)
def discover_databases_with_schemas(
    discovery: DiscoveryService = Depends(get_discovery),
    registry: SchemaRegistry = Depends(get_registry),
) -> DiscoveredSchemasResponse:
    """List every shared database together with its live schema."""
    start = time.perf_counter()
    logger.info("Discover databases with schemas")
    try:
        schemas = discovery.list_all_with_schemas()
    except NotionClientError as e:
        logger.exception(f"Failed to discover databases with schemas: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"Discover databases with schemas complete: count={len(schemas)}, "
        f"failed={sum(1 for s in schemas if s.error)}, elapsed={elapsed_ms:.0f}ms"
    )

    return DiscoveredSchemasResponse(
        results=schemas,
        registered=[s.id for s in schemas if registry.get(s.id) is not None],
    )


@router.get(
    "/databases/{database_id}/schema",
    response_model=DatabaseSchema,
    summary="Get live database schema",
)
def get_database_schema(
    database_id: str,
    discovery: DiscoveryService = Depends(get_discovery),
) -> DatabaseSchema:
    """Retrieve a database's live schema from Notion without registering it."""
    start = time.perf_counter()
    logger.info(f"Get live schema: id={database_id}")
    try:
        schema = discovery.get_schema(database_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except NotionClientError as e:
        logger.exception(f"Failed to get live schema: id={database_id}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Get live schema complete: id={database_id}, elapsed={elapsed_ms:.0f}ms")
    return schema
