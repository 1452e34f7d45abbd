"""Endpoints for creating, listing and altering dynamic databases."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.databases.models import (
    DatabaseCreateRequest,
    DatabaseListResponse,
    DatabaseUpdateRequest,
)
from src.api.dependencies import get_registered_schema, get_registry
from src.api.models import NOTION_ERROR_RESPONSES
from src.dynamic.exceptions import NotFoundError, ValidationError
from src.dynamic.registry import SchemaRegistry
from src.notion.exceptions import NotionClientError
from src.notion.models import DatabaseSchema, DatabaseSpec

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/databases",
    tags=["Dynamic Databases"],
    responses=NOTION_ERROR_RESPONSES,
)


@router.get(
    "",
    response_model=DatabaseListResponse,
    summary="List registered databases",
)
def list_databases(
    registry: SchemaRegistry = Depends(get_registry),
) -> DatabaseListResponse:
    """List every database schema held by the registry."""
    schemas = registry.list_all()
    logger.info(f"List databases: count={len(schemas)}")
    return DatabaseListResponse(results=schemas)


@router.post(
    "",
    response_model=DatabaseSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Create database",
)
def create_database(
    request: DatabaseCreateRequest,
    registry: SchemaRegistry = Depends(get_registry),
) -> DatabaseSchema:
    """Create a Notion database and register its schema."""
    start = time.perf_counter()
    logger.info(f"Create database: name={request.name!r}, columns={len(request.columns)}")
    try:
        schema = registry.create(
            DatabaseSpec(
                name=request.name,
                columns=request.columns,
                parent_page_id=request.parent_page_id,
                icon=request.icon,
                cover=request.cover,
            )
        )
    except ValidationError as e:
        logger.warning(f"Invalid database definition: name={request.name!r}, error={e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except NotionClientError as e:
        logger.exception(f"Failed to create database: name={request.name!r}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Create database complete: id={schema.id}, elapsed={elapsed_ms:.0f}ms")
    return schema


@router.get(
    "/{database_id}",
    response_model=DatabaseSchema,
    summary="Get database schema",
)
def get_database(
    schema: DatabaseSchema = Depends(get_registered_schema),
) -> DatabaseSchema:
    """Retrieve a registered schema, hydrating it from Notion if not yet known."""
    logger.info(f"Get database: id={schema.id}, name={schema.name!r}")
    return schema


@router.patch(
    "/{database_id}",
    response_model=DatabaseSchema,
    summary="Update database",
)
def update_database(
    request: DatabaseUpdateRequest,
    schema: DatabaseSchema = Depends(get_registered_schema),
    registry: SchemaRegistry = Depends(get_registry),
) -> DatabaseSchema:
    """Rename a database or add and change its columns, then re-sync its schema."""
    if request.name is None and not request.columns:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No name or columns to update.",
        )

    start = time.perf_counter()
    logger.info(f"Update database: id={schema.id}")
    try:
        updated = registry.alter(schema.id, name=request.name, columns=request.columns)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValidationError as e:
        logger.warning(f"Invalid database update: id={schema.id}, error={e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except NotionClientError as e:
        logger.exception(f"Failed to update database: id={schema.id}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"Update database complete: id={updated.id}, columns={len(updated.columns)}, "
        f"elapsed={elapsed_ms:.0f}ms"
    )
    return updated
