"""Endpoints for reading and writing the entries of a dynamic database."""

import logging
import time
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response, status
from fastapi.encoders import jsonable_encoder

from src.api.dependencies import get_entry_repository
from src.api.entries.models import (
    BatchCreateRequest,
    BatchDeleteRequest,
    BatchItemErrorResponse,
    BatchResponse,
    BatchUpdateRequest,
    EntryDeleteResponse,
)
from src.api.models import NOTION_ERROR_RESPONSES
from src.dynamic.entries import BatchSummary, EntryRepository, EntryUpdate
from src.dynamic.exceptions import NotFoundError, ValidationError
from src.notion.client import MAX_PAGE_SIZE
from src.notion.exceptions import NotionClientError
from src.notion.models import Entry, EntryPage, EntryQuery

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/databases/{database_id}/entries",
    tags=["Dynamic Database Entries"],
    responses=NOTION_ERROR_RESPONSES,
)

# Query parameters of GET /entries that are not column filters
_PAGING_PARAMS = frozenset({"page_size", "start_cursor"})

_MULTI_STATUS = 207


@router.get(
    "",
    response_model=EntryPage,
    summary="List entries",
)
def list_entries(
    request: Request,
    page_size: int | None = Query(None, ge=1, le=MAX_PAGE_SIZE, description="Entries per page"),
    start_cursor: str | None = Query(None, description="Cursor from a previous page"),
    repository: EntryRepository = Depends(get_entry_repository),
) -> EntryPage:
    """List entries, newest first.

    Any other query parameter is treated as an equality filter on the column
    of that name.
    """
    filters = {k: v for k, v in request.query_params.items() if k not in _PAGING_PARAMS}
    return _query_entries(
        repository,
        EntryQuery(filters=filters, page_size=page_size, start_cursor=start_cursor),
    )


@router.post(
    "/query",
    response_model=EntryPage,
    summary="Query entries",
)
def query_entries(
    query: EntryQuery,
    repository: EntryRepository = Depends(get_entry_repository),
) -> EntryPage:
    """Query entries with column filters, sorts and pagination."""
    return _query_entries(repository, query)


@router.post(
    "",
    response_model=Entry,
    status_code=status.HTTP_201_CREATED,
    summary="Create entry",
)
def create_entry(
    values: dict[str, Any] = Body(..., description="Values keyed by column name"),
    repository: EntryRepository = Depends(get_entry_repository),
) -> Entry:
    """Create an entry from plain values."""
    start = time.perf_counter()
    logger.info(f"Create entry: database={repository.database_id}, fields={len(values)}")
    try:
        entry = repository.create(values)
    except ValidationError as e:
        logger.warning(f"Invalid entry: database={repository.database_id}, error={e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except NotionClientError as e:
        logger.exception(f"Failed to create entry: database={repository.database_id}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Create entry complete: id={entry.id}, elapsed={elapsed_ms:.0f}ms")
    return entry


# Batch routes are declared before /{entry_id} so "batch" is never read as an ID


@router.post(
    "/batch",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create entries in batch",
    responses={_MULTI_STATUS: {"model": BatchResponse, "description": "Some items failed"}},
)
async def create_entries_batch(
    request: BatchCreateRequest,
    response: Response,
    repository: EntryRepository = Depends(get_entry_repository),
) -> BatchResponse:
    """Create many entries. Returns 207 if any item failed."""
    summary = await repository.create_batch(request.entries)
    if not summary.all_succeeded:
        response.status_code = _MULTI_STATUS
    return _to_batch_response(summary)


@router.patch(
    "/batch",
    response_model=BatchResponse,
    summary="Update entries in batch",
    responses={_MULTI_STATUS: {"model": BatchResponse, "description": "Some items failed"}},
)
async def update_entries_batch(
    request: BatchUpdateRequest,
    response: Response,
    repository: EntryRepository = Depends(get_entry_repository),
) -> BatchResponse:
    """Update many entries. Returns 207 if any item failed."""
    updates = [EntryUpdate(id=item.id, values=item.values) for item in request.updates]
    summary = await repository.update_batch(updates)
    if not summary.all_succeeded:
        response.status_code = _MULTI_STATUS
    return _to_batch_response(summary)


@router.delete(
    "/batch",
    response_model=BatchResponse,
    summary="Archive entries in batch",
    responses={_MULTI_STATUS: {"model": BatchResponse, "description": "Some items failed"}},
)
async def delete_entries_batch(
    request: BatchDeleteRequest,
    response: Response,
    repository: EntryRepository = Depends(get_entry_repository),
) -> BatchResponse:
    """Archive many entries. Returns 207 if any item failed."""
    summary = await repository.delete_batch(request.ids)
    if not summary.all_succeeded:
        response.status_code = _MULTI_STATUS
    return _to_batch_response(summary)


@router.get(
    "/{entry_id}",
    response_model=Entry,
    summary="Get entry",
)
def get_entry(
    entry_id: str,
    repository: EntryRepository = Depends(get_entry_repository),
) -> Entry:
    """Retrieve a single entry."""
    logger.info(f"Get entry: database={repository.database_id}, id={entry_id}")
    try:
        return repository.get_one(entry_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except NotionClientError as e:
        logger.exception(f"Failed to get entry: id={entry_id}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.patch(
    "/{entry_id}",
    response_model=Entry,
    summary="Update entry",
)
def update_entry(
    entry_id: str,
    values: dict[str, Any] = Body(..., description="Values to change; null clears a value"),
    repository: EntryRepository = Depends(get_entry_repository),
) -> Entry:
    """Update an entry's values. Omitted columns are left unchanged."""
    start = time.perf_counter()
    logger.info(f"Update entry: database={repository.database_id}, id={entry_id}")
    try:
        entry = repository.update(entry_id, values)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except NotionClientError as e:
        logger.exception(f"Failed to update entry: id={entry_id}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Update entry complete: id={entry_id}, elapsed={elapsed_ms:.0f}ms")
    return entry


@router.delete(
    "/{entry_id}",
    response_model=EntryDeleteResponse,
    summary="Archive entry",
)
def delete_entry(
    entry_id: str,
    repository: EntryRepository = Depends(get_entry_repository),
) -> EntryDeleteResponse:
    """Archive an entry. Archiving an already archived entry also succeeds."""
    logger.info(f"Archive entry: database={repository.database_id}, id={entry_id}")
    try:
        return EntryDeleteResponse(**repository.delete(entry_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except NotionClientError as e:
        logger.exception(f"Failed to archive entry: id={entry_id}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


def _query_entries(repository: EntryRepository, query: EntryQuery) -> EntryPage:
    """Run a query and map its errors to HTTP responses."""
    start = time.perf_counter()
    logger.info(
        f"Query entries: database={repository.database_id}, filters={sorted(query.filters)}"
    )
    try:
        page = repository.list(query)
    except NotionClientError as e:
        logger.exception(f"Failed to query entries: database={repository.database_id}, error={e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"Query entries complete: count={len(page.entries)}, has_more={page.has_more}, "
        f"elapsed={elapsed_ms:.0f}ms"
    )
    return page


def _to_batch_response(summary: BatchSummary) -> BatchResponse:
    """Convert a BatchSummary to a BatchResponse.

    :param summary: Outcome of a batch operation.
    :returns: BatchResponse with JSON-ready results and errors.
    """
    return BatchResponse(
        operation=summary.operation,
        total=summary.total,
        succeeded=summary.succeeded,
        failed=summary.failed,
        results=jsonable_encoder(summary.results),
        errors=[
            BatchItemErrorResponse(
                index=error.index,
                input=jsonable_encoder(error.input),
                error=error.error,
                attempts=error.attempts,
            )
            for error in summary.errors
        ],
        duration_ms=summary.duration_ms,
    )
