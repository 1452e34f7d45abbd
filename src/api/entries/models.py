"""Pydantic models for database entry endpoints."""

from typing import Any

from pydantic import BaseModel, Field

# Upper bound on items accepted by one batch request
MAX_BATCH_ITEMS = 100


class EntryDeleteResponse(BaseModel):
    """Response model for archiving an entry."""

    id: str = Field(..., description="Entry (page) ID")
    archived: bool = Field(True, description="Always true once archived")


class BatchCreateRequest(BaseModel):
    """Request model for creating many entries."""

    entries: list[dict[str, Any]] = Field(
        ...,
        min_length=1,
        max_length=MAX_BATCH_ITEMS,
        description="Values for each new entry, keyed by column name",
    )


class BatchUpdateItem(BaseModel):
    """A single entry update within a batch."""

    id: str = Field(..., min_length=1, description="Entry (page) ID")
    values: dict[str, Any] = Field(..., description="Values to change; null clears a value")


class BatchUpdateRequest(BaseModel):
    """Request model for updating many entries."""

    updates: list[BatchUpdateItem] = Field(
        ...,
        min_length=1,
        max_length=MAX_BATCH_ITEMS,
        description="Entry IDs with the values to change",
    )


class BatchDeleteRequest(BaseModel):
    """Request model for archiving many entries."""

    ids: list[str] = Field(
        ...,
        min_length=1,
        max_length=MAX_BATCH_ITEMS,
        description="Entry (page) IDs to archive",
    )


class BatchItemErrorResponse(BaseModel):
    """A failed batch item."""

    index: int = Field(..., description="Position of the item in the request")
    input: Any = Field(None, description="The item as submitted")
    error: str = Field(..., description="Reason for the failure")
    attempts: int = Field(..., description="Attempts made before giving up")


class BatchResponse(BaseModel):
    """Response model for batch operations.

    Every submitted item is reported either in ``results`` or in ``errors``.
    """

    operation: str = Field(..., description="Batched operation: create, update or archive")
    total: int = Field(..., description="Number of submitted items")
    succeeded: int = Field(..., description="Number of items that succeeded")
    failed: int = Field(..., description="Number of items that failed")
    results: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Outputs of the successful items, in request order",
    )
    errors: list[BatchItemErrorResponse] = Field(
        default_factory=list,
        description="Failed items, in request order",
    )
    duration_ms: float = Field(..., description="Wall-clock duration of the batch")
