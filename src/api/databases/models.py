"""Pydantic models for database management endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from src.notion.models import ColumnDefinition, DatabaseSchema


class DatabaseCreateRequest(BaseModel):
    """Request model for database creation.

    A ``Title`` column is added when no title-typed column is given.
    """

    name: str = Field(..., min_length=1, description="Database title")
    columns: dict[str, ColumnDefinition] = Field(
        default_factory=dict,
        description="Column name to typed column definition",
    )
    parent_page_id: str | None = Field(
        None,
        description="Parent page ID (default: NOTION_PARENT_PAGE_ID, else workspace root)",
    )
    icon: dict[str, Any] | None = Field(None, description="Notion icon object")
    cover: dict[str, Any] | None = Field(None, description="Notion cover object")


class DatabaseUpdateRequest(BaseModel):
    """Request model for renaming a database or adding and changing columns."""

    name: str | None = Field(None, min_length=1, description="New database title")
    columns: dict[str, ColumnDefinition] | None = Field(
        None,
        description="Columns to add or change, keyed by name",
    )


class DatabaseListResponse(BaseModel):
    """Response model for listing registered databases."""

    results: list[DatabaseSchema] = Field(
        default_factory=list,
        description="Registered database schemas",
    )
