"""Pydantic models for discovery endpoints."""

from pydantic import BaseModel, Field

from src.notion.models import DatabaseSummary, DiscoveredSchema


class DiscoveredDatabasesResponse(BaseModel):
    """Response model for listing databases shared with the integration."""

    results: list[DatabaseSummary] = Field(
        default_factory=list,
        description="Databases visible to the integration, most recently edited first",
    )
    registered: list[str] = Field(
        default_factory=list,
        description="IDs among the results that already have a registered schema",
    )


class DiscoveredSchemasResponse(BaseModel):
    """Response model for listing databases with their live schemas."""

    results: list[DiscoveredSchema] = Field(
        default_factory=list,
        description="Databases with live schemas; failed lookups carry an error",
    )
    registered: list[str] = Field(
        default_factory=list,
        description="IDs among the results that already have a registered schema",
    )
