"""Pydantic models shared across API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint."""

    detail: str = Field(..., description="Error description")


# OpenAPI documentation for the errors the database and entry routers map to
NOTION_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Database or entry not found"},
    502: {"model": ErrorResponse, "description": "Notion API request failed"},
}
