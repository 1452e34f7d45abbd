"""Dynamic database management API."""

from src.api.databases.endpoints import router

__all__ = ["router"]
