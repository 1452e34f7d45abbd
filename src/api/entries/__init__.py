"""Dynamic database entry API."""

from src.api.entries.endpoints import router

__all__ = ["router"]
