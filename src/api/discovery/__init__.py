"""Notion database discovery API."""

from src.api.discovery.endpoints import router

__all__ = ["router"]
