"""REST API for Notion dynamic databases."""

from src.api.app import app, create_app

__all__ = ["app", "create_app"]
