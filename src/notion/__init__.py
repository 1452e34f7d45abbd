"""Notion API integration: client, canonical models and type coercion."""

from src.notion.client import NotionClient
from src.notion.exceptions import NotionClientError, NotionNotFoundError
from src.notion.models import ColumnDefinition, DatabaseSchema, DatabaseSpec, Entry, EntryPage

__all__ = [
    "ColumnDefinition",
    "DatabaseSchema",
    "DatabaseSpec",
    "Entry",
    "EntryPage",
    "NotionClient",
    "NotionClientError",
    "NotionNotFoundError",
]
