"""Per-database access to entries (Notion pages) of a registered schema."""

import asyncio
import builtins
import logging
from dataclasses import dataclass, field
from typing import Any

from src.dynamic.batch import BatchExecutor, BatchResult
from src.dynamic.exceptions import NotFoundError, ValidationError
from src.dynamic.registry import SchemaRegistry
from src.notion.client import MAX_PAGE_SIZE, NotionClient
from src.notion.exceptions import NotionClientError, NotionNotFoundError
from src.notion.models import DatabaseSchema, Entry, EntryPage, EntryQuery
from src.notion.parser import build_properties, build_query_filter, build_sorts, parse_page

logger = logging.getLogger(__name__)

# Batch item errors that retrying cannot fix
NON_RETRYABLE_ERRORS: tuple[type[Exception], ...] = (ValidationError, NotFoundError)


@dataclass
class EntryUpdate:
    """One item of a batch update."""

    id: str
    values: dict[str, Any]


@dataclass
class BatchItemError:
    """Failure details for a single batch item."""

    index: int
    input: Any
    error: str
    attempts: int


@dataclass
class BatchSummary:
    """Batch outcome reshaped for callers."""

    operation: str
    total: int
    succeeded: int
    failed: int
    results: list[Any] = field(default_factory=list)
    errors: list[BatchItemError] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def all_succeeded(self) -> bool:
        """True when no item failed."""
        return self.failed == 0


def summarise_batch(operation: str, result: BatchResult) -> BatchSummary:
    """Reshape a generic batch result into a summary.

    :param operation: Name of the batched operation, e.g. "create".
    :param result: Generic batch result.
    :returns: Summary with counts, outputs and itemised errors.
    """
    return BatchSummary(
        operation=operation,
        total=result.total,
        succeeded=len(result.successful),
        failed=len(result.failed),
        results=[item.output for item in sorted(result.successful, key=lambda s: s.index)],
        errors=[
            BatchItemError(
                index=item.index,
                input=item.input,
                error=item.error_message,
                attempts=item.attempts,
            )
            for item in sorted(result.failed, key=lambda f: f.index)
        ],
        duration_ms=result.total_duration_ms,
    )


class EntryRepository:
    """Reads and writes the entries of one registered database.

    Fails fast if the database has no registered schema; hydrating unknown
    databases from Notion is the caller's job.
    """

    def __init__(
        self,
        client: NotionClient,
        registry: SchemaRegistry,
        database_id: str,
        *,
        executor: BatchExecutor | None = None,
        default_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        """Initialise the repository for a database.

        :param client: Notion client.
        :param registry: Schema registry to resolve the database schema.
        :param database_id: Database ID.
        :param executor: Batch executor for bulk operations.
        :param default_page_size: Page size when a query does not set one.
        :raises NotFoundError: If the database has no registered schema.
        """
        schema = registry.get(database_id)
        if schema is None:
            raise NotFoundError(f"No schema found for database ID: {database_id}")

        self._client = client
        self._schema = schema
        self._executor = executor or BatchExecutor()
        self._default_page_size = default_page_size

    @property
    def schema(self) -> DatabaseSchema:
        """Schema of the bound database."""
        return self._schema

    @property
    def database_id(self) -> str:
        """ID of the bound database."""
        return self._schema.id

    def list(self, query: EntryQuery | None = None) -> EntryPage:
        """List one page of entries.

        :param query: Filters, sorts and paging. Defaults to newest first.
        :returns: Entries with pagination info.
        :raises NotionClientError: If the query fails.
        """
        query = query or EntryQuery()
        columns = self._schema.columns
        page_size = max(1, min(query.page_size or self._default_page_size, MAX_PAGE_SIZE))

        response = self._client.query_database(
            self.database_id,
            filter_=build_query_filter(columns, query.filters),
            sorts=build_sorts(columns, query.sorts),
            start_cursor=query.start_cursor,
            page_size=page_size,
        )

        return EntryPage(
            entries=[parse_page(page) for page in response.get("results", [])],
            has_more=response.get("has_more", False),
            next_cursor=response.get("next_cursor"),
        )

    def get_one(self, entry_id: str) -> Entry:
        """Retrieve a single entry.

        :param entry_id: Notion page ID.
        :returns: The entry.
        :raises NotFoundError: If Notion does not know the page.
        :raises NotionClientError: If the request fails.
        """
        try:
            return parse_page(self._client.get_page(entry_id))
        except NotionNotFoundError as e:
            raise NotFoundError(f"Entry {entry_id} not found") from e

    def _title_is_empty(self, properties: dict[str, Any]) -> bool:
        title_column = self._schema.title_column
        if title_column is None:
            return False
        title = properties.get(title_column, {}).get("title") or []
        return not any((item.get("text") or {}).get("content", "").strip() for item in title)

    def create(self, values: dict[str, Any]) -> Entry:
        """Create an entry.

        :param values: Plain values keyed by column name.
        :returns: The created entry.
        :raises ValidationError: If the title ends up empty.
        :raises NotionClientError: If Notion rejects the request.
        """
        properties = build_properties(self._schema.columns, values)

        if self._title_is_empty(properties):
            raise ValidationError(
                f"Entry requires a non-empty {self._schema.title_column!r} value"
            )

        return parse_page(self._client.create_page(self.database_id, properties))

    def update(self, entry_id: str, values: dict[str, Any]) -> Entry:
        """Update an entry's values.

        :param entry_id: Notion page ID.
        :param values: Plain values to change; explicit None clears a value.
        :returns: The updated entry.
        :raises ValidationError: If no writable values were given.
        :raises NotFoundError: If Notion does not know the page.
        :raises NotionClientError: If Notion rejects the request.
        """
        properties = build_properties(self._schema.columns, values)

        if not properties:
            raise ValidationError("No writable properties to update")

        try:
            return parse_page(self._client.update_page(entry_id, properties))
        except NotionNotFoundError as e:
            raise NotFoundError(f"Entry {entry_id} not found") from e

    def delete(self, entry_id: str) -> dict[str, Any]:
        """Archive an entry. Archiving an archived entry also succeeds.

        :param entry_id: Notion page ID.
        :returns: {"id": entry_id, "archived": True}
        :raises NotFoundError: If Notion does not know the page.
        :raises NotionClientError: If Notion rejects the request.
        """
        try:
            self._client.archive_page(entry_id)
        except NotionNotFoundError as e:
            raise NotFoundError(f"Entry {entry_id} not found") from e
        except NotionClientError:
            # Notion refuses to edit archived pages, which counts as done
            if not self.get_one(entry_id).archived:
                raise
            logger.info(f"Entry already archived: id={entry_id}")

        return {"id": entry_id, "archived": True}

    async def create_batch(self, values_list: builtins.list[dict[str, Any]]) -> BatchSummary:
        """Create many entries.

        :param values_list: Values for each new entry.
        :returns: Summary with created entries and per-item errors.
        """

        async def create_one(values: dict[str, Any]) -> Entry:
            return await asyncio.to_thread(self.create, values)

        result = await self._executor.run(
            values_list, create_one, non_retryable=NON_RETRYABLE_ERRORS
        )
        return summarise_batch("create", result)

    async def update_batch(self, updates: builtins.list[EntryUpdate]) -> BatchSummary:
        """Update many entries.

        :param updates: Entry IDs with the values to change.
        :returns: Summary with updated entries and per-item errors.
        """

        async def update_one(update: EntryUpdate) -> Entry:
            return await asyncio.to_thread(self.update, update.id, update.values)

        result = await self._executor.run(updates, update_one, non_retryable=NON_RETRYABLE_ERRORS)
        return summarise_batch("update", result)

    async def delete_batch(self, entry_ids: builtins.list[str]) -> BatchSummary:
        """Archive many entries.

        :param entry_ids: Notion page IDs.
        :returns: Summary with archived IDs and per-item errors.
        """

        async def delete_one(entry_id: str) -> dict[str, Any]:
            return await asyncio.to_thread(self.delete, entry_id)

        result = await self._executor.run(
            entry_ids, delete_one, non_retryable=NON_RETRYABLE_ERRORS
        )
        return summarise_batch("archive", result)
