"""Read-only discovery of databases shared with the Notion integration."""

import logging

from src.dynamic.exceptions import NotFoundError
from src.dynamic.registry import SchemaRegistry
from src.notion.client import NotionClient
from src.notion.exceptions import NotionClientError, NotionNotFoundError
from src.notion.models import DatabaseSchema, DatabaseSummary, DiscoveredSchema
from src.notion.schema import UNTITLED_DATABASE, extract_plain_title, schema_from_database

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Introspects Notion to find databases and their live schemas."""

    def __init__(self, client: NotionClient) -> None:
        """Initialise the service.

        :param client: Notion client.
        """
        self._client = client

    def list_all(self) -> list[DatabaseSummary]:
        """List every database visible to the integration, most recently edited first.

        :returns: Database summaries.
        :raises NotionClientError: If the search fails.
        """
        results = self._client.search_all(object_type="database")

        return [
            DatabaseSummary(
                id=database["id"],
                name=extract_plain_title(database.get("title")) or UNTITLED_DATABASE,
                url=database.get("url"),
                created_time=database.get("created_time"),
                last_edited_time=database.get("last_edited_time"),
            )
            for database in results
            if database.get("id")
        ]

    def get_schema(self, database_id: str) -> DatabaseSchema:
        """Fetch a database's live schema in canonical form.

        :param database_id: Notion database ID.
        :returns: Canonical schema.
        :raises NotFoundError: If Notion does not know the database.
        :raises NotionClientError: If the request fails.
        """
        try:
            database = self._client.get_database(database_id)
        except NotionNotFoundError as e:
            raise NotFoundError(f"Database {database_id} not found in Notion") from e

        schema = schema_from_database(database)
        logger.info(
            f"Discovered database schema: id={schema.id}, name={schema.name!r}, "
            f"columns={len(schema.columns)}"
        )
        return schema

    def hydrate(self, registry: SchemaRegistry, database_id: str) -> DatabaseSchema | None:
        """Register and persist the live schema of a database the registry lacks.

        :param registry: Registry to populate.
        :param database_id: Notion database ID.
        :returns: The registered schema, or None for the reserved ID.
        :raises NotFoundError: If Notion does not know the database.
        :raises NotionClientError: If the request fails.
        """
        if registry.is_reserved(database_id):
            return None

        existing = registry.get(database_id)
        if existing is not None:
            return existing

        schema = self.get_schema(database_id)
        registry.register(schema)
        registry.save(schema)
        return schema

    def list_all_with_schemas(self) -> list[DiscoveredSchema]:
        """List every visible database together with its live schema.

        A database whose schema cannot be retrieved is still listed, with no
        columns and an error message.

        :returns: Discovered schemas in search order.
        :raises NotionClientError: If the search itself fails.
        """
        discovered: list[DiscoveredSchema] = []

        for summary in self.list_all():
            try:
                schema = self.get_schema(summary.id)
            except (NotFoundError, NotionClientError) as e:
                logger.warning(f"Failed to get schema during discovery: id={summary.id}, error={e}")
                discovered.append(
                    DiscoveredSchema(
                        **summary.model_dump(),
                        error=f"Failed to retrieve schema: {e}",
                    )
                )
                continue
            discovered.append(DiscoveredSchema(**schema.model_dump()))

        logger.info(f"Discovered {len(discovered)} databases with schemas")
        return discovered
