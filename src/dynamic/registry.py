"""Process-wide registry of dynamic database schemas.

The registry is the source of truth consulted before any entry operation. It
is constructed once per process, initialised from durable storage and passed
to its consumers. One database ID, the hardcoded Tasks database, is reserved:
it can never be registered, loaded, saved or updated, and lookups for it
always come back empty.
"""

import logging
import threading
from typing import Any

from src.dynamic.exceptions import NotFoundError, ValidationError
from src.dynamic.storage import SchemaStore
from src.notion.client import NotionClient
from src.notion.enums import PropertyType
from src.notion.models import ColumnDefinition, DatabaseSchema, DatabaseSpec, SimpleColumn
from src.notion.schema import from_wire_columns, schema_from_database, to_wire_columns

logger = logging.getLogger(__name__)

DEFAULT_TITLE_COLUMN = "Title"
WORKSPACE_PARENT: dict[str, Any] = {"type": "workspace", "workspace": True}

# Fields of a schema that update() may change
_MUTABLE_FIELDS = ("name", "last_edited_time", "url")


def normalise_database_id(database_id: str) -> str:
    """Normalise a Notion ID so dashed and undashed forms compare equal."""
    return database_id.replace("-", "").lower()


def ensure_title_column(columns: dict[str, ColumnDefinition]) -> dict[str, ColumnDefinition]:
    """Return columns with exactly one title column, injecting "Title" if none.

    :param columns: Column name to definition.
    :returns: A new mapping containing a single title column.
    :raises ValidationError: If more than one title column is defined.
    """
    titles = [name for name, column in columns.items() if column.type == PropertyType.TITLE]

    if len(titles) > 1:
        raise ValidationError(f"A database must have exactly one title column, got {titles}")

    normalised = dict(columns)
    if not titles:
        if DEFAULT_TITLE_COLUMN in normalised:
            raise ValidationError(
                f"Column {DEFAULT_TITLE_COLUMN!r} must be of type title when no title column "
                "is defined"
            )
        normalised[DEFAULT_TITLE_COLUMN] = SimpleColumn(name=DEFAULT_TITLE_COLUMN, type="title")

    return normalised


class SchemaRegistry:
    """Mapping of database ID to schema, backed by a SchemaStore."""

    def __init__(
        self,
        client: NotionClient,
        store: SchemaStore,
        *,
        reserved_id: str | None = None,
        default_parent_page_id: str | None = None,
    ) -> None:
        """Initialise the registry. Call initialize() before use.

        :param client: Notion client for creating and altering databases.
        :param store: Durable schema storage.
        :param reserved_id: Database ID excluded from the registry.
        :param default_parent_page_id: Parent page used when create() gets none.
        """
        self._client = client
        self._store = store
        self._reserved_id = reserved_id
        self._default_parent_page_id = default_parent_page_id
        self._schemas: dict[str, DatabaseSchema] = {}
        self._lock = threading.Lock()

    def is_reserved(self, database_id: str | None) -> bool:
        """Check whether a database ID is the reserved one.

        :param database_id: Database ID to check.
        :returns: True for the reserved ID.
        """
        if not self._reserved_id or not database_id:
            return False
        return normalise_database_id(database_id) == normalise_database_id(self._reserved_id)

    def initialize(self) -> None:
        """Load every stored schema into memory.

        A record stored under the reserved ID is deleted from storage rather
        than skipped, so it cannot be picked up again. Records that fail to
        register are logged and left on disk.
        """
        self._store.ensure_directory()

        for path, schema in self._store.load_all():
            if self.is_reserved(schema.id) or self.is_reserved(path.stem):
                logger.warning(f"Removing stored schema for reserved database: path={path}")
                self._store.delete(path)
                continue
            try:
                self.register(schema)
            except ValidationError as e:
                logger.error(f"Skipping invalid stored schema: path={path}, error={e}")

        logger.info(f"Loaded {len(self._schemas)} database schemas from {self._store.directory}")

    def teardown(self) -> None:
        """Drop all in-memory schemas."""
        with self._lock:
            self._schemas.clear()
        logger.info("Schema registry torn down")

    def register(self, schema: DatabaseSchema) -> None:
        """Add or replace a schema in memory.

        :param schema: Schema to register.
        :raises ValidationError: If the schema has no ID or name.
        """
        if self.is_reserved(schema.id):
            logger.info(f"Refusing to register reserved database: id={schema.id}")
            return

        if not schema.id or not schema.name:
            raise ValidationError("Database schema must include id and name")

        with self._lock:
            self._schemas[schema.id] = schema
        logger.info(f"Registered database: name={schema.name!r}, id={schema.id}")

    def get(self, database_id: str) -> DatabaseSchema | None:
        """Look up a schema by database ID.

        :param database_id: Database ID.
        :returns: The schema, or None if unknown or reserved.
        """
        if self.is_reserved(database_id):
            return None

        schema = self._schemas.get(database_id)
        if schema is not None:
            return schema

        wanted = normalise_database_id(database_id)
        for registered_id, candidate in list(self._schemas.items()):
            if normalise_database_id(registered_id) == wanted:
                return candidate
        return None

    def list_all(self) -> list[DatabaseSchema]:
        """Return every registered schema."""
        return list(self._schemas.values())

    def save(self, schema: DatabaseSchema) -> None:
        """Persist a schema to storage.

        :param schema: Schema to persist.
        """
        if self.is_reserved(schema.id):
            logger.info(f"Refusing to save reserved database: id={schema.id}")
            return

        path = self._store.write(schema)
        logger.info(f"Saved schema: name={schema.name!r}, path={path}")

    def _resolve_parent(self, parent_page_id: str | None) -> dict[str, Any]:
        """Pick the parent for a new database, falling back to the workspace root."""
        page_id = parent_page_id or self._default_parent_page_id
        if page_id:
            return {"type": "page_id", "page_id": page_id}
        return dict(WORKSPACE_PARENT)

    def create(self, spec: DatabaseSpec) -> DatabaseSchema:
        """Create a database in Notion, then register and persist its schema.

        :param spec: Name, columns and optional parent of the new database.
        :returns: The registered schema.
        :raises ValidationError: If the columns are invalid.
        :raises NotionClientError: If Notion rejects the request.
        """
        columns = ensure_title_column(spec.columns)
        properties = to_wire_columns(columns)

        response = self._client.create_database(
            parent=self._resolve_parent(spec.parent_page_id),
            title=spec.name,
            properties=properties,
            icon=spec.icon,
            cover=spec.cover,
        )

        created_columns = from_wire_columns(response.get("properties") or {}) or columns
        schema = DatabaseSchema(
            id=response["id"],
            name=spec.name,
            columns=created_columns,
            created_time=response.get("created_time"),
            last_edited_time=response.get("last_edited_time"),
            url=response.get("url"),
        )

        self.register(schema)
        self.save(schema)
        return schema

    def update(self, database_id: str, patch: dict[str, Any]) -> DatabaseSchema:
        """Merge changes into a registered schema and persist it.

        Columns in the patch are merged by name; other fields are replaced.

        :param database_id: Database ID.
        :param patch: Fields to change: name, columns, last_edited_time, url.
        :returns: The updated schema.
        :raises NotFoundError: If the ID is unknown or reserved.
        """
        current = self.get(database_id)
        if current is None:
            raise NotFoundError(f"Database with ID {database_id} not found in registry")

        merged = current.model_dump()
        for key in _MUTABLE_FIELDS:
            if patch.get(key) is not None:
                merged[key] = patch[key]

        merged_columns = dict(current.columns)
        merged_columns.update(patch.get("columns") or {})
        merged["columns"] = merged_columns

        updated = DatabaseSchema.model_validate(merged)
        with self._lock:
            self._schemas[current.id] = updated
        self.save(updated)
        return updated

    def alter(
        self,
        database_id: str,
        *,
        name: str | None = None,
        columns: dict[str, ColumnDefinition] | None = None,
    ) -> DatabaseSchema:
        """Change a database in Notion and re-sync its schema from the live copy.

        :param database_id: Database ID.
        :param name: New title, if changing.
        :param columns: Columns to add or change.
        :returns: The re-synced schema.
        :raises NotFoundError: If the ID is unknown or reserved.
        :raises ValidationError: If the columns are invalid.
        :raises NotionClientError: If Notion rejects the request.
        """
        current = self.get(database_id)
        if current is None:
            raise NotFoundError(f"Database with ID {database_id} not found in registry")

        properties = to_wire_columns(columns) if columns else None
        self._client.update_database(database_id, title=name, properties=properties)

        live = schema_from_database(self._client.get_database(database_id))
        synced = live.model_copy(
            update={"created_time": live.created_time or current.created_time}
        )

        with self._lock:
            self._schemas[current.id] = synced
        self.save(synced)
        logger.info(f"Re-synced database schema: id={database_id}, columns={len(synced.columns)}")
        return synced

    def remove(self, database_id: str) -> bool:
        """Drop a schema from memory only; its stored file is left in place.

        :param database_id: Database ID.
        :returns: True if a schema was removed.
        """
        schema = self.get(database_id)
        if schema is None:
            return False

        with self._lock:
            removed = self._schemas.pop(schema.id, None)
        return removed is not None
