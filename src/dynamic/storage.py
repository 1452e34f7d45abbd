"""File-backed storage for database schemas, one JSON document per database."""

import logging
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from src.notion.models import DatabaseSchema

logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = ".json"


class SchemaStore:
    """Directory of ``<database_id>.json`` schema records."""

    def __init__(self, directory: Path) -> None:
        """Initialise the store.

        :param directory: Directory holding the schema files.
        """
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        """Directory holding the schema files."""
        return self._directory

    def _path_for(self, database_id: str) -> Path:
        return self._directory / f"{database_id}{SCHEMA_SUFFIX}"

    def ensure_directory(self) -> None:
        """Create the storage directory if it does not exist."""
        self._directory.mkdir(parents=True, exist_ok=True)

    def load_all(self) -> Iterator[tuple[Path, DatabaseSchema]]:
        """Yield every readable schema record with its file path.

        Unreadable or invalid files are logged and skipped.

        :returns: Iterator of (path, schema) pairs in file name order.
        """
        for path in sorted(self._directory.glob(f"*{SCHEMA_SUFFIX}")):
            try:
                yield path, DatabaseSchema.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, PydanticValidationError) as e:
                logger.error(f"Skipping unreadable schema file: path={path}, error={e}")

    def write(self, schema: DatabaseSchema) -> Path:
        """Write a schema record, replacing any previous version.

        :param schema: Schema to persist.
        :returns: Path of the written file.
        """
        self.ensure_directory()
        path = self._path_for(schema.id)
        path.write_text(schema.model_dump_json(indent=2), encoding="utf-8")
        logger.debug(f"Wrote schema file: path={path}")
        return path

    def delete(self, path: Path) -> None:
        """Delete a schema file if it exists.

        :param path: Path of the schema file.
        """
        path.unlink(missing_ok=True)
        logger.debug(f"Deleted schema file: path={path}")

    def exists(self, database_id: str) -> bool:
        """Check whether a record exists for a database ID."""
        return self._path_for(database_id).exists()
