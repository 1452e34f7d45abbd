"""Tests for discovery endpoints."""

import os

# Set required environment variables before importing API modules
os.environ.setdefault("API_AUTH_TOKEN", "test-auth-token")
os.environ.setdefault("NOTION_INTEGRATION_SECRET", "test-notion-token")

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from src.api.app import create_app
from src.dynamic.registry import SchemaRegistry
from src.dynamic.storage import SchemaStore
from src.notion.exceptions import NotionClientError, NotionNotFoundError
from src.notion.models import DatabaseSchema


class TestDiscoveryEndpoints(unittest.TestCase):
    """Tests for /discovery endpoints."""

    def setUp(self) -> None:
        """Set up test client."""
        self._tmp = tempfile.TemporaryDirectory()
        self.notion = MagicMock()
        self.store = SchemaStore(Path(self._tmp.name))
        self.registry = SchemaRegistry(self.notion, self.store, reserved_id="tasks-db")

        self.app = create_app()
        self.app.state.registry = self.registry
        self.client = TestClient(self.app)
        self.auth_headers = {"X-API-Key": "test-auth-token"}

        patcher = patch("src.api.dependencies.NotionClient", return_value=self.notion)
        patcher.start()
        self.addCleanup(patcher.stop)
        env_patcher = patch.dict(os.environ, {"API_AUTH_TOKEN": "test-auth-token"})
        env_patcher.start()
        self.addCleanup(env_patcher.stop)

    def tearDown(self) -> None:
        """Remove the temporary directory."""
        self._tmp.cleanup()

    def test_discover_databases_marks_registered(self) -> None:
        """Test that discovered databases report which are registered."""
        self.registry.register(DatabaseSchema(id="db-1", name="Groceries"))
        self.notion.search_all.return_value = [
            {"id": "db-1", "title": [{"plain_text": "Groceries"}]},
            {"id": "db-2", "title": [{"plain_text": "Books"}]},
        ]

        response = self.client.get("/discovery/databases", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual([r["name"] for r in data["results"]], ["Groceries", "Books"])
        self.assertEqual(data["registered"], ["db-1"])

    def test_discover_databases_notion_error_returns_502(self) -> None:
        """Test that a failed search returns 502."""
        self.notion.search_all.side_effect = NotionClientError("timeout")

        response = self.client.get("/discovery/databases", headers=self.auth_headers)

        self.assertEqual(response.status_code, 502)

    def test_discover_databases_with_schemas(self) -> None:
        """Test listing every database with its live schema."""
        self.registry.register(DatabaseSchema(id="db-1", name="Groceries"))
        self.notion.search_all.return_value = [
            {"id": "db-1", "title": [{"plain_text": "Groceries"}]},
            {"id": "db-2", "title": [{"plain_text": "Books"}]},
        ]
        self.notion.get_database.side_effect = [
            {
                "id": "db-1",
                "title": [{"plain_text": "Groceries"}],
                "properties": {"Item": {"type": "title", "title": {}}},
            },
            NotionNotFoundError("Could not find database"),
        ]

        response = self.client.get("/discovery/databases/complete", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["registered"], ["db-1"])
        self.assertEqual(data["results"][0]["columns"]["Item"]["type"], "title")
        self.assertIsNone(data["results"][0]["error"])
        self.assertEqual(data["results"][1]["name"], "Books")
        self.assertIsNotNone(data["results"][1]["error"])

    def test_live_schema_is_not_registered(self) -> None:
        """Test that reading a live schema leaves the registry untouched."""
        self.notion.get_database.return_value = {
            "id": "db-3",
            "title": [{"plain_text": "Trips"}],
            "properties": {
                "Trip": {"type": "title", "title": {}},
                "Stage": {"type": "status", "status": {}},
            },
        }

        response = self.client.get("/discovery/databases/db-3/schema", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["columns"]["Stage"]["type"], "status")
        self.assertIsNone(self.registry.get("db-3"))
        self.assertFalse(self.store.exists("db-3"))

    def test_live_schema_missing_returns_404(self) -> None:
        """Test that an unknown database returns 404."""
        self.notion.get_database.side_effect = NotionNotFoundError("Could not find database")

        response = self.client.get(
            "/discovery/databases/missing/schema", headers=self.auth_headers
        )

        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
