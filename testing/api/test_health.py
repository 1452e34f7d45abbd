"""Tests for health check endpoints."""

import unittest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.health.endpoints import API_VERSION


class TestHealthEndpoint(unittest.TestCase):
    """Tests for /health endpoint."""

    def setUp(self) -> None:
        """Set up test client."""
        self.app = create_app()
        self.client = TestClient(self.app)

    def test_health_check_before_startup(self) -> None:
        """Test that health check works without a loaded registry."""
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"status": "healthy", "version": API_VERSION, "registered_databases": 0},
        )

    def test_health_check_reports_registry_size(self) -> None:
        """Test that health check counts registered schemas."""
        self.app.state.registry = MagicMock()
        self.app.state.registry.list_all.return_value = [MagicMock(), MagicMock()]

        response = self.client.get("/health")

        self.assertEqual(response.json()["registered_databases"], 2)


if __name__ == "__main__":
    unittest.main()
