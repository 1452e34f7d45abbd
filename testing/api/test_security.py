"""Tests for API key authentication."""

import os

# Set required environment variables before importing API modules
os.environ.setdefault("API_AUTH_TOKEN", "test-auth-token")
os.environ.setdefault("NOTION_INTEGRATION_SECRET", "test-notion-token")

import unittest
from unittest.mock import MagicMock, patch

from fastapi import HTTPException
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.security import get_api_token, verify_api_key


class TestGetApiToken(unittest.TestCase):
    """Tests for get_api_token function."""

    @patch.dict(os.environ, {"API_AUTH_TOKEN": "test-token"})
    def test_returns_token_from_environment(self) -> None:
        """Test that token is retrieved from environment variable."""
        self.assertEqual(get_api_token(), "test-token")

    @patch.dict(os.environ, {}, clear=True)
    def test_raises_value_error_when_not_set(self) -> None:
        """Test that ValueError is raised when token is not configured."""
        with self.assertRaises(ValueError) as context:
            get_api_token()
        self.assertIn("API_AUTH_TOKEN", str(context.exception))


class TestVerifyApiKey(unittest.TestCase):
    """Tests for verify_api_key dependency."""

    @patch.dict(os.environ, {"API_AUTH_TOKEN": "valid-token"})
    def test_valid_key_returns_key(self) -> None:
        """Test that a valid key passes verification."""
        self.assertEqual(verify_api_key("valid-token"), "valid-token")

    @patch.dict(os.environ, {"API_AUTH_TOKEN": "valid-token"})
    def test_missing_key_raises_401(self) -> None:
        """Test that a missing key raises 401."""
        with self.assertRaises(HTTPException) as context:
            verify_api_key(None)
        self.assertEqual(context.exception.status_code, 401)

    @patch.dict(os.environ, {"API_AUTH_TOKEN": "valid-token"})
    def test_wrong_key_raises_403(self) -> None:
        """Test that a wrong key raises 403."""
        with self.assertRaises(HTTPException) as context:
            verify_api_key("wrong-token")
        self.assertEqual(context.exception.status_code, 403)

    @patch.dict(os.environ, {}, clear=True)
    def test_unconfigured_raises_500(self) -> None:
        """Test that a missing server token raises 500."""
        with self.assertRaises(HTTPException) as context:
            verify_api_key("any")
        self.assertEqual(context.exception.status_code, 500)


class TestProtectedRoutes(unittest.TestCase):
    """Tests that routers enforce the X-API-Key header."""

    def setUp(self) -> None:
        """Set up test client."""
        self.app = create_app()
        self.app.state.registry = MagicMock()
        self.app.state.registry.list_all.return_value = []
        self.client = TestClient(self.app)

    def test_health_is_public(self) -> None:
        """Test that the health check needs no key."""
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    @patch.dict(os.environ, {"API_AUTH_TOKEN": "test-auth-token"})
    def test_routes_require_key(self) -> None:
        """Test that every router rejects requests without a key."""
        for method, path in (
            ("get", "/databases"),
            ("get", "/discovery/databases"),
            ("get", "/databases/db-1/entries"),
            ("post", "/databases/db-1/entries/batch"),
        ):
            with self.subTest(path=path):
                response = getattr(self.client, method)(path)
                self.assertEqual(response.status_code, 401)

    @patch.dict(os.environ, {"API_AUTH_TOKEN": "test-auth-token"})
    def test_wrong_key_returns_403(self) -> None:
        """Test that a wrong key is forbidden."""
        response = self.client.get("/databases", headers={"X-API-Key": "nope"})

        self.assertEqual(response.status_code, 403)

    @patch.dict(os.environ, {"API_AUTH_TOKEN": "test-auth-token"})
    def test_valid_key_is_accepted(self) -> None:
        """Test that the configured key grants access."""
        response = self.client.get("/databases", headers={"X-API-Key": "test-auth-token"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"results": []})


if __name__ == "__main__":
    unittest.main()
