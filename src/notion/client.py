"""Notion API client for interacting with databases and pages."""

import logging
import os
from typing import Any

import requests

from src.notion.exceptions import NotionClientError, NotionNotFoundError

logger = logging.getLogger(__name__)

# Notion API timeout in seconds
REQUEST_TIMEOUT = 30

# Notion API version (database-scoped endpoints)
NOTION_VERSION = "2022-06-28"

# Largest page size accepted by query and search endpoints
MAX_PAGE_SIZE = 100


class NotionClient:
    """Client for interacting with the Notion API.

    Provides methods for creating and querying databases and managing pages.
    """

    BASE_URL = "https://api.notion.com/v1"

    def __init__(self, *, token: str | None = None) -> None:
        """Initialise the Notion client.

        :param token: Notion integration token. If not provided, reads from
            NOTION_INTEGRATION_SECRET environment variable.
        :raises ValueError: If token is not provided and not found in environment.
        """
        self._token = token or os.environ.get("NOTION_INTEGRATION_SECRET")

        if not self._token:
            raise ValueError(
                "Notion integration token not provided. Set NOTION_INTEGRATION_SECRET "
                "environment variable or pass token parameter."
            )

        logger.debug("NotionClient initialised")

    @property
    def _headers(self) -> dict[str, str]:
        """Headers for Notion API requests.

        :returns: Dictionary of required headers.
        """
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "Notion-Version": NOTION_VERSION,
        }

    def _request(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a request to the Notion API.

        :param method: HTTP method.
        :param endpoint: API endpoint path (without base URL).
        :param payload: Optional request body as dictionary.
        :returns: JSON response as dictionary.
        :raises NotionNotFoundError: If Notion responds with 404.
        :raises NotionClientError: If the request fails for any other reason.
        """
        url = f"{self.BASE_URL}/{endpoint}"
        logger.debug(f"Making {method} request to endpoint={endpoint}")

        try:
            response = requests.request(
                method,
                url,
                headers=self._headers,
                json=payload,
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout as e:
            raise NotionClientError(f"Notion API request timed out after {REQUEST_TIMEOUT}s") from e
        except requests.exceptions.HTTPError as e:
            error_body = self._extract_error_message(e.response)
            message = f"Notion API request failed: {e.response.status_code} - {error_body}"
            if e.response.status_code == requests.codes.not_found:
                raise NotionNotFoundError(message) from e
            raise NotionClientError(message) from e
        except requests.exceptions.RequestException as e:
            raise NotionClientError(f"Notion API request failed: {e}") from e

    def _extract_error_message(self, response: requests.Response) -> str:
        """Extract error message from Notion API error response.

        :param response: Response object from failed request.
        :returns: Error message string.
        """
        try:
            data = response.json()
            return data.get("message", response.text)
        except ValueError:
            return response.text

    # Database endpoints

    def create_database(  # noqa: PLR0913
        self,
        parent: dict[str, Any],
        title: str,
        properties: dict[str, Any],
        *,
        icon: dict[str, Any] | None = None,
        cover: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a new database.

        :param parent: Parent object, a page or the workspace.
        :param title: Database title.
        :param properties: Property schema in Notion wire format.
        :param icon: Optional icon object.
        :param cover: Optional cover object.
        :returns: Created database object.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Creating database: title={title!r}, properties={len(properties)}")
        payload: dict[str, Any] = {
            "parent": parent,
            "title": [{"type": "text", "text": {"content": title}}],
            "properties": properties,
        }

        if icon is not None:
            payload["icon"] = icon

        if cover is not None:
            payload["cover"] = cover

        return self._request("POST", "databases", payload)

    def get_database(self, database_id: str) -> dict[str, Any]:
        """Retrieve database structure and properties.

        :param database_id: Notion database ID.
        :returns: Database object with properties schema.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Retrieving database: {database_id}")
        return self._request("GET", f"databases/{database_id}")

    def update_database(
        self,
        database_id: str,
        *,
        title: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Update a database's title and/or property schema.

        :param database_id: Notion database ID.
        :param title: New title, if changing.
        :param properties: Property definitions to add or change.
        :returns: Updated database object.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Updating database: {database_id}")
        payload: dict[str, Any] = {}

        if title is not None:
            payload["title"] = [{"type": "text", "text": {"content": title}}]

        if properties is not None:
            payload["properties"] = properties

        return self._request("PATCH", f"databases/{database_id}", payload)

    def query_database(
        self,
        database_id: str,
        *,
        filter_: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        start_cursor: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> dict[str, Any]:
        """Query pages from a database with filters.

        :param database_id: Notion database ID.
        :param filter_: Optional filter object for the query.
        :param sorts: Optional list of sort objects.
        :param start_cursor: Cursor for pagination.
        :param page_size: Number of results per page (max 100).
        :returns: Query results with pages and pagination info.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Querying database: {database_id}")
        payload: dict[str, Any] = {"page_size": min(page_size, MAX_PAGE_SIZE)}

        if filter_ is not None:
            payload["filter"] = filter_

        if sorts is not None:
            payload["sorts"] = sorts

        if start_cursor is not None:
            payload["start_cursor"] = start_cursor

        return self._request("POST", f"databases/{database_id}/query", payload)

    # Search endpoints

    def search(
        self,
        *,
        object_type: str | None = None,
        sort_timestamp: str = "last_edited_time",
        direction: str = "descending",
        start_cursor: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> dict[str, Any]:
        """Search objects shared with the integration.

        :param object_type: Restrict results to "database" or "page".
        :param sort_timestamp: Timestamp to sort on.
        :param direction: Sort direction.
        :param start_cursor: Cursor for pagination.
        :param page_size: Number of results per page (max 100).
        :returns: Search results with pagination info.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Searching Notion: object_type={object_type}")
        payload: dict[str, Any] = {
            "sort": {"direction": direction, "timestamp": sort_timestamp},
            "page_size": min(page_size, MAX_PAGE_SIZE),
        }

        if object_type is not None:
            payload["filter"] = {"property": "object", "value": object_type}

        if start_cursor is not None:
            payload["start_cursor"] = start_cursor

        return self._request("POST", "search", payload)

    def search_all(self, *, object_type: str | None = None) -> list[dict[str, Any]]:
        """Search all objects, handling pagination automatically.

        :param object_type: Restrict results to "database" or "page".
        :returns: List of all matching objects.
        :raises NotionClientError: If any request fails.
        """
        all_results: list[dict[str, Any]] = []
        start_cursor: str | None = None

        while True:
            response = self.search(object_type=object_type, start_cursor=start_cursor)
            all_results.extend(response.get("results", []))

            if not response.get("has_more", False):
                break

            start_cursor = response.get("next_cursor")
            if start_cursor is None:
                break

        logger.info(f"Search returned {len(all_results)} objects: object_type={object_type}")
        return all_results

    # Page endpoints

    def get_page(self, page_id: str) -> dict[str, Any]:
        """Retrieve a single page.

        :param page_id: Notion page ID.
        :returns: Page object with properties.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Retrieving page: {page_id}")
        return self._request("GET", f"pages/{page_id}")

    def create_page(
        self,
        database_id: str,
        properties: dict[str, Any],
    ) -> dict[str, Any]:
        """Create a new page in a database.

        :param database_id: Parent database ID.
        :param properties: Page properties to set.
        :returns: Created page object.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Creating page in database: {database_id}")
        payload = {
            "parent": {"database_id": database_id},
            "properties": properties,
        }
        return self._request("POST", "pages", payload)

    def update_page(
        self,
        page_id: str,
        properties: dict[str, Any],
    ) -> dict[str, Any]:
        """Update a page's properties.

        :param page_id: Notion page ID.
        :param properties: Properties to update.
        :returns: Updated page object.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Updating page: {page_id}")
        payload = {"properties": properties}
        return self._request("PATCH", f"pages/{page_id}", payload)

    def archive_page(self, page_id: str) -> dict[str, Any]:
        """Archive a page. Notion has no hard delete for pages.

        :param page_id: Notion page ID.
        :returns: Archived page object.
        :raises NotionClientError: If the request fails.
        """
        logger.info(f"Archiving page: {page_id}")
        return self._request("PATCH", f"pages/{page_id}", {"archived": True})
