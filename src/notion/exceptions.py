"""Custom exceptions for the Notion API client."""


class NotionClientError(Exception):
    """Raised when a Notion API request fails.

    This exception covers HTTP errors, API-level errors returned by Notion,
    and configuration issues such as missing authentication tokens.
    """

    pass


class NotionNotFoundError(NotionClientError):
    """Raised when Notion reports that an object does not exist or is not shared."""

    pass
