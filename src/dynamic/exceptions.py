"""Exceptions raised by the dynamic database layer."""


class ValidationError(Exception):
    """Raised when caller input is malformed or missing required fields.

    Never retried; surfaced to API callers as HTTP 400.
    """

    pass


class NotFoundError(Exception):
    """Raised when a database or entry ID is unknown.

    Never retried; surfaced to API callers as HTTP 404.
    """

    pass
