"""
Error taxonomy for accessgraph.

Malformed data is never an error here: the normalizer, hierarchy
reconstructor, graph builder and layout adapter default missing fields
instead of raising. Exceptions are reserved for the fetch boundary and
for selections that the current snapshot cannot satisfy.
"""


class AccessGraphError(Exception):
    """Base class for all accessgraph errors."""


class DirectoryError(AccessGraphError):
    """
    Raised when a request to the Access Directory Service fails.

    Covers network errors, timeouts, 5xx responses and undecodable bodies.

    Attributes:
        message: Human-readable error message (server supplied when available).
        status_code: HTTP status, or None when no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(f"{message} (HTTP {status_code})" if status_code else message)


class AccessDeniedError(DirectoryError):
    """The service answered 403 Forbidden."""

    def __init__(self, message: str = "You do not have permission to view this data", status_code: int | None = 403):
        super().__init__(message, status_code)


class SessionExpiredError(DirectoryError):
    """The service answered 401. Session handling belongs to the caller."""

    def __init__(self, message: str = "Session expired, please log in again", status_code: int | None = 401):
        super().__init__(message, status_code)


class PageNotFoundError(AccessGraphError):
    """
    Raised when a selected page id is absent from the fetched snapshot.

    Attributes:
        page_id: The id that could not be resolved.
    """

    def __init__(self, page_id):
        self.page_id = page_id
        super().__init__(f"Page not found in visualization: {page_id}")
