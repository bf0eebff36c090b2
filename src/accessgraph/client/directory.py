"""
Access Directory Service client.

A thin synchronous wrapper over ``requests``. It returns decoded JSON and
maps failures onto the accessgraph error taxonomy:

    401            -> SessionExpiredError
    403            -> AccessDeniedError
    other failures -> DirectoryError

Payload shapes are not validated here; that is the normalizer's job.
"""

import logging
from typing import Any, Dict

import requests

from ..config import (
    GENERIC_FETCH_ERROR,
    UI_ACCESS_MATRIX_PATH,
    USER_ACCESS_MATRIX_PATH,
    USERS_PATH,
    Settings,
)
from ..core.exceptions import AccessDeniedError, DirectoryError, SessionExpiredError

logger = logging.getLogger(__name__)


def _server_message(response: requests.Response) -> str | None:
    """Extract the ``message`` field from an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return None


class AccessDirectoryClient:
    """
    Client for the Access Directory REST API.

    Args:
        base_url: Service root, e.g. ``http://localhost:8080``.
        token: Optional bearer token sent on every request.
        timeout: Per-request timeout in seconds.
        session: Injected ``requests.Session`` (tests, connection reuse).
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, settings: Settings) -> "AccessDirectoryClient":
        return cls(settings.base_url, token=settings.token, timeout=settings.timeout)

    def _get(self, path: str, fallback_message: str = GENERIC_FETCH_ERROR) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            raise DirectoryError(f"Request timed out after {self.timeout}s: {url}") from e
        except requests.RequestException as e:
            raise DirectoryError(f"{fallback_message}: {e}") from e

        if response.status_code == 401:
            raise SessionExpiredError(_server_message(response) or SessionExpiredError().message)
        if response.status_code == 403:
            raise AccessDeniedError(_server_message(response) or AccessDeniedError().message)
        if not response.ok:
            raise DirectoryError(_server_message(response) or fallback_message, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise DirectoryError(f"Invalid JSON from {url}", response.status_code) from e

    def list_users(self) -> Any:
        """GET the user list."""
        return self._get(USERS_PATH, "Failed to load users")

    def get_ui_access_matrix(self) -> Any:
        """GET the full UI page access matrix (``{"pages": [...]}``)."""
        return self._get(UI_ACCESS_MATRIX_PATH, "Failed to load UI pages")

    def get_user_access_matrix(self, user_id: int | str) -> Dict[str, Any]:
        """GET the role -> policy -> endpoint fan-out for one user."""
        return self._get(USER_ACCESS_MATRIX_PATH.format(user_id=user_id), "Failed to build access map")

    def close(self) -> None:
        self.session.close()


class SnapshotDirectoryClient:
    """
    Serves a saved Access Directory response instead of calling the service.

    Used for offline inspection. Every matrix call returns the same payload;
    the user list comes from an optional top-level ``users`` key.
    """

    def __init__(self, payload: Any):
        self.payload = payload

    def list_users(self) -> Any:
        if isinstance(self.payload, dict):
            return self.payload.get("users") or []
        return []

    def get_ui_access_matrix(self) -> Any:
        return self.payload

    def get_user_access_matrix(self, user_id: int | str) -> Any:
        return self.payload

    def close(self) -> None:
        pass
