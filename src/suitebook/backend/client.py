"""HTTP client for the hotel REST API.

Endpoints used:
    POST /api/rooms/availability        {checkIn, checkOut, guests} -> {data: Room[]}
    GET  /api/admin/users?search=&limit -> {data: GuestProfile[]}
    POST /api/auth/sync-user-metadata   any 2xx is success

Security: NEVER log tokens or guest record values.
"""

from __future__ import annotations

from typing import Any

import requests

from suitebook.observability.correlation import CORRELATION_ID_HEADER, get_correlation_id
from suitebook.observability.logging import get_logger
from suitebook.observability.redaction import safe_log_context

logger = get_logger(__name__)

AVAILABILITY_PATH = "/api/rooms/availability"
USERS_PATH = "/api/admin/users"
SYNC_USER_METADATA_PATH = "/api/auth/sync-user-metadata"


class BackendError(Exception):
    """Non-success response from the hotel API.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        message: Error message from the response body, if any.
    """

    def __init__(self, status_code: int | None, message: str | None = None):
        self.status_code = status_code
        self.message = message
        super().__init__(f"hotel API error: status={status_code} message={message}")


class BackendUnavailable(BackendError):
    """Network failure or timeout talking to the hotel API."""

    def __init__(self, message: str | None = None):
        super().__init__(None, message)


def _error_message(response: requests.Response) -> str | None:
    """Pull `error` or `message` out of a JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


class BackendClient:
    """Thin requests wrapper. One instance is shared by all booking sessions."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 10,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        cid = get_correlation_id()
        if cid:
            headers[CORRELATION_ID_HEADER] = cid
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(token),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(
                "hotel API request failed",
                extra={"extra_fields": safe_log_context(path=path, error_type=type(e).__name__)},
            )
            raise BackendUnavailable(str(e))

        if not response.ok:
            message = _error_message(response)
            logger.warning(
                "hotel API returned error status",
                extra={"extra_fields": safe_log_context(path=path, status=response.status_code)},
            )
            raise BackendError(response.status_code, message)

        return response

    def _data_list(self, response: requests.Response, path: str) -> list[Any]:
        try:
            body = response.json()
        except ValueError:
            raise BackendError(response.status_code, f"non-JSON response from {path}")
        data = body.get("data") if isinstance(body, dict) else None
        if data is None:
            return []
        if not isinstance(data, list):
            raise BackendError(response.status_code, f"unexpected data shape from {path}")
        return data

    def check_room_availability(
        self,
        check_in: str,
        check_out: str,
        guests: int,
        token: str | None = None,
    ) -> list[dict[str, Any]]:
        """List candidate rooms for a date range and guest count."""
        response = self._request(
            "POST",
            AVAILABILITY_PATH,
            token=token,
            json={"checkIn": check_in, "checkOut": check_out, "guests": guests},
        )
        return self._data_list(response, AVAILABILITY_PATH)

    def search_users(
        self,
        search: str,
        limit: int = 1,
        token: str | None = None,
    ) -> list[dict[str, Any]]:
        """Look up user/guest records by search term (auth id)."""
        response = self._request(
            "GET",
            USERS_PATH,
            token=token,
            params={"search": search, "limit": limit},
        )
        return self._data_list(response, USERS_PATH)

    def sync_user_metadata(self, token: str | None = None) -> None:
        """Make sure the signed-in user's row exists before booking."""
        self._request("POST", SYNC_USER_METADATA_PATH, token=token, json={})
