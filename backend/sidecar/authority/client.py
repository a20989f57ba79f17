"""Async HTTP client for the remote authority service.

Every authority endpoint answers with a JSON object carrying a ``status``
field. A call only succeeds when the transport status is 200 AND
``status == "OK"``; anything else becomes an AuthorityError whose message is
suitable for operator diagnostics (the body's ``message`` field is used
verbatim when present).
"""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import httpx
import structlog

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = structlog.get_logger()

RUNTIME_BASE_PATH = "/services/runtime/server"
AUTHENTICATE_ENDPOINT = f"{RUNTIME_BASE_PATH}/authenticate"
HEARTBEAT_ENDPOINT = f"{RUNTIME_BASE_PATH}/heartbreath"
ALLOWLIST_ENDPOINT = f"{RUNTIME_BASE_PATH}/fetchallowlist"

STATUS_OK = "OK"


class AuthorityError(Exception):
    """An authority call failed at the transport or application level."""


class AuthorityClient:
    """Thin wrapper around a shared ``httpx.AsyncClient`` for one authority base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        connect_timeout: float = 10.0,
        request_timeout: float = 30.0,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._http = http or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(request_timeout, connect=connect_timeout),
            headers={"Content-Type": "application/json"},
        )

    async def post(self, endpoint: str, headers: Mapping[str, str]) -> dict[str, Any]:
        """POST with an empty body and return the decoded success payload."""
        return await self._call("POST", endpoint, headers)

    async def get(self, endpoint: str, headers: Mapping[str, str]) -> dict[str, Any]:
        """GET and return the decoded success payload."""
        return await self._call("GET", endpoint, headers)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _call(self, method: str, endpoint: str, headers: Mapping[str, str]) -> dict[str, Any]:
        try:
            if method == "POST":
                response = await self._http.post(endpoint, headers=dict(headers))
            else:
                response = await self._http.get(endpoint, headers=dict(headers))
        except httpx.HTTPError as e:
            raise AuthorityError(f"Failed to reach authority: {e}") from e

        logger.debug("authority response", endpoint=endpoint, status_code=response.status_code)

        if response.status_code != HTTPStatus.OK:
            raise AuthorityError(f"Request failed with status {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            # ValueError covers JSON decode errors from non-JSON responses
            raise AuthorityError(f"Invalid JSON response: {response.text}") from e

        if not isinstance(body, dict):
            raise AuthorityError(f"Unexpected response body: {response.text}")

        if body.get("status") != STATUS_OK:
            raise AuthorityError(str(body.get("message") or "Unknown error"))

        return body
