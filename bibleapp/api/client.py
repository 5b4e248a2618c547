"""Async HTTP client for the reading plan backend.

The session credential is attached here and nowhere else: as the
``auth_token`` cookie the backend sets after the OAuth callback, and as a
Bearer header when a token is configured. Components only ever see decoded
JSON payloads or an ``ApiError``.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from bibleapp.api.errors import ApiError, ErrorKind, classify
from bibleapp.config.settings import settings

AUTH_COOKIE_NAME = "auth_token"


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    """Extract (message, code) from an error response body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("message") or response.reason_phrase
        code = body.get("code")
        return str(message), str(code) if code else None
    return response.reason_phrase or f"HTTP {response.status_code}", None


class ApiClient:
    """Thin async client over ``httpx.AsyncClient``.

    - One shared connection pool per client instance
    - No retries (callers surface transient errors and let the user retry)
    - Every failure is raised as ApiError
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        token = settings.api_token if token is None else token
        headers = {"Accept": "application/json"}
        cookies = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
            cookies[AUTH_COOKIE_NAME] = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            cookies=cookies,
            timeout=timeout or settings.request_timeout,
            transport=transport,
        )

    @property
    def login_url(self) -> str:
        """URL of the external identity provider hand-off."""
        return f"{self.base_url}{settings.login_path}"

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Route relative to the base URL
            json: Optional JSON body
            params: Optional query parameters

        Returns:
            Decoded JSON payload, or None for an empty body

        Raises:
            ApiError: On transport failure, non-2xx status or malformed body
        """
        logger.debug(f"API → {method} {path}")
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"API timeout: {method} {path}: {e}")
            raise ApiError(ErrorKind.TRANSIENT, "The server took too long to respond") from e
        except httpx.RequestError as e:
            logger.warning(f"API request failed: {method} {path}: {e}")
            raise ApiError(ErrorKind.TRANSIENT, f"Network error: {e}") from e

        logger.debug(f"API ← {method} {path} {response.status_code}")

        if response.is_error:
            message, code = _error_details(response)
            kind = classify(response.status_code, code)
            raise ApiError(kind, message, status_code=response.status_code, code=code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"API returned malformed JSON: {method} {path}")
            raise ApiError(
                ErrorKind.TRANSIENT,
                "Malformed response from server",
                status_code=response.status_code,
            ) from e

    async def get(self, path: str, *, params: dict[str, str] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json: dict[str, Any] | None = None) -> Any:
        return await self.request("POST", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
