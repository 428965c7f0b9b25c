"""
Async HTTP transport for the GitHub REST API.

Handles authentication headers, pagination, automatic retry of transient
failures and parsing of error responses into typed errors using an httpx
async client.
"""

import time
from datetime import datetime, timezone
from typing import Any

import httpx

from renovate_merger.exceptions import (
    ErrorCode,
    MergerError,
    api_error,
    auth_error,
    network_error,
    rate_limit_error,
)
from renovate_merger.logging import log_http_request, log_http_response
from renovate_merger.retry import RetryConfig, with_retry

DEFAULT_RATE_LIMIT_WAIT = 60


class HTTPTransport:
    """
    Async HTTP transport layer with authentication and retry logic.

    Handles:
    - Bearer token authentication and GitHub API version headers
    - Exponential backoff for 5xx responses and network errors
    - Waiting for rate limit resets (primary and secondary limits)
    - Error response parsing into MergerError kinds
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the HTTP transport.

        Args:
            base_url: Base URL for API requests (e.g., "https://api.github.com")
            token: GitHub token sent as a bearer credential
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            transport: Optional httpx transport (used by tests to stub the network)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "gh-renovate-merge",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "HTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make a request with automatic retry.

        Args:
            method: HTTP method (GET, POST, PATCH, PUT, ...)
            path: API path (e.g., "/repos/octo/app/pulls/1")
            params: Query parameters
            body: JSON request body

        Returns:
            Parsed JSON response (None for empty bodies)

        Raises:
            MergerError: On API errors, after retries where applicable
        """
        response = await self._execute_with_retry(method, path, params, body)
        if not response.content:
            return None
        return response.json()

    async def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        per_page: int = 100,
        max_pages: int = 50,
    ) -> list[Any]:
        """
        Fetch every page of a list endpoint.

        Follows page numbers until a short page is returned.
        """
        items: list[Any] = []
        for page in range(1, max_pages + 1):
            page_params = {**(params or {}), "per_page": per_page, "page": page}
            data = await self.request("GET", path, params=page_params)
            batch = data if isinstance(data, list) else []
            items.extend(batch)
            if len(batch) < per_page:
                break
        return items

    async def _execute_with_retry(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        body: dict[str, Any] | None,
    ) -> httpx.Response:
        async def attempt() -> httpx.Response:
            return await self._send(method, path, params, body)

        return await with_retry(attempt, self.retry_config)

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        body: dict[str, Any] | None,
    ) -> httpx.Response:
        log_http_request(method, f"{self.base_url}{path}", dict(self._client.headers), body)
        started = time.monotonic()
        try:
            response = await self._client.request(method, path, params=params, json=body)
        except httpx.TimeoutException as e:
            raise network_error(
                f"Request to {path} timed out", code=ErrorCode.NETWORK_TIMEOUT, cause=e
            ) from e
        except httpx.TransportError as e:
            raise network_error(f"Network error talking to GitHub: {e}", cause=e) from e

        log_http_response(
            response.status_code,
            str(response.url),
            elapsed_ms=(time.monotonic() - started) * 1000,
            rate_limit_remaining=response.headers.get("x-ratelimit-remaining"),
        )

        if response.status_code >= 400:
            raise self._parse_error_response(response)
        return response

    def _parse_error_response(self, response: httpx.Response) -> MergerError:
        """
        Parse an error response into a typed error.

        Args:
            response: HTTP response with error status

        Returns:
            MergerError with the matching kind
        """
        try:
            data = response.json()
        except ValueError:
            data = {}
        message = ""
        if isinstance(data, dict):
            message = str(data.get("message") or "")
        if not message:
            message = f"HTTP {response.status_code}"

        status_code = response.status_code
        rate_limited = self._rate_limit_reset(response, message)

        if status_code == 401:
            return auth_error(
                ErrorCode.AUTH_TOKEN_INVALID,
                f"GitHub rejected the token: {message}",
            )
        if status_code in (403, 429) and rate_limited is not None:
            reset_at, secondary = rate_limited
            remaining = response.headers.get("x-ratelimit-remaining", "0")
            return rate_limit_error(
                reset_at,
                int(remaining) if remaining.isdigit() else 0,
                secondary=secondary,
                status_code=status_code,
            )
        return api_error(status_code, message)

    @staticmethod
    def _rate_limit_reset(
        response: httpx.Response, message: str
    ) -> tuple[datetime, bool] | None:
        """Return (reset time, is_secondary) when the response is a rate limit."""
        headers = response.headers
        secondary = "secondary rate limit" in message.lower()
        exhausted = headers.get("x-ratelimit-remaining") == "0"
        if response.status_code != 429 and not (exhausted or secondary or "rate limit" in message.lower()):
            return None

        retry_after = headers.get("retry-after")
        if retry_after is not None:
            try:
                wait = float(retry_after)
            except ValueError:
                wait = DEFAULT_RATE_LIMIT_WAIT
            return datetime.fromtimestamp(time.time() + wait, tz=timezone.utc), secondary

        reset = headers.get("x-ratelimit-reset")
        if reset is not None and reset.isdigit():
            return datetime.fromtimestamp(int(reset), tz=timezone.utc), secondary

        return (
            datetime.fromtimestamp(time.time() + DEFAULT_RATE_LIMIT_WAIT, tz=timezone.utc),
            secondary,
        )
