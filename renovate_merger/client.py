"""
GitHub async client.

Provides the async interface to the parts of the GitHub REST API the merge
workflow needs.
"""

import os
from typing import Any

import httpx

from renovate_merger.clients import (
    ChecksClient,
    IssuesClient,
    PullsClient,
    ReviewsClient,
    UsersClient,
)
from renovate_merger.exceptions import ErrorCode, auth_error
from renovate_merger.retry import RetryConfig
from renovate_merger.transport import HTTPTransport

TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def get_token_from_env() -> str:
    """
    Read a GitHub token from GITHUB_TOKEN or GH_TOKEN.

    Raises:
        MergerError: AUTHENTICATION/AUTH_TOKEN_MISSING if neither is set
    """
    for name in TOKEN_ENV_VARS:
        token = os.environ.get(name)
        if token:
            return token
    raise auth_error(
        ErrorCode.AUTH_TOKEN_MISSING,
        "GitHub token required. Set GITHUB_TOKEN environment variable or provide via --token flag.",
    )


class GitHubClient:
    """
    Async client for the GitHub REST API.

    Aggregates the resource clients and owns the HTTP transport.

    Example:
        ```python
        import asyncio
        from renovate_merger import GitHubClient

        async def main():
            async with GitHubClient.from_env() as client:
                pr = await client.pulls.get("octo", "app", 42)
                print(pr.mergeable_state)

        asyncio.run(main())
        ```
    """

    DEFAULT_BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            token: GitHub token (classic or fine-grained)
            base_url: API root (default: https://api.github.com)
            timeout: Request timeout in seconds (default: 30.0)
            retry_config: Configuration for retry behavior (optional)
            transport: Optional httpx transport, mainly for tests
        """
        self.base_url = base_url
        self.timeout = timeout

        self._transport = HTTPTransport(
            base_url=base_url,
            token=token,
            timeout=timeout,
            retry_config=retry_config,
            transport=transport,
        )

        self.pulls = PullsClient(self._transport)
        self.reviews = ReviewsClient(self._transport)
        self.checks = ChecksClient(self._transport)
        self.issues = IssuesClient(self._transport)
        self.users = UsersClient(self._transport)

    @classmethod
    def from_env(
        cls,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
    ) -> "GitHubClient":
        """
        Create a client from environment variables.

        Environment variables:
            GITHUB_TOKEN or GH_TOKEN: API token (required)
            GITHUB_API_URL: API root (optional, for GitHub Enterprise)

        Raises:
            MergerError: If no token is set
        """
        token = get_token_from_env()
        base_url = os.environ.get("GITHUB_API_URL", cls.DEFAULT_BASE_URL)
        return cls(token=token, base_url=base_url, timeout=timeout, retry_config=retry_config)

    @property
    def transport(self) -> HTTPTransport:
        """Get the underlying HTTP transport (for advanced use cases)."""
        return self._transport

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
