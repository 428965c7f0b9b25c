"""CI checks resource client."""

import asyncio
from typing import TYPE_CHECKING, Any

from renovate_merger.check_status import build_checks_status
from renovate_merger.types.checks import ChecksStatus

if TYPE_CHECKING:
    from renovate_merger.transport import HTTPTransport


class ChecksClient:
    """Client for check runs and commit statuses."""

    def __init__(self, transport: "HTTPTransport") -> None:
        self.transport = transport

    async def list_check_runs(self, owner: str, repo: str, sha: str) -> list[dict[str, Any]]:
        """List check runs (GitHub Actions and other apps) for a commit."""
        data = await self.transport.request(
            "GET",
            f"/repos/{owner}/{repo}/commits/{sha}/check-runs",
            params={"per_page": 100},
        )
        return list((data or {}).get("check_runs", []))

    async def get_combined_status(self, owner: str, repo: str, sha: str) -> list[dict[str, Any]]:
        """List legacy commit statuses for a commit."""
        data = await self.transport.request(
            "GET",
            f"/repos/{owner}/{repo}/commits/{sha}/status",
            params={"per_page": 100},
        )
        return list((data or {}).get("statuses", []))

    async def get_status(self, owner: str, repo: str, sha: str) -> ChecksStatus:
        """Fetch both signal sets concurrently and aggregate them."""
        check_runs, statuses = await asyncio.gather(
            self.list_check_runs(owner, repo, sha),
            self.get_combined_status(owner, repo, sha),
        )
        return build_checks_status(check_runs, statuses)
