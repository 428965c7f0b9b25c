"""Issues resource client (PR conversation comments)."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from renovate_merger.transport import HTTPTransport


class IssuesClient:
    """Client for issue and pull request comments."""

    def __init__(self, transport: "HTTPTransport") -> None:
        self.transport = transport

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> dict[str, Any]:
        """Post a comment on an issue or pull request conversation."""
        data = await self.transport.request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{number}/comments",
            body={"body": body},
        )
        return data or {}
