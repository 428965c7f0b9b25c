"""Pull requests resource client."""

from typing import TYPE_CHECKING, Any

from renovate_merger.exceptions import (
    ErrorCode,
    MergerError,
    pr_state_error,
)
from renovate_merger.types.pulls import MergeMethod, MergeResult, PullRequest

if TYPE_CHECKING:
    from renovate_merger.transport import HTTPTransport


def parse_pull_request(data: dict[str, Any]) -> PullRequest:
    """Map a GitHub pull request payload to a PullRequest snapshot."""
    head = data.get("head") or {}
    base = data.get("base") or {}
    user = data.get("user") or {}
    labels = tuple(
        label if isinstance(label, str) else str(label.get("name") or "")
        for label in data.get("labels") or []
    )
    return PullRequest(
        number=int(data["number"]),
        title=data.get("title") or "",
        body=data.get("body"),
        state=data.get("state", "open"),
        merged=bool(data.get("merged", False)),
        draft=bool(data.get("draft", False)),
        mergeable=data.get("mergeable"),
        mergeable_state=data.get("mergeable_state") or "",
        head_sha=head.get("sha", ""),
        head_ref=head.get("ref", ""),
        base_ref=base.get("ref", ""),
        labels=labels,
        html_url=data.get("html_url") or "",
        author=user.get("login"),
    )


class PullsClient:
    """Client for pull request operations."""

    def __init__(self, transport: "HTTPTransport") -> None:
        """
        Initialize the pulls client.

        Args:
            transport: HTTP transport for making requests
        """
        self.transport = transport

    async def get(self, owner: str, repo: str, number: int) -> PullRequest:
        """
        Get a fresh snapshot of a pull request.

        Raises:
            MergerError: PR_STATE/PR_NOT_FOUND if the PR does not exist
        """
        try:
            data = await self.transport.request(
                "GET", f"/repos/{owner}/{repo}/pulls/{number}"
            )
        except MergerError as e:
            if e.status_code == 404:
                raise pr_state_error(
                    ErrorCode.PR_NOT_FOUND,
                    number,
                    "PR not found (may have been deleted)",
                    status_code=404,
                    cause=e,
                ) from e
            raise
        return parse_pull_request(data)

    async def list_open(self, owner: str, repo: str) -> list[PullRequest]:
        """
        List all open pull requests.

        The list endpoint does not compute mergeability, so ``mergeable`` is
        None and ``mergeable_state`` empty on these snapshots.
        """
        items = await self.transport.paginate(
            f"/repos/{owner}/{repo}/pulls", params={"state": "open"}
        )
        return [parse_pull_request(item) for item in items]

    async def update_body(self, owner: str, repo: str, number: int, body: str) -> None:
        """Replace a pull request's description."""
        await self.transport.request(
            "PATCH",
            f"/repos/{owner}/{repo}/pulls/{number}",
            body={"body": body},
        )

    async def merge(
        self,
        owner: str,
        repo: str,
        number: int,
        merge_method: MergeMethod = MergeMethod.SQUASH,
        commit_title: str | None = None,
    ) -> MergeResult:
        """
        Merge a pull request.

        A fresh snapshot is validated first so that a PR merged or closed by
        someone else is reported precisely.

        Raises:
            MergerError: PR_STATE with PR_ALREADY_MERGED, PR_CLOSED,
                PR_HAS_CONFLICTS, PR_NOT_MERGEABLE or PR_MERGE_BLOCKED
        """
        pr = await self.get(owner, repo, number)

        if pr.merged:
            raise pr_state_error(ErrorCode.PR_ALREADY_MERGED, number, "PR was already merged")
        if pr.state == "closed":
            raise pr_state_error(ErrorCode.PR_CLOSED, number, "PR was closed")
        if pr.mergeable_state == "dirty":
            raise pr_state_error(
                ErrorCode.PR_HAS_CONFLICTS,
                number,
                "PR has merge conflicts that require manual resolution",
            )
        if pr.mergeable is False:
            raise pr_state_error(
                ErrorCode.PR_NOT_MERGEABLE,
                number,
                f"PR is not mergeable (state: {pr.mergeable_state})",
            )

        body: dict[str, Any] = {"merge_method": MergeMethod(merge_method).value}
        if commit_title:
            body["commit_title"] = commit_title

        try:
            data = await self.transport.request(
                "PUT", f"/repos/{owner}/{repo}/pulls/{number}/merge", body=body
            )
        except MergerError as e:
            if e.status_code == 405:
                raise pr_state_error(
                    ErrorCode.PR_MERGE_BLOCKED,
                    number,
                    f"Merge blocked: {e.message}",
                    status_code=405,
                    cause=e,
                ) from e
            if e.status_code == 409:
                raise pr_state_error(
                    ErrorCode.PR_HAS_CONFLICTS,
                    number,
                    "Merge conflict detected",
                    status_code=409,
                    cause=e,
                ) from e
            raise

        data = data or {}
        return MergeResult(
            sha=data.get("sha", ""),
            merged=bool(data.get("merged", False)),
            message=data.get("message", ""),
        )
