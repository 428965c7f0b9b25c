"""Reviews resource client."""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from renovate_merger.types.reviews import Review, ReviewInfo

if TYPE_CHECKING:
    from renovate_merger.transport import HTTPTransport

# Review states that change a reviewer's standing; COMMENTED and PENDING do not
MEANINGFUL_STATES = frozenset({"APPROVED", "CHANGES_REQUESTED", "DISMISSED"})


def _parse_review(data: dict[str, Any]) -> Review:
    submitted_at = None
    if data.get("submitted_at"):
        submitted_at = datetime.fromisoformat(data["submitted_at"].replace("Z", "+00:00"))
    user = data.get("user") or {}
    return Review(
        review_id=int(data.get("id", 0)),
        reviewer=user.get("login"),
        state=str(data.get("state", "")),
        submitted_at=submitted_at,
    )


def summarize_reviews(reviews: list[Review]) -> ReviewInfo:
    """
    Collapse reviews into a ReviewInfo.

    Reviews must be in submission order; only the latest meaningful state
    of each reviewer counts.
    """
    latest: dict[str, str] = {}
    for review in reviews:
        if not review.reviewer:
            continue
        if review.state in MEANINGFUL_STATES:
            latest[review.reviewer] = review.state

    approved_by = tuple(user for user, state in latest.items() if state == "APPROVED")
    changes_requested_by = tuple(
        user for user, state in latest.items() if state == "CHANGES_REQUESTED"
    )
    return ReviewInfo(
        has_approval=bool(approved_by),
        approved_by=approved_by,
        changes_requested=bool(changes_requested_by),
        changes_requested_by=changes_requested_by,
    )


class ReviewsClient:
    """Client for pull request review operations."""

    def __init__(self, transport: "HTTPTransport") -> None:
        self.transport = transport

    async def list(self, owner: str, repo: str, number: int) -> list[Review]:
        """List reviews for a pull request in submission order."""
        items = await self.transport.paginate(
            f"/repos/{owner}/{repo}/pulls/{number}/reviews"
        )
        return [_parse_review(item) for item in items]

    async def get_info(self, owner: str, repo: str, number: int) -> ReviewInfo:
        """Fetch reviews and summarize approvals."""
        return summarize_reviews(await self.list(owner, repo, number))

    async def approve(self, owner: str, repo: str, number: int, body: str | None = None) -> Review:
        """Submit an approving review."""
        request_body: dict[str, str] = {"event": "APPROVE"}
        if body:
            request_body["body"] = body

        data = await self.transport.request(
            "POST",
            f"/repos/{owner}/{repo}/pulls/{number}/reviews",
            body=request_body,
        )
        return _parse_review(data or {})
