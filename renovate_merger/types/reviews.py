"""Review data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Review:
    """A submitted pull request review."""

    review_id: int
    reviewer: str | None
    state: str  # "APPROVED", "CHANGES_REQUESTED", "DISMISSED", "COMMENTED", ...
    submitted_at: datetime | None = None


@dataclass(frozen=True)
class ReviewInfo:
    """Latest meaningful review state per reviewer, collapsed."""

    has_approval: bool
    approved_by: tuple[str, ...] = field(default_factory=tuple)
    changes_requested: bool = False
    changes_requested_by: tuple[str, ...] = field(default_factory=tuple)
