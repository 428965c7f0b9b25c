"""Pull request data models."""

from dataclasses import dataclass, field
from enum import Enum


class MergeMethod(str, Enum):
    """How the host combines the PR into its base branch."""

    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"


@dataclass(frozen=True)
class PullRequest:
    """Snapshot of a pull request as fetched from GitHub.

    Snapshots are never updated in place; fetch a new one instead.
    """

    number: int
    title: str
    body: str | None
    state: str  # "open", "closed"
    merged: bool
    draft: bool
    mergeable: bool | None  # None while GitHub is still computing it
    mergeable_state: str  # "clean", "behind", "dirty", "blocked", "unknown", ...
    head_sha: str
    head_ref: str
    base_ref: str
    labels: tuple[str, ...] = field(default_factory=tuple)
    html_url: str = ""
    author: str | None = None

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    @property
    def needs_rebase(self) -> bool:
        """True when the branch is behind or conflicting with its base."""
        return (
            self.mergeable_state in ("behind", "dirty")
            or self.mergeable is False
        )


@dataclass(frozen=True)
class MergeResult:
    """Result of merging a pull request."""

    sha: str
    merged: bool
    message: str
