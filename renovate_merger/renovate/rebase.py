"""
Renovate rebase triggering.

Renovate rebases a PR when the rebase checkbox in its description is ticked,
or, depending on the bot configuration, when someone comments
``@renovate rebase``.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from renovate_merger.logging import get_logger
from renovate_merger.types.pulls import PullRequest

if TYPE_CHECKING:
    from renovate_merger.client import GitHubClient

logger = get_logger("renovate")

REBASE_COMMENT = "@renovate rebase"

_UNCHECKED_PATTERNS = [
    re.compile(r"- \[ \] <!-- rebase-check -->"),
    re.compile(r"- \[ \] If you want to rebase/retry this PR", re.IGNORECASE),
    re.compile(r"- \[ \] Rebase this PR", re.IGNORECASE),
    re.compile(r"\[ \] <!-- renovate-rebase -->"),
]

_CHECKED_PATTERNS = [
    re.compile(r"- \[x\] <!-- rebase-check -->", re.IGNORECASE),
    re.compile(r"- \[x\] If you want to rebase/retry this PR", re.IGNORECASE),
    re.compile(r"- \[x\] Rebase this PR", re.IGNORECASE),
    re.compile(r"\[x\] <!-- renovate-rebase -->", re.IGNORECASE),
]


class RebaseMethod(str, Enum):
    """How a rebase was requested."""

    CHECKBOX = "checkbox"
    COMMENT = "comment"


@dataclass(frozen=True)
class HeadCommitCheck:
    has_new_commit: bool
    current_sha: str


@dataclass(frozen=True)
class RebaseEligibility:
    can_trigger: bool
    reason: str | None = None


def is_rebase_already_triggered(body: str) -> bool:
    """True if the rebase checkbox is already ticked."""
    return any(pattern.search(body) for pattern in _CHECKED_PATTERNS)


def has_rebase_checkbox(body: str) -> bool:
    """True if the body has a rebase checkbox, ticked or not."""
    return any(pattern.search(body) for pattern in _UNCHECKED_PATTERNS) or (
        is_rebase_already_triggered(body)
    )


def check_rebase_checkbox(body: str) -> str | None:
    """Return ``body`` with the first unticked rebase checkbox ticked, or None."""
    for pattern in _UNCHECKED_PATTERNS:
        match = pattern.search(body)
        if match:
            ticked = match.group(0).replace("[ ]", "[x]", 1)
            return body[: match.start()] + ticked + body[match.end():]
    return None


def can_trigger_rebase(pr: PullRequest) -> RebaseEligibility:
    """Explain whether and how a rebase can be requested for ``pr``."""
    body = pr.body or ""
    if not has_rebase_checkbox(body):
        return RebaseEligibility(
            can_trigger=True,
            reason="No rebase checkbox found, will try comment method",
        )
    if is_rebase_already_triggered(body):
        return RebaseEligibility(can_trigger=False, reason="Rebase already triggered")
    return RebaseEligibility(can_trigger=True)


async def trigger_rebase(
    client: "GitHubClient",
    owner: str,
    repo: str,
    pr: PullRequest,
) -> RebaseMethod:
    """
    Ask Renovate to rebase ``pr``.

    Ticks the rebase checkbox when the description has one, otherwise posts
    a ``@renovate rebase`` comment. A checkbox that is already ticked means
    Renovate has a rebase queued, so nothing is sent.
    """
    body = pr.body or ""

    if is_rebase_already_triggered(body):
        logger.debug("rebase already requested for #%d", pr.number)
        return RebaseMethod.CHECKBOX

    new_body = check_rebase_checkbox(body)
    if new_body is not None:
        await client.pulls.update_body(owner, repo, pr.number, new_body)
        return RebaseMethod.CHECKBOX

    await client.issues.create_comment(owner, repo, pr.number, REBASE_COMMENT)
    return RebaseMethod.COMMENT


async def has_new_commit_since(
    client: "GitHubClient",
    owner: str,
    repo: str,
    number: int,
    previous_sha: str,
) -> HeadCommitCheck:
    """Compare the PR's current head with ``previous_sha``."""
    pr = await client.pulls.get(owner, repo, number)
    return HeadCommitCheck(
        has_new_commit=pr.head_sha != previous_sha,
        current_sha=pr.head_sha,
    )
