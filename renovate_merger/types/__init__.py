"""renovate_merger type definitions.

This module exports all data model types used by the package.
"""

from renovate_merger.types.checks import CheckDetail, ChecksStatus
from renovate_merger.types.pulls import MergeMethod, MergeResult, PullRequest
from renovate_merger.types.results import (
    MergeOutcome,
    MergeResultSummary,
    OrchestratorResult,
)
from renovate_merger.types.reviews import Review, ReviewInfo

__all__ = [
    # Pull request types
    "MergeMethod",
    "MergeResult",
    "PullRequest",
    # Check types
    "CheckDetail",
    "ChecksStatus",
    # Review types
    "Review",
    "ReviewInfo",
    # Outcome types
    "MergeOutcome",
    "MergeResultSummary",
    "OrchestratorResult",
]
