"""Renovate specific helpers."""

from renovate_merger.renovate.detector import (
    DependencyInfo,
    extract_dependency_info,
    filter_renovate_prs,
    is_renovate_pr,
)
from renovate_merger.renovate.rebase import (
    REBASE_COMMENT,
    HeadCommitCheck,
    RebaseEligibility,
    RebaseMethod,
    can_trigger_rebase,
    check_rebase_checkbox,
    has_new_commit_since,
    has_rebase_checkbox,
    is_rebase_already_triggered,
    trigger_rebase,
)

__all__ = [
    # Detection
    "DependencyInfo",
    "extract_dependency_info",
    "filter_renovate_prs",
    "is_renovate_pr",
    # Rebase
    "REBASE_COMMENT",
    "HeadCommitCheck",
    "RebaseEligibility",
    "RebaseMethod",
    "can_trigger_rebase",
    "check_rebase_checkbox",
    "has_new_commit_since",
    "has_rebase_checkbox",
    "is_rebase_already_triggered",
    "trigger_rebase",
]
