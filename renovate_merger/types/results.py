"""Merge workflow outcome models."""

from dataclasses import dataclass, field
from enum import Enum


class MergeOutcome(str, Enum):
    """Terminal state of one PR in a batch."""

    MERGED = "merged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class MergeResultSummary:
    """Final record for one PR."""

    pr_number: int
    title: str
    status: MergeOutcome
    reason: str | None = None
    retried: bool = False  # produced by the deferred second pass


@dataclass(frozen=True)
class OrchestratorResult:
    """Summary of a whole batch."""

    processed: int
    merged: int
    skipped: int
    failed: int
    results: tuple[MergeResultSummary, ...] = field(default_factory=tuple)
    dry_run: bool = False
    interrupted: bool = False

    @classmethod
    def from_results(
        cls,
        results: list[MergeResultSummary],
        dry_run: bool,
        interrupted: bool = False,
    ) -> "OrchestratorResult":
        return cls(
            processed=len(results),
            merged=sum(1 for r in results if r.status is MergeOutcome.MERGED),
            skipped=sum(1 for r in results if r.status is MergeOutcome.SKIPPED),
            failed=sum(1 for r in results if r.status is MergeOutcome.FAILED),
            results=tuple(results),
            dry_run=dry_run,
            interrupted=interrupted,
        )
