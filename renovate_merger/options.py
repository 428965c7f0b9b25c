"""Merge workflow configuration."""

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from renovate_merger.check_status import DEFAULT_IGNORED_PENDING_CHECKS
from renovate_merger.exceptions import ErrorCode, validation_error
from renovate_merger.types.pulls import MergeMethod


@dataclass(frozen=True)
class OrchestratorOptions:
    """
    Immutable configuration threaded through a batch.

    All durations are in seconds.

    Attributes:
        check_timeout: Maximum wait for CI checks on one head commit
        rebase_timeout: Maximum wait for Renovate to push a rebased commit
        merge_method: How PRs are merged
        continue_on_error: Keep going after a PR ends without merging
        dry_run: Perform only read-only calls and report intended actions
        inter_pr_delay: Pause between PR attempts
        settle_delay: Pause after a rebase lands, before re-reading the PR
        retry_pause: Pause before restarting a PR's progression
        ci_poll_interval: First CI poll interval
        ci_poll_max_interval: Cap on the CI poll interval
        rebase_poll_interval: First rebase poll interval
        rebase_poll_max_interval: Cap on the rebase poll interval
        ignored_pending_checks: Check names that may stay pending indefinitely
    """

    check_timeout: float = 10 * 60
    rebase_timeout: float = 5 * 60
    merge_method: MergeMethod = MergeMethod.SQUASH
    continue_on_error: bool = True
    dry_run: bool = False
    inter_pr_delay: float = 3.0
    settle_delay: float = 3.0
    retry_pause: float = 5.0
    ci_poll_interval: float = 10.0
    ci_poll_max_interval: float = 60.0
    rebase_poll_interval: float = 5.0
    rebase_poll_max_interval: float = 30.0
    ignored_pending_checks: tuple[str, ...] = DEFAULT_IGNORED_PENDING_CHECKS

    def with_overrides(self, overrides: Mapping[str, Any] | None = None, **kwargs: Any) -> "OrchestratorOptions":
        """
        Return a copy with the given fields replaced. ``None`` values are ignored.

        Raises:
            MergerError: VALIDATION/INVALID_OPTIONS for unknown fields or bad values
        """
        changes = {**(overrides or {}), **kwargs}
        changes = {k: v for k, v in changes.items() if v is not None}

        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise validation_error(
                ErrorCode.INVALID_OPTIONS,
                f"Unknown orchestrator option(s): {', '.join(unknown)}",
            )

        if "merge_method" in changes:
            try:
                changes["merge_method"] = MergeMethod(changes["merge_method"])
            except ValueError:
                raise validation_error(
                    ErrorCode.INVALID_OPTIONS,
                    f"Invalid merge method: {changes['merge_method']!r}",
                ) from None
        if "ignored_pending_checks" in changes:
            changes["ignored_pending_checks"] = tuple(changes["ignored_pending_checks"])

        for name in ("check_timeout", "rebase_timeout"):
            if name in changes and changes[name] <= 0:
                raise validation_error(
                    ErrorCode.INVALID_OPTIONS, f"{name} must be positive"
                )

        return replace(self, **changes)


def resolve_options(
    options: "OrchestratorOptions | Mapping[str, Any] | None",
) -> OrchestratorOptions:
    """Merge caller supplied options over the defaults."""
    if options is None:
        return OrchestratorOptions()
    if isinstance(options, OrchestratorOptions):
        return options
    return OrchestratorOptions().with_overrides(options)
