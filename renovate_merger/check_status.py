"""
CI check evaluation.

Combines GitHub check runs (Actions and other apps) with legacy commit
statuses into a single :class:`ChecksStatus`, and answers the questions the
merge workflow asks about it. Everything here is pure.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from renovate_merger.types.checks import CheckDetail, ChecksStatus

# Checks that may stay pending indefinitely by design
DEFAULT_IGNORED_PENDING_CHECKS: tuple[str, ...] = ("renovate/stability-days",)

NO_FAILED_CHECKS = "No failed checks"

_RUN_SUCCESS = frozenset({"success", "skipped", "neutral"})
_RUN_FAILURE = frozenset({"failure", "timed_out", "cancelled"})
_STATUS_FAILURE = frozenset({"failure", "error"})
_DISPLAY_FAILURE = frozenset({"failure", "timed_out", "cancelled", "error"})


def build_checks_status(
    check_runs: Iterable[Mapping[str, Any]],
    statuses: Iterable[Mapping[str, Any]],
) -> ChecksStatus:
    """
    Aggregate raw GitHub payloads into a ChecksStatus.

    Args:
        check_runs: Items of the ``check_runs`` array (name, status, conclusion)
        statuses: Items of the combined status ``statuses`` array (context, state)

    Returns:
        ChecksStatus. A legacy status whose context matches a check run name
        is ignored.
    """
    details: list[CheckDetail] = []
    seen: set[str] = set()
    completed = successful = failed = pending = 0

    for run in check_runs:
        name = str(run.get("name", ""))
        status = str(run.get("status", "queued"))
        conclusion = run.get("conclusion")
        details.append(CheckDetail(name=name, status=status, conclusion=conclusion))
        seen.add(name)

        if status == "completed":
            completed += 1
            if conclusion in _RUN_SUCCESS:
                successful += 1
            elif conclusion in _RUN_FAILURE:
                failed += 1
        else:
            pending += 1

    for entry in statuses:
        name = str(entry.get("context", ""))
        if name in seen:
            continue
        seen.add(name)

        state = str(entry.get("state", "pending"))
        is_completed = state != "pending"
        details.append(
            CheckDetail(
                name=name,
                status="completed" if is_completed else "in_progress",
                conclusion=state if is_completed else None,
            )
        )

        if is_completed:
            completed += 1
            if state == "success":
                successful += 1
            elif state in _STATUS_FAILURE:
                failed += 1
        else:
            pending += 1

    total = len(details)
    if failed > 0:
        state = "failure"
    elif pending > 0 or completed < total:
        state = "pending"
    elif successful == total:
        state = "success"
    else:
        state = "error"

    return ChecksStatus(
        state=state,
        total=total,
        completed=completed,
        successful=successful,
        failed=failed,
        pending=pending,
        details=tuple(details),
    )


def is_passing(status: ChecksStatus) -> bool:
    """All checks completed successfully."""
    return status.state == "success"


def is_pending(status: ChecksStatus) -> bool:
    """Checks are still running."""
    return status.state == "pending"


def is_failing(status: ChecksStatus) -> bool:
    """Some check failed, or the counts are inconsistent."""
    return status.state in ("failure", "error")


def failed_checks(status: ChecksStatus) -> list[CheckDetail]:
    return [d for d in status.details if d.conclusion in _DISPLAY_FAILURE]


def format_failures(status: ChecksStatus) -> str:
    """Format failed checks for display, e.g. "lint (failure), test (timed_out)"."""
    failures = failed_checks(status)
    if not failures:
        return NO_FAILED_CHECKS
    return ", ".join(f"{c.name} ({c.conclusion})" for c in failures)


def _is_ignorable(name: str, ignored: Sequence[str]) -> bool:
    lowered = name.lower()
    return any(entry.lower() in lowered for entry in ignored)


def indefinitely_pending_checks(
    status: ChecksStatus,
    ignored: Sequence[str] = DEFAULT_IGNORED_PENDING_CHECKS,
) -> list[CheckDetail]:
    return [
        d for d in status.details
        if not d.is_completed and _is_ignorable(d.name, ignored)
    ]


def has_indefinitely_pending_check(
    status: ChecksStatus,
    ignored: Sequence[str] = DEFAULT_IGNORED_PENDING_CHECKS,
) -> bool:
    """
    True if an incomplete check matches the ignorable list.

    Such checks (e.g. Renovate's stability-days gate) only resolve when a
    policy window passes, so waiting on them would always time out.
    """
    return bool(indefinitely_pending_checks(status, ignored))


def has_blocking_pending_checks(
    status: ChecksStatus,
    ignored: Sequence[str] = DEFAULT_IGNORED_PENDING_CHECKS,
) -> bool:
    """True if some incomplete check is not on the ignorable list."""
    return any(
        not d.is_completed and not _is_ignorable(d.name, ignored)
        for d in status.details
    )


def effective_state(
    status: ChecksStatus,
    ignored: Sequence[str] = DEFAULT_IGNORED_PENDING_CHECKS,
) -> str:
    """Coarse state with ignorable pending checks treated as passed."""
    if status.failed > 0:
        return "failure"
    if has_blocking_pending_checks(status, ignored):
        return "pending"
    return "success"
