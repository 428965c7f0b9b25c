"""
Batch merge orchestration.

Processes an ordered list of PRs one at a time. A PR that ends on a
transient condition (failing or slow CI, a blocked merge, a pending rebase)
is deferred once and retried after every other PR has had its turn, since
merging the others often unblocks it.
"""

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Protocol

from renovate_merger.logging import get_logger
from renovate_merger.options import OrchestratorOptions, resolve_options
from renovate_merger.progression import process_single_pr
from renovate_merger.types.pulls import PullRequest
from renovate_merger.types.results import (
    MergeOutcome,
    MergeResultSummary,
    OrchestratorResult,
)

if TYPE_CHECKING:
    from renovate_merger.client import GitHubClient

logger = get_logger("orchestrator")

# Lowercased substrings of a skip/fail reason worth a second pass
RETRIABLE_REASON_MARKERS = ("ci checks failed", "merge blocked", "needs rebase", "timeout")

AskContinue = Callable[[int, str], bool]


class BatchReporter(Protocol):
    """Receives batch progress, e.g. to render it in a terminal."""

    def start_pr(self, pr: PullRequest, position: str) -> None: ...

    def update(self, message: str) -> None: ...

    def complete_pr(self, pr: PullRequest, dry_run: bool) -> None: ...

    def skip_pr(self, pr: PullRequest, reason: str) -> None: ...

    def fail_pr(self, pr: PullRequest, reason: str) -> None: ...

    def defer_pr(self, pr: PullRequest, reason: str) -> None: ...


def is_retriable_reason(reason: str | None) -> bool:
    """True if a skip/fail reason describes a condition that may clear up."""
    if not reason:
        return False
    lowered = reason.lower()
    return any(marker in lowered for marker in RETRIABLE_REASON_MARKERS)


def _status_sink(
    on_status: Callable[[str], None] | None,
    reporter: BatchReporter | None,
) -> Callable[[str], None] | None:
    if on_status is None and reporter is None:
        return None

    def sink(message: str) -> None:
        if reporter is not None:
            reporter.update(message)
        if on_status is not None:
            on_status(message)

    return sink


def _report(
    reporter: BatchReporter | None,
    pr: PullRequest,
    result: MergeResultSummary,
    dry_run: bool,
) -> None:
    if reporter is None:
        return
    if result.status is MergeOutcome.MERGED:
        reporter.complete_pr(pr, dry_run)
    elif result.status is MergeOutcome.SKIPPED:
        reporter.skip_pr(pr, result.reason or "Unknown reason")
    else:
        reporter.fail_pr(pr, result.reason or "Unknown error")


async def orchestrate_merge(
    client: "GitHubClient",
    owner: str,
    repo: str,
    prs: Sequence[PullRequest],
    options: OrchestratorOptions | Mapping[str, Any] | None = None,
    on_ask_continue: AskContinue | None = None,
    on_status: Callable[[str], None] | None = None,
    reporter: BatchReporter | None = None,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> OrchestratorResult:
    """
    Merge a batch of PRs in order.

    Args:
        client: Host client
        owner: Repository owner
        repo: Repository name
        prs: PRs to process, in processing order
        options: OrchestratorOptions, or a mapping of overrides for the defaults
        on_ask_continue: Called with (pr number, reason) after a PR ends
            without merging; returning False stops the batch
        on_status: Called with each progression status message
        reporter: Optional progress receiver
        sleep: Awaitable sleep used for every wait
        clock: Monotonic clock used by the pollers

    Returns:
        OrchestratorResult with one record per PR that reached a final
        outcome. When the task is cancelled the partial result is returned
        with ``interrupted`` set.
    """
    opts = resolve_options(options)
    queue: deque[PullRequest] = deque(prs)
    deferred: list[PullRequest] = []
    # first-pass outcome of each deferred PR, final if the batch stops early
    pending_results: dict[int, MergeResultSummary] = {}
    positions: dict[int, str] = {}
    seen = 0
    results: list[MergeResultSummary] = []
    total = len(queue)
    status_sink = _status_sink(on_status, reporter)
    interrupted = False
    first = True

    logger.info(
        "Processing %d PR(s) in %s/%s%s", total, owner, repo, " (dry run)" if opts.dry_run else ""
    )

    try:
        while queue or deferred:
            if not queue:
                logger.info("Retrying %d deferred PR(s)", len(deferred))
                queue.extend(deferred)
                deferred.clear()

            pr = queue.popleft()
            is_retry = pr.number in pending_results

            if not first:
                await sleep(opts.inter_pr_delay)
            first = False

            if is_retry:
                position = f"{positions[pr.number]} (retry)"
            else:
                seen += 1
                position = positions[pr.number] = f"[{seen}/{total}]"
            if reporter is not None:
                reporter.start_pr(pr, position)

            result = await process_single_pr(
                client, owner, repo, pr, opts, status_sink, sleep=sleep, clock=clock
            )

            if (
                result.status is not MergeOutcome.MERGED
                and not is_retry
                and is_retriable_reason(result.reason)
            ):
                logger.info("#%d deferred: %s", pr.number, result.reason)
                pending_results[pr.number] = result
                deferred.append(pr)
                if reporter is not None:
                    reporter.defer_pr(pr, result.reason or "")
                continue

            if is_retry:
                del pending_results[pr.number]
                result = replace(result, retried=True)
            results.append(result)
            _report(reporter, pr, result, opts.dry_run)

            if result.status is MergeOutcome.MERGED:
                continue
            if not opts.continue_on_error:
                logger.info("Stopping after #%d", pr.number)
                break
            if on_ask_continue is not None and not on_ask_continue(pr.number, result.reason or "Unknown"):
                logger.info("Stopped by user after #%d", pr.number)
                break
    except asyncio.CancelledError:
        logger.warning("Batch interrupted after %d PR(s)", len(results))
        interrupted = True

    # deferred PRs never retried keep their first-pass outcome
    results.extend(pending_results.values())

    return OrchestratorResult.from_results(results, dry_run=opts.dry_run, interrupted=interrupted)
