"""
Single PR merge progression.

Drives one pull request from "open" to merged, or to a skip/fail outcome:

1. validate the PR state
2. wait for CI on the head commit
3. approve when no approval exists
4. rebase when the branch is behind, then wait for CI again
5. repeat the rebase check right before merging
6. merge, re-checking CI and rebase need while the merge is blocked

The whole sequence is retried up to three times when it ends with a restart
signal, because the PR's remote state may have moved on in the meantime.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from renovate_merger.check_status import (
    format_failures,
    has_indefinitely_pending_check,
    indefinitely_pending_checks,
    is_failing,
    is_passing,
    is_pending,
)
from renovate_merger.exceptions import ErrorKind, MergerError, user_message_for
from renovate_merger.logging import get_logger
from renovate_merger.options import OrchestratorOptions
from renovate_merger.poller import (
    PollDecision,
    ci_check_poller_options,
    format_duration,
    poll,
    rebase_poller_options,
)
from renovate_merger.renovate.rebase import (
    HeadCommitCheck,
    has_new_commit_since,
    trigger_rebase,
)
from renovate_merger.types.checks import ChecksStatus
from renovate_merger.types.pulls import PullRequest
from renovate_merger.types.results import MergeOutcome, MergeResultSummary

if TYPE_CHECKING:
    from renovate_merger.client import GitHubClient

logger = get_logger("orchestrator")

MAX_ATTEMPTS = 3
MAX_MERGE_ATTEMPTS = 3

StatusCallback = Callable[[str], None]
SleepFn = Callable[[float], Awaitable[Any]]


class RestartSignal(str, Enum):
    """Why a progression attempt asks to start over."""

    NEEDS_REBASE = "needs_rebase"
    MERGE_BLOCKED = "merge_blocked"


@dataclass(frozen=True)
class RestartRequest:
    """Outcome of an attempt that should be retried from the beginning."""

    signal: RestartSignal
    reason: str


AttemptOutcome = MergeResultSummary | RestartRequest


def validate_pr_state(pr: PullRequest) -> str | None:
    """Return the skip reason for a PR that cannot be processed, else None."""
    if pr.merged:
        return "PR was already merged"
    if not pr.is_open:
        return "PR was closed"
    if pr.draft:
        return "PR is still in draft"
    if pr.mergeable_state == "dirty":
        return "PR has merge conflicts"
    return None


def _ci_condition(ignored: tuple[str, ...]) -> Callable[[ChecksStatus], PollDecision]:
    def condition(status: ChecksStatus) -> PollDecision:
        if is_failing(status) or is_passing(status):
            return PollDecision.DONE
        if has_indefinitely_pending_check(status, ignored):
            return PollDecision.DONE
        return PollDecision.CONTINUE

    return condition


def _rebase_condition(check: HeadCommitCheck) -> PollDecision:
    return PollDecision.DONE if check.has_new_commit else PollDecision.CONTINUE


class PRProgression:
    """State for processing one PR. Create one per call of :func:`process_single_pr`."""

    def __init__(
        self,
        client: "GitHubClient",
        owner: str,
        repo: str,
        pr: PullRequest,
        options: OrchestratorOptions,
        on_status: StatusCallback | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.owner = owner
        self.repo = repo
        self.pr = pr
        self.number = pr.number
        self.options = options
        self._on_status = on_status
        self._sleep = sleep
        self._clock = clock

    # ------------------------------------------------------------------
    # Outcomes and status
    # ------------------------------------------------------------------

    def _status(self, message: str) -> None:
        logger.debug("#%d: %s", self.number, message)
        if self._on_status is not None:
            self._on_status(message)

    def _result(self, status: MergeOutcome, reason: str | None = None) -> MergeResultSummary:
        return MergeResultSummary(
            pr_number=self.number,
            title=self.pr.title,
            status=status,
            reason=reason,
        )

    def _merged(self) -> MergeResultSummary:
        return self._result(MergeOutcome.MERGED)

    def _skip(self, reason: str) -> MergeResultSummary:
        logger.info("#%d skipped: %s", self.number, reason)
        return self._result(MergeOutcome.SKIPPED, reason)

    def _fail(self, reason: str) -> MergeResultSummary:
        logger.warning("#%d failed: %s", self.number, reason)
        return self._result(MergeOutcome.FAILED, reason)

    # ------------------------------------------------------------------
    # Host reads
    # ------------------------------------------------------------------

    async def _fetch(self) -> PullRequest:
        return await self.client.pulls.get(self.owner, self.repo, self.number)

    async def _get_checks(self, sha: str) -> ChecksStatus:
        return await self.client.checks.get_status(self.owner, self.repo, sha)

    async def _wait_for_checks(self, sha: str, label: str) -> ChecksStatus:
        """Poll CI on ``sha`` until it passes, fails or hits a policy gate."""

        def on_poll(status: ChecksStatus, elapsed: float) -> None:
            self._status(
                f"{label}: {status.successful}/{status.total} passed "
                f"({format_duration(elapsed)})"
            )

        options = ci_check_poller_options(
            _ci_condition(self.options.ignored_pending_checks),
            on_poll,
            timeout=self.options.check_timeout,
            initial_interval=self.options.ci_poll_interval,
            max_interval=self.options.ci_poll_max_interval,
        )
        return await poll(
            lambda: self._get_checks(sha),
            options,
            sleep=self._sleep,
            clock=self._clock,
        )

    def _gate_reason(self, checks: ChecksStatus) -> str | None:
        gated = indefinitely_pending_checks(checks, self.options.ignored_pending_checks)
        if not gated:
            return None
        return "Waiting on policy gate: " + ", ".join(c.name for c in gated)

    async def _settle_checks(
        self,
        sha: str,
        checks: ChecksStatus,
        *,
        label: str = "Waiting for CI",
    ) -> tuple[MergeResultSummary | None, bool]:
        """
        Resolve ``checks`` to a terminal state.

        Returns:
            (skip outcome or None when CI passed, whether a wait was needed)
        """
        if is_failing(checks):
            return self._skip(f"CI checks failed: {format_failures(checks)}"), False

        gate = self._gate_reason(checks)
        if gate:
            return self._skip(gate), False

        if not is_pending(checks):
            return None, False

        self._status(f"{label}...")
        try:
            checks = await self._wait_for_checks(sha, label)
        except MergerError as e:
            if e.kind is ErrorKind.POLLING_TIMEOUT:
                return self._skip(e.user_message), True
            raise

        if is_failing(checks):
            return self._skip(f"CI checks failed: {format_failures(checks)}"), True
        gate = self._gate_reason(checks)
        if gate:
            return self._skip(gate), True
        return None, True

    # ------------------------------------------------------------------
    # Rebase
    # ------------------------------------------------------------------

    async def _rebase(self, pr: PullRequest) -> PullRequest:
        """Trigger a rebase and wait for the new head commit to land."""
        previous_sha = pr.head_sha
        method = await trigger_rebase(self.client, self.owner, self.repo, pr)
        self._status(f"Rebase triggered via {method.value}, waiting...")

        def on_poll(_: HeadCommitCheck, elapsed: float) -> None:
            self._status(f"Waiting for rebase ({format_duration(elapsed)})")

        options = rebase_poller_options(
            _rebase_condition,
            on_poll,
            timeout=self.options.rebase_timeout,
            initial_interval=self.options.rebase_poll_interval,
            max_interval=self.options.rebase_poll_max_interval,
        )
        await poll(
            lambda: has_new_commit_since(
                self.client, self.owner, self.repo, self.number, previous_sha
            ),
            options,
            sleep=self._sleep,
            clock=self._clock,
        )

        # GitHub needs a moment to recompute mergeability after a push
        await self._sleep(self.options.settle_delay)
        return await self._fetch()

    async def _ensure_up_to_date(
        self, pr: PullRequest, *, behind_note: str = ""
    ) -> tuple[PullRequest, MergeResultSummary | None]:
        """Rebase ``pr`` when it needs it and wait for CI on the new head."""
        if not pr.needs_rebase:
            return pr, None

        if self.options.dry_run:
            self._status(f"[DRY-RUN] Would trigger rebase{behind_note}...")
            return pr, None

        self._status(f"Triggering rebase{behind_note}...")
        try:
            pr = await self._rebase(pr)
            self._status("Waiting for CI after rebase...")
            checks = await self._wait_for_checks(pr.head_sha, "Waiting for CI after rebase")
        except MergerError as e:
            return pr, self._skip(f"Rebase failed: {e.user_message}")

        if is_failing(checks):
            return pr, self._skip(f"CI checks failed after rebase: {format_failures(checks)}")
        gate = self._gate_reason(checks)
        if gate:
            return pr, self._skip(gate)
        return pr, None

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    async def _merge(self) -> AttemptOutcome:
        last_reason = "Merge blocked"

        for attempt in range(1, MAX_MERGE_ATTEMPTS + 1):
            if attempt == 1:
                self._status("Merging...")
            else:
                self._status(f"Retrying merge (attempt {attempt}/{MAX_MERGE_ATTEMPTS})...")

            try:
                await self.client.pulls.merge(
                    self.owner, self.repo, self.number, merge_method=self.options.merge_method
                )
                return self._merged()
            except MergerError as e:
                if not e.is_merge_blocked:
                    raise
                last_reason = e.user_message
                logger.info("#%d merge blocked (attempt %d): %s", self.number, attempt, last_reason)

            if attempt == MAX_MERGE_ATTEMPTS:
                break

            self._status("Merge blocked, re-checking PR state...")
            pr = await self._fetch()
            if pr.merged:
                return self._merged()
            if not pr.is_open:
                return self._skip("PR was closed")

            checks = await self._get_checks(pr.head_sha)
            outcome, waited = await self._settle_checks(pr.head_sha, checks)
            if outcome is not None:
                return outcome

            rebase_needed = pr.needs_rebase
            if rebase_needed:
                pr, outcome = await self._ensure_up_to_date(pr)
                if outcome is not None:
                    return outcome

            if not (waited or rebase_needed):
                # nothing changed that a retry here could fix
                return RestartRequest(RestartSignal.MERGE_BLOCKED, last_reason)

        pr = await self._fetch()
        if pr.merged:
            return self._merged()
        if pr.needs_rebase:
            return RestartRequest(
                RestartSignal.NEEDS_REBASE,
                f"PR needs rebase after {MAX_MERGE_ATTEMPTS} merge attempts",
            )
        return RestartRequest(RestartSignal.MERGE_BLOCKED, last_reason)

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    async def _attempt(self) -> AttemptOutcome:
        self._status("Fetching latest PR data...")
        pr = await self._fetch()
        reason = validate_pr_state(pr)
        if reason:
            return self._skip(reason)

        self._status("Checking CI status...")
        checks = await self._get_checks(pr.head_sha)
        outcome, _ = await self._settle_checks(pr.head_sha, checks)
        if outcome is not None:
            return outcome

        self._status("Checking review status...")
        review_info = await self.client.reviews.get_info(self.owner, self.repo, self.number)
        if not review_info.has_approval:
            if self.options.dry_run:
                self._status("[DRY-RUN] Would approve PR...")
            else:
                self._status("Approving PR...")
                await self.client.reviews.approve(self.owner, self.repo, self.number)

        pr = await self._fetch()
        pr, outcome = await self._ensure_up_to_date(pr)
        if outcome is not None:
            return outcome

        # an earlier merge in the batch may have left this PR behind again
        logger.debug("#%d: final merge check", self.number)
        pr = await self._fetch()
        if pr.merged:
            return self._merged()
        pr, outcome = await self._ensure_up_to_date(pr, behind_note=" (PR is behind)")
        if outcome is not None:
            return outcome

        if self.options.dry_run:
            self._status("[DRY-RUN] Would merge PR...")
            return self._merged()

        return await self._merge()

    async def run(self) -> MergeResultSummary:
        """Run the progression with the outer restart loop."""
        last_reason = "Unknown error"

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                outcome = await self._attempt()
            except MergerError as e:
                if e.is_merge_blocked:
                    last_reason = e.user_message
                elif e.is_expected_pr_state:
                    return self._skip(e.user_message)
                else:
                    return self._fail(e.user_message)
            except Exception as e:
                logger.exception("#%d: unexpected error", self.number)
                return self._fail(user_message_for(e))
            else:
                if isinstance(outcome, MergeResultSummary):
                    return outcome
                last_reason = outcome.reason
                logger.info(
                    "#%d restart requested (%s): %s",
                    self.number,
                    outcome.signal.value,
                    outcome.reason,
                )

            if attempt < MAX_ATTEMPTS:
                self._status(
                    f"Retrying PR in {format_duration(self.options.retry_pause)} "
                    f"(attempt {attempt + 1}/{MAX_ATTEMPTS})..."
                )
                await self._sleep(self.options.retry_pause)

        return self._fail(last_reason)


async def process_single_pr(
    client: "GitHubClient",
    owner: str,
    repo: str,
    pr: PullRequest,
    options: OrchestratorOptions,
    on_status: StatusCallback | None = None,
    *,
    sleep: SleepFn = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> MergeResultSummary:
    """
    Drive one PR to a merged, skipped or failed outcome.

    Expected business outcomes (closed, draft, failing CI, ...) are returned
    as skips. Only unexpected failures become a failed outcome, carrying the
    best available user facing message.

    Args:
        client: Host client
        owner: Repository owner
        repo: Repository name
        pr: The PR to process; only its number and title are used
        options: Workflow configuration
        on_status: Called with one message per progression step
        sleep: Awaitable sleep used for every wait
        clock: Monotonic clock used by the pollers

    Returns:
        MergeResultSummary for the PR
    """
    progression = PRProgression(
        client, owner, repo, pr, options, on_status, sleep=sleep, clock=clock
    )
    return await progression.run()
