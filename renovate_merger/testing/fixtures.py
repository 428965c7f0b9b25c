"""
Pytest fixtures for testing code built on renovate_merger.

Provides builders for the data models and common fixtures around
MockGitHubClient.
"""

from collections.abc import Generator, Sequence
from typing import Any

import pytest

from renovate_merger.check_status import build_checks_status
from renovate_merger.options import OrchestratorOptions
from renovate_merger.testing.mock import MockGitHubClient
from renovate_merger.types.checks import ChecksStatus
from renovate_merger.types.pulls import MergeResult, PullRequest
from renovate_merger.types.reviews import ReviewInfo


# ============================================================================
# Helper Functions
# ============================================================================


def create_mock_pull_request(number: int = 1, **kwargs: Any) -> PullRequest:
    """
    Create an open, clean Renovate PullRequest with customizable fields.

    Args:
        number: PR number
        **kwargs: Fields to override

    Returns:
        PullRequest object
    """
    defaults: dict[str, Any] = {
        "title": f"Update dependency pkg-{number} to v1.{number}.0",
        "body": "This PR contains the following updates.\n\n"
        "- [ ] <!-- rebase-check -->If you want to rebase/retry this PR, check this box\n",
        "state": "open",
        "merged": False,
        "draft": False,
        "mergeable": True,
        "mergeable_state": "clean",
        "head_sha": f"sha-{number}",
        "head_ref": f"renovate/pkg-{number}",
        "base_ref": "main",
        "labels": ("dependencies",),
        "html_url": f"https://github.com/octo/app/pull/{number}",
        "author": "renovate[bot]",
    }
    defaults.update(kwargs)
    return PullRequest(number=number, **defaults)


def create_mock_checks_status(
    passed: Sequence[str] = ("build",),
    failed: Sequence[str] = (),
    pending: Sequence[str] = (),
    failure_conclusion: str = "failure",
) -> ChecksStatus:
    """
    Create a ChecksStatus from check names grouped by outcome.

    Args:
        passed: Names of successful checks
        failed: Names of failed checks
        pending: Names of checks still running
        failure_conclusion: Conclusion used for the failed checks

    Returns:
        ChecksStatus built the same way as from GitHub payloads
    """
    runs = [{"name": n, "status": "completed", "conclusion": "success"} for n in passed]
    runs += [{"name": n, "status": "completed", "conclusion": failure_conclusion} for n in failed]
    runs += [{"name": n, "status": "in_progress", "conclusion": None} for n in pending]
    return build_checks_status(runs, [])


def create_mock_review_info(approved_by: Sequence[str] = ()) -> ReviewInfo:
    return ReviewInfo(has_approval=bool(approved_by), approved_by=tuple(approved_by))


class FakeTime:
    """
    Deterministic clock whose sleep advances time instantly.

    Pass ``fake_time.sleep`` and ``fake_time.clock`` wherever the package
    accepts injected ``sleep``/``clock`` callables.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def create_fast_options(**overrides: Any) -> OrchestratorOptions:
    """OrchestratorOptions with every pause and poll interval set to zero."""
    fast = OrchestratorOptions(
        inter_pr_delay=0,
        settle_delay=0,
        retry_pause=0,
        ci_poll_interval=0,
        ci_poll_max_interval=0,
        rebase_poll_interval=0,
        rebase_poll_max_interval=0,
    )
    return fast.with_overrides(overrides)


# ============================================================================
# Mock Client Fixtures
# ============================================================================


@pytest.fixture
def mock_client() -> Generator[MockGitHubClient, None, None]:
    """
    Provide a MockGitHubClient for testing.

    Example:
        ```python
        @pytest.mark.asyncio
        async def test_my_feature(mock_client):
            mock_client.pulls.configure_get(create_mock_pull_request(3, merged=True))
            await my_function(mock_client)
            assert not mock_client.mutating_calls()
        ```
    """
    client = MockGitHubClient()
    yield client
    client.reset()


@pytest.fixture
def fake_time() -> FakeTime:
    """Provide a FakeTime starting at zero."""
    return FakeTime()


@pytest.fixture
def fast_options() -> OrchestratorOptions:
    """Provide options without pauses, for tests."""
    return create_fast_options()


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_pull_request() -> PullRequest:
    """Provide an open, clean Renovate PR (#1)."""
    return create_mock_pull_request(1)


@pytest.fixture
def passing_checks_status() -> ChecksStatus:
    return create_mock_checks_status(passed=("build", "test"))


@pytest.fixture
def failing_checks_status() -> ChecksStatus:
    return create_mock_checks_status(passed=("build",), failed=("test", "lint"))


@pytest.fixture
def pending_checks_status() -> ChecksStatus:
    return create_mock_checks_status(passed=("build",), pending=("test",))


@pytest.fixture
def sample_merge_result() -> MergeResult:
    return MergeResult(sha="abc123def456", merged=True, message="Pull Request successfully merged")


# ============================================================================
# Configured Mock Client Fixtures
# ============================================================================


@pytest.fixture
def mock_client_with_pr(
    mock_client: MockGitHubClient,
    sample_pull_request: PullRequest,
    passing_checks_status: ChecksStatus,
) -> MockGitHubClient:
    """
    Provide a MockGitHubClient where PR #1 is open, clean and green.

    Example:
        ```python
        @pytest.mark.asyncio
        async def test_merge(mock_client_with_pr, sample_pull_request, fast_options):
            result = await process_single_pr(
                mock_client_with_pr, "octo", "app", sample_pull_request, fast_options
            )
            assert result.status is MergeOutcome.MERGED
        ```
    """
    mock_client.pulls.configure_get(sample_pull_request, number=sample_pull_request.number)
    mock_client.pulls.configure_list_open([sample_pull_request])
    mock_client.checks.configure_get_status(passing_checks_status, sha=sample_pull_request.head_sha)
    return mock_client


__all__ = [
    # Fixtures (exported for documentation, actual fixtures are auto-discovered)
    "mock_client",
    "fast_options",
    "fake_time",
    "sample_pull_request",
    "passing_checks_status",
    "failing_checks_status",
    "pending_checks_status",
    "sample_merge_result",
    "mock_client_with_pr",
    # Helper functions
    "FakeTime",
    "create_mock_pull_request",
    "create_mock_checks_status",
    "create_mock_review_info",
    "create_fast_options",
]
