"""
Tests for CI check aggregation and evaluation.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from renovate_merger.check_status import (
    NO_FAILED_CHECKS,
    build_checks_status,
    effective_state,
    failed_checks,
    format_failures,
    has_blocking_pending_checks,
    has_indefinitely_pending_check,
    indefinitely_pending_checks,
    is_failing,
    is_passing,
    is_pending,
)
from renovate_merger.testing import create_mock_checks_status
from renovate_merger.types.checks import ChecksStatus


def run(name: str, status: str = "completed", conclusion: str | None = "success") -> dict:
    return {"name": name, "status": status, "conclusion": conclusion}


def status_entry(context: str, state: str) -> dict:
    return {"context": context, "state": state}


class TestBuildChecksStatus:
    def test_empty_is_success(self) -> None:
        status = build_checks_status([], [])
        assert status.state == "success"
        assert status.total == 0
        assert is_passing(status)

    def test_all_runs_pass(self) -> None:
        status = build_checks_status([run("build"), run("test", conclusion="skipped")], [])
        assert status.state == "success"
        assert (status.total, status.completed, status.successful) == (2, 2, 2)

    def test_failed_run_wins_over_pending(self) -> None:
        status = build_checks_status(
            [run("build", conclusion="failure"), run("test", status="in_progress", conclusion=None)],
            [],
        )
        assert status.state == "failure"
        assert status.failed == 1
        assert status.pending == 1

    def test_queued_run_is_pending(self) -> None:
        status = build_checks_status([run("build", status="queued", conclusion=None)], [])
        assert status.state == "pending"
        assert is_pending(status)

    def test_legacy_statuses(self) -> None:
        status = build_checks_status(
            [],
            [status_entry("ci/circleci", "success"), status_entry("codecov", "error")],
        )
        assert status.state == "failure"
        assert status.failed == 1
        assert status.details[1].conclusion == "error"

    def test_pending_legacy_status(self) -> None:
        status = build_checks_status([], [status_entry("deploy", "pending")])
        assert status.state == "pending"
        assert status.details[0].status == "in_progress"
        assert status.details[0].conclusion is None

    def test_duplicate_status_name_is_ignored(self) -> None:
        status = build_checks_status([run("build")], [status_entry("build", "failure")])
        assert status.total == 1
        assert status.state == "success"

    def test_unrecognized_conclusion_is_error(self) -> None:
        status = build_checks_status([run("build", conclusion="action_required")], [])
        assert status.state == "error"
        assert is_failing(status)


class TestFailures:
    def test_failed_checks_and_format(self) -> None:
        status = build_checks_status(
            [run("build"), run("test", conclusion="timed_out"), run("lint", conclusion="failure")],
            [status_entry("legacy", "error")],
        )
        assert [c.name for c in failed_checks(status)] == ["test", "lint", "legacy"]
        assert format_failures(status) == "test (timed_out), lint (failure), legacy (error)"

    def test_no_failures(self) -> None:
        assert format_failures(create_mock_checks_status()) == NO_FAILED_CHECKS


class TestIndefinitelyPending:
    def test_stability_days_is_indefinite(self) -> None:
        status = create_mock_checks_status(pending=("renovate/stability-days",))
        assert has_indefinitely_pending_check(status)
        assert not has_blocking_pending_checks(status)
        assert effective_state(status) == "success"

    def test_match_is_case_insensitive_substring(self) -> None:
        status = create_mock_checks_status(pending=("Renovate/Stability-Days (npm)",))
        assert [d.name for d in indefinitely_pending_checks(status)] == [
            "Renovate/Stability-Days (npm)"
        ]

    def test_completed_gate_is_not_pending(self) -> None:
        status = create_mock_checks_status(passed=("renovate/stability-days",))
        assert not has_indefinitely_pending_check(status)

    def test_regular_pending_blocks(self) -> None:
        status = create_mock_checks_status(pending=("test", "renovate/stability-days"))
        assert has_blocking_pending_checks(status)
        assert effective_state(status) == "pending"

    def test_custom_ignored_list(self) -> None:
        status = create_mock_checks_status(pending=("slow-e2e",))
        assert has_indefinitely_pending_check(status, ignored=("e2e",))
        assert not has_indefinitely_pending_check(status)

    def test_effective_state_failure(self, failing_checks_status: ChecksStatus) -> None:
        assert effective_state(failing_checks_status) == "failure"


outcome_strategy = st.lists(
    st.sampled_from(["success", "failure", "skipped", "neutral", "timed_out", "cancelled", "pending"]),
    max_size=8,
)


def runs_from(outcomes: list[str]) -> list[dict]:
    runs = []
    for i, outcome in enumerate(outcomes):
        if outcome == "pending":
            runs.append(run(f"check-{i}", status="in_progress", conclusion=None))
        else:
            runs.append(run(f"check-{i}", conclusion=outcome))
    return runs


@given(outcomes=outcome_strategy)
@settings(max_examples=200)
def test_property_state_predicates_are_exclusive(outcomes: list[str]) -> None:
    """
    Property: Check state classification

    For any set of checks, exactly one of passing/pending/failing holds,
    and the counts add up.
    """
    status = build_checks_status(runs_from(outcomes), [])

    flags = [is_passing(status), is_pending(status), is_failing(status)]
    assert flags.count(True) == 1
    assert status.completed + status.pending == status.total
    assert status.successful + status.failed <= status.completed
    if any(o in ("failure", "timed_out", "cancelled") for o in outcomes):
        assert status.state == "failure"


@given(outcomes=outcome_strategy)
@settings(max_examples=200)
def test_property_stability_gate_is_indefinite(outcomes: list[str]) -> None:
    """
    Property: an incomplete stability-days check is always reported as
    indefinitely pending, whatever else is running.
    """
    runs = runs_from(outcomes) + [run("renovate/stability-days", status="queued", conclusion=None)]
    status = build_checks_status(runs, [])
    assert has_indefinitely_pending_check(status)
    assert not is_passing(status)
