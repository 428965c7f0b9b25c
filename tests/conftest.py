"""Shared fixtures for the renovate_merger test suite."""

from renovate_merger.testing.fixtures import (  # noqa: F401
    failing_checks_status,
    fake_time,
    fast_options,
    mock_client,
    mock_client_with_pr,
    passing_checks_status,
    pending_checks_status,
    sample_merge_result,
    sample_pull_request,
)
