"""
Pytest plugin for renovate_merger testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
discovered by pytest. To use them, add this to your conftest.py:

    pytest_plugins = ["renovate_merger.testing.conftest"]
"""

from renovate_merger.testing.fixtures import (
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

__all__ = [
    "mock_client",
    "fast_options",
    "fake_time",
    "sample_pull_request",
    "passing_checks_status",
    "failing_checks_status",
    "pending_checks_status",
    "sample_merge_result",
    "mock_client_with_pr",
]
