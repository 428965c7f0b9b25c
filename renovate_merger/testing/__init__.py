"""renovate_merger testing utilities.

Provides a mock GitHub client, data builders and pytest fixtures.
"""

from renovate_merger.testing.fixtures import (
    FakeTime,
    create_fast_options,
    create_mock_checks_status,
    create_mock_pull_request,
    create_mock_review_info,
)
from renovate_merger.testing.mock import (
    MUTATING_METHODS,
    MockCall,
    MockGitHubClient,
    MockResponse,
)

__all__ = [
    # Mock client
    "MockGitHubClient",
    "MockCall",
    "MockResponse",
    "MUTATING_METHODS",
    # Helper functions
    "FakeTime",
    "create_mock_pull_request",
    "create_mock_checks_status",
    "create_mock_review_info",
    "create_fast_options",
]
