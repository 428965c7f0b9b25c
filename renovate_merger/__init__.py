"""gh-renovate-merge - merge batches of Renovate pull requests safely."""

from renovate_merger.client import GitHubClient
from renovate_merger.exceptions import ErrorCode, ErrorKind, MergerError
from renovate_merger.logging import configure_logging, get_logger
from renovate_merger.options import OrchestratorOptions
from renovate_merger.orchestrator import BatchReporter, is_retriable_reason, orchestrate_merge
from renovate_merger.poller import PollDecision, PollerOptions, poll
from renovate_merger.progression import process_single_pr
from renovate_merger.retry import RetryConfig, is_transient_error, with_retry
from renovate_merger.transport import HTTPTransport
from renovate_merger.types import (
    ChecksStatus,
    MergeMethod,
    MergeOutcome,
    MergeResultSummary,
    OrchestratorResult,
    PullRequest,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Client
    "GitHubClient",
    "HTTPTransport",
    # Merge workflow
    "OrchestratorOptions",
    "BatchReporter",
    "orchestrate_merge",
    "process_single_pr",
    "is_retriable_reason",
    # Polling and retry
    "PollDecision",
    "PollerOptions",
    "poll",
    "RetryConfig",
    "is_transient_error",
    "with_retry",
    # Exceptions
    "ErrorCode",
    "ErrorKind",
    "MergerError",
    # Types
    "ChecksStatus",
    "MergeMethod",
    "MergeOutcome",
    "MergeResultSummary",
    "OrchestratorResult",
    "PullRequest",
    # Logging
    "configure_logging",
    "get_logger",
]
