"""Error type for the Renovate merge tool.

All failures raised by this package are ``MergerError`` instances. The
``kind`` tag says which family the failure belongs to and ``payload`` carries
the per-kind details, so callers dispatch on ``kind``/``code`` rather than on
subclass identity.
"""

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Families of failures."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    PR_STATE = "pr_state"
    POLLING_TIMEOUT = "polling_timeout"
    POLLING_ABORTED = "polling_aborted"
    NETWORK = "network"
    RENOVATE = "renovate"
    API = "api"


class ErrorCode(str, Enum):
    """Specific failure codes within a kind."""

    # Authentication
    AUTH_TOKEN_MISSING = "AUTH_TOKEN_MISSING"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_INSUFFICIENT_PERMISSIONS = "AUTH_INSUFFICIENT_PERMISSIONS"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SECONDARY_RATE_LIMIT = "SECONDARY_RATE_LIMIT"

    # PR state
    PR_NOT_FOUND = "PR_NOT_FOUND"
    PR_ALREADY_MERGED = "PR_ALREADY_MERGED"
    PR_CLOSED = "PR_CLOSED"
    PR_HAS_CONFLICTS = "PR_HAS_CONFLICTS"
    PR_NOT_MERGEABLE = "PR_NOT_MERGEABLE"
    PR_CHECKS_FAILED = "PR_CHECKS_FAILED"
    PR_MERGE_BLOCKED = "PR_MERGE_BLOCKED"

    # Network
    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"

    # Renovate
    RENOVATE_CHECKBOX_NOT_FOUND = "RENOVATE_CHECKBOX_NOT_FOUND"
    NOT_RENOVATE_PR = "NOT_RENOVATE_PR"

    # Input
    INVALID_REPO_URL = "INVALID_REPO_URL"
    INVALID_OPTIONS = "INVALID_OPTIONS"

    # Polling
    POLLING_TIMEOUT = "POLLING_TIMEOUT"
    POLLING_ABORTED = "POLLING_ABORTED"

    # Generic host responses
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate limit payload."""

    reset_at: datetime
    remaining: int = 0


@dataclass(frozen=True)
class PRStateInfo:
    """PR state payload."""

    pr_number: int


@dataclass(frozen=True)
class PollingInfo:
    """Polling payload. ``timeout`` is in seconds."""

    operation: str
    timeout: float


_RECOVERABLE_KINDS = frozenset({ErrorKind.RATE_LIMIT, ErrorKind.NETWORK})

# PR-state codes that describe an expected business outcome rather than a bug
EXPECTED_PR_STATE_CODES = frozenset(
    {
        ErrorCode.PR_NOT_FOUND,
        ErrorCode.PR_ALREADY_MERGED,
        ErrorCode.PR_CLOSED,
        ErrorCode.PR_HAS_CONFLICTS,
        ErrorCode.PR_NOT_MERGEABLE,
        ErrorCode.PR_CHECKS_FAILED,
    }
)


class MergerError(Exception):
    """Base exception for every failure raised by renovate_merger."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        code: ErrorCode | None = None,
        payload: Any = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.code = code
        self.payload = payload
        self.status_code = status_code
        self.cause = cause
        label = code.value if code is not None else kind.value.upper()
        super().__init__(f"[{label}] {message}")
        if cause is not None:
            self.__cause__ = cause

    @property
    def recoverable(self) -> bool:
        """Whether a plain retry has a chance of succeeding."""
        return self.kind in _RECOVERABLE_KINDS

    @property
    def user_message(self) -> str:
        """Human readable description for terminal output."""
        if self.kind is ErrorKind.RATE_LIMIT and isinstance(self.payload, RateLimitInfo):
            wait = max(0, math.ceil(self.payload.reset_at.timestamp() - time.time()))
            return f"GitHub rate limit reached. Waiting {wait}s for reset..."
        if self.kind is ErrorKind.POLLING_TIMEOUT and isinstance(self.payload, PollingInfo):
            return (
                f"Timeout after {round(self.payload.timeout)}s "
                f"waiting for {self.payload.operation}"
            )
        return self.message

    @property
    def is_merge_blocked(self) -> bool:
        return self.kind is ErrorKind.PR_STATE and self.code is ErrorCode.PR_MERGE_BLOCKED

    @property
    def is_expected_pr_state(self) -> bool:
        return self.kind is ErrorKind.PR_STATE and self.code in EXPECTED_PR_STATE_CODES


def validation_error(code: ErrorCode, message: str) -> MergerError:
    return MergerError(ErrorKind.VALIDATION, message, code=code)


def auth_error(code: ErrorCode, message: str, cause: BaseException | None = None) -> MergerError:
    return MergerError(ErrorKind.AUTHENTICATION, message, code=code, cause=cause)


def rate_limit_error(
    reset_at: datetime,
    remaining: int = 0,
    *,
    secondary: bool = False,
    status_code: int | None = None,
) -> MergerError:
    """Build a RATE_LIMIT error that resets at ``reset_at`` (aware datetime)."""
    if reset_at.tzinfo is None:
        reset_at = reset_at.replace(tzinfo=timezone.utc)
    code = ErrorCode.SECONDARY_RATE_LIMIT if secondary else ErrorCode.RATE_LIMIT_EXCEEDED
    return MergerError(
        ErrorKind.RATE_LIMIT,
        f"Rate limit exceeded. Resets at {reset_at.isoformat()}",
        code=code,
        payload=RateLimitInfo(reset_at=reset_at, remaining=remaining),
        status_code=status_code,
    )


def pr_state_error(
    code: ErrorCode,
    pr_number: int,
    message: str,
    *,
    status_code: int | None = None,
    cause: BaseException | None = None,
) -> MergerError:
    return MergerError(
        ErrorKind.PR_STATE,
        message,
        code=code,
        payload=PRStateInfo(pr_number=pr_number),
        status_code=status_code,
        cause=cause,
    )


def polling_timeout_error(operation: str, timeout: float) -> MergerError:
    return MergerError(
        ErrorKind.POLLING_TIMEOUT,
        f"Timeout waiting for {operation} after {timeout:g}s",
        code=ErrorCode.POLLING_TIMEOUT,
        payload=PollingInfo(operation=operation, timeout=timeout),
    )


def polling_aborted_error(operation: str, timeout: float) -> MergerError:
    return MergerError(
        ErrorKind.POLLING_ABORTED,
        f"Polling aborted for {operation}",
        code=ErrorCode.POLLING_ABORTED,
        payload=PollingInfo(operation=operation, timeout=timeout),
    )


def network_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.NETWORK_ERROR,
    cause: BaseException | None = None,
) -> MergerError:
    return MergerError(ErrorKind.NETWORK, message, code=code, cause=cause)


def renovate_error(code: ErrorCode, message: str) -> MergerError:
    return MergerError(ErrorKind.RENOVATE, message, code=code)


def api_error(
    status_code: int,
    message: str,
    *,
    code: ErrorCode | None = None,
) -> MergerError:
    """Build an API error for an HTTP response the host rejected."""
    if code is None:
        if status_code == 404:
            code = ErrorCode.NOT_FOUND
        elif status_code >= 500:
            code = ErrorCode.SERVER_ERROR
        else:
            code = ErrorCode.HTTP_ERROR
    return MergerError(ErrorKind.API, message, code=code, status_code=status_code)


def user_message_for(error: BaseException) -> str:
    """Best available user facing text for any exception."""
    if isinstance(error, MergerError):
        return error.user_message
    text = str(error)
    return text or error.__class__.__name__
