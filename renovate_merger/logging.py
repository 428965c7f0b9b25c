"""
Logging utilities for renovate_merger.

Provides configurable logging for GitHub HTTP traffic and the merge
workflow. Ensures no credentials (tokens, Authorization headers) are logged.
"""

import logging
import re
from typing import Any

# Package loggers
_root_logger = logging.getLogger("renovate_merger")
_http_logger = logging.getLogger("renovate_merger.http")
_orchestrator_logger = logging.getLogger("renovate_merger.orchestrator")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Authorization header values
    (re.compile(r"(authorization['\"]?\s*[:=]\s*['\"]?)(bearer|token|basic)\s+[^'\",\s}]+", re.IGNORECASE), r"\1\2 [REDACTED]"),
    # Fine-grained personal access tokens
    (re.compile(r"github_pat_[A-Za-z0-9_]{20,}"), "[GITHUB_TOKEN_REDACTED]"),
    # Classic, OAuth, user-to-server, server-to-server and refresh tokens
    (re.compile(r"gh[pousr]_[A-Za-z0-9]{20,}"), "[GITHUB_TOKEN_REDACTED]"),
    # Secret/token patterns
    (re.compile(r"(secret|token|password|api_key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_DEFAULT_SENSITIVE_KEYS = frozenset(
    {"authorization", "token", "secret", "password", "api_key"}
)

# Characters of a token kept when previewing it
_TOKEN_PREVIEW_LENGTH = 4


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    orchestrator_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure renovate_merger logging.

    Args:
        level: Default log level for all package loggers (default: INFO)
        http_level: Log level for HTTP request/response logging (default: same as level)
        orchestrator_level: Log level for merge workflow logging (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from renovate_merger.logging import configure_logging

        # Trace every GitHub request
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _root_logger.setLevel(level)
    _root_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)
    _orchestrator_logger.setLevel(
        orchestrator_level if orchestrator_level is not None else level
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a renovate_merger logger.

    Args:
        name: Logger name suffix (e.g., "http", "orchestrator"). If None, returns the package logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _root_logger
    return logging.getLogger(f"renovate_merger.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask sensitive data in a string.

    Replaces GitHub tokens, Authorization header values and other secret
    assignments with redacted placeholders.
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def truncate_token(token: str) -> str:
    """
    Shorten a token for safe display, e.g. "ghp_...wxyz".

    Tokens too short to preview are fully redacted.
    """
    if len(token) <= _TOKEN_PREVIEW_LENGTH * 3:
        return "[REDACTED]"
    return f"{token[:_TOKEN_PREVIEW_LENGTH]}...{token[-_TOKEN_PREVIEW_LENGTH:]}"


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Keys to mask (default: authorization, token, secret, password, api_key)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = set(_DEFAULT_SENSITIVE_KEYS)

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        elif isinstance(value, str):
            result[key] = mask_sensitive_data(value)
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
) -> None:
    """Log an HTTP request at DEBUG level with sensitive data masked."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {url}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    if body:
        log_parts.append(f"body={safe_log_dict(body)}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
    rate_limit_remaining: str | None = None,
) -> None:
    """Log an HTTP response at DEBUG level."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {url}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if rate_limit_remaining is not None:
        log_parts.append(f"ratelimit_remaining={rate_limit_remaining}")

    _http_logger.debug(" | ".join(log_parts))


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "truncate_token",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
]
