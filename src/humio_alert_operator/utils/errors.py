"""Error types and sanitization utilities."""

from __future__ import annotations

import re
from typing import TypeVar

_E = TypeVar("_E", bound=BaseException)


class ReconcileError(Exception):
    """A reconciliation step failed.

    The message carries the operation label; the original error is chained
    as ``__cause__`` so callers can still classify it with :func:`find_cause`.
    """


class ClusterConfigError(Exception):
    """The Humio client configuration for a resource could not be resolved."""


class TransformError(ValueError):
    """A desired alert could not be converted to its Humio representation."""


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"bearer\s+([A-Za-z0-9\-\._~\+/=]+)",
    r"api[_\s\-]?token[:\s=]+([^\s,;\)]+)",
    r"authorization[:\s]+([^\s,;\)]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "token",
    "password",
    "secret",
    "credentials",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}[:=]\s*([^\s,;\)]+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))


def find_cause(error: BaseException | None, error_type: type[_E]) -> _E | None:
    """Find an exception of the given type in an error's explicit cause chain.

    Args:
        error: Exception to inspect
        error_type: Exception class to look for

    Returns:
        The first matching exception, starting with ``error`` itself, or None
    """
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, error_type):
            return error
        seen.add(id(error))
        error = error.__cause__
    return None
