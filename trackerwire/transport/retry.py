"""Retry policy for transient backend failures.

This module provides:
- FailureKind: transport-level failure categories eligible for retry
- RetryPolicy: attempts, exponential backoff and retryable classifications
- classify_transport_error: maps httpx exceptions to a FailureKind
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from enum import Enum

import httpx

DEFAULT_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


class FailureKind(Enum):
    """Transport failures that happen before any HTTP status is received."""

    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    TLS_FAILURE = "tls_failure"


DEFAULT_RETRYABLE_FAILURE_KINDS: frozenset[FailureKind] = frozenset(FailureKind)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for one connection.

    The delay before attempt ``n + 1`` is
    ``initial_interval * backoff_factor ** (n - 1)``, so the default policy
    waits 0.5s and then 1.0s across its three attempts.

    ``retry_methods`` restricts automatic retry to the named HTTP verbs.
    ``None`` retries every verb, including POST and PATCH, which makes
    delivery at-least-once for requests that timed out after the backend
    received them.
    """

    max_attempts: int = 3
    initial_interval: float = 0.5
    backoff_factor: float = 2.0
    retryable_statuses: frozenset[int] = DEFAULT_RETRYABLE_STATUSES
    retryable_failure_kinds: frozenset[FailureKind] = DEFAULT_RETRYABLE_FAILURE_KINDS
    retry_methods: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_interval <= 0:
            raise ValueError("initial_interval must be > 0")
        if self.backoff_factor <= 0:
            raise ValueError("backoff_factor must be > 0")
        # Accept any iterable at construction time but store frozensets
        object.__setattr__(self, "retryable_statuses", frozenset(self.retryable_statuses))
        object.__setattr__(
            self, "retryable_failure_kinds", frozenset(self.retryable_failure_kinds)
        )
        if self.retry_methods is not None:
            object.__setattr__(
                self, "retry_methods", frozenset(m.upper() for m in self.retry_methods)
            )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (1-indexed)."""
        return self.initial_interval * self.backoff_factor ** (attempt - 1)

    def allows_method(self, method: str) -> bool:
        return self.retry_methods is None or method.upper() in self.retry_methods

    def should_retry_status(self, method: str, status_code: int) -> bool:
        return status_code in self.retryable_statuses and self.allows_method(method)

    def should_retry_failure(self, method: str, kind: FailureKind | None) -> bool:
        return (
            kind is not None
            and kind in self.retryable_failure_kinds
            and self.allows_method(method)
        )


def classify_transport_error(error: httpx.HTTPError) -> FailureKind | None:
    """Map an httpx exception to a FailureKind.

    TLS handshake failures surface from httpx as ConnectError wrapping an
    ``ssl.SSLError``, so the exception chain is inspected before treating
    a ConnectError as a refused connection.

    Returns:
        The failure kind, or None when the failure is not a known transient kind
    """
    if isinstance(error, httpx.TimeoutException):
        return FailureKind.TIMEOUT
    if isinstance(error, httpx.ConnectError):
        if _caused_by_ssl(error) or "ssl" in str(error).lower():
            return FailureKind.TLS_FAILURE
        return FailureKind.CONNECTION_REFUSED
    return None


def _caused_by_ssl(error: BaseException) -> bool:
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


__all__ = [
    "DEFAULT_RETRYABLE_FAILURE_KINDS",
    "DEFAULT_RETRYABLE_STATUSES",
    "FailureKind",
    "RetryPolicy",
    "classify_transport_error",
]
