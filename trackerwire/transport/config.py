"""Immutable connection settings for one backend."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from trackerwire.transport.auth import AuthStrategy, NoAuth
from trackerwire.transport.retry import RetryPolicy

DEFAULT_TIMEOUT_SECONDS: float = 30.0


@dataclass(frozen=True)
class ConnectionConfig:
    """Everything an HttpClient needs to reach one backend.

    Attributes:
        base_url: Root URL that request paths are resolved against
        auth: How credentials are attached to each request
        default_headers: Headers merged over the client defaults
        retry: Retry policy for transient failures
        timeout: Connect/read timeout in seconds for each attempt
    """

    base_url: str
    auth: AuthStrategy = field(default_factory=NoAuth)
    default_headers: Mapping[str, str] = field(default_factory=dict)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        object.__setattr__(
            self, "default_headers", MappingProxyType(dict(self.default_headers))
        )


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "ConnectionConfig",
]
