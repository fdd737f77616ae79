"""Authentication strategies attached to every outgoing request.

Backends disagree on where credentials go: Jira wants HTTP basic auth,
GitHub and Basecamp a bearer token, Linear a raw key in Authorization,
and Trello ``key``/``token`` query-string parameters.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class AuthStrategy(ABC):
    """Attaches credentials to request headers and query parameters."""

    @abstractmethod
    def apply(self, headers: dict[str, str], params: dict[str, Any]) -> None:
        """Mutate ``headers`` and ``params`` in place for one request."""
        pass


@dataclass(frozen=True, repr=False)
class BearerAuth(AuthStrategy):
    """Token in a header, ``Bearer <token>`` by default.

    Set ``scheme`` to None for backends that expect the bare token.
    """

    token: str
    header: str = "Authorization"
    scheme: str | None = "Bearer"

    def apply(self, headers: dict[str, str], params: dict[str, Any]) -> None:
        headers[self.header] = f"{self.scheme} {self.token}" if self.scheme else self.token

    def __repr__(self) -> str:
        return f"BearerAuth(header={self.header!r}, scheme={self.scheme!r})"


@dataclass(frozen=True, repr=False)
class BasicAuth(AuthStrategy):
    """HTTP basic authentication."""

    username: str
    password: str

    def apply(self, headers: dict[str, str], params: dict[str, Any]) -> None:
        raw = f"{self.username}:{self.password}".encode()
        headers["Authorization"] = "Basic " + base64.b64encode(raw).decode("ascii")

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r})"


@dataclass(frozen=True, repr=False)
class QueryAuth(AuthStrategy):
    """Credentials sent as query-string parameters.

    Caller-supplied query parameters take precedence over these.
    """

    params: dict[str, str] = field(default_factory=dict)

    def apply(self, headers: dict[str, str], params: dict[str, Any]) -> None:
        for key, value in self.params.items():
            params.setdefault(key, value)

    def __repr__(self) -> str:
        return f"QueryAuth(keys={sorted(self.params)!r})"


class NoAuth(AuthStrategy):
    """No credentials attached."""

    def apply(self, headers: dict[str, str], params: dict[str, Any]) -> None:
        return None

    def __repr__(self) -> str:
        return "NoAuth()"


__all__ = [
    "AuthStrategy",
    "BasicAuth",
    "BearerAuth",
    "NoAuth",
    "QueryAuth",
]
