"""GraphQL client with partial-success semantics and Relay pagination.

GraphQL servers answer 200 even when the query failed, so success is
decided by the ``errors`` array rather than the HTTP status. Queries that
ask for two alternative root fields (``user(login:)`` and
``organization(login:)``) legitimately get an error for the branch that
resolves to null; those errors are suppressed as long as some top-level
field carries data.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from trackerwire.transport.client import HttpClient
from trackerwire.transport.exceptions import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_UNAUTHORIZED = re.compile(r"unauth", re.IGNORECASE)
_NOT_FOUND = re.compile(
    r"not\s+found|unknown\s+id|could\s+not\s+resolve\s+to\s+an?\s+\w+", re.IGNORECASE
)

DEFAULT_CURSOR_PARAM = "after"

PageFetcher = Callable[[dict[str, Any]], Mapping[str, Any]]


def has_usable_data(data: Any) -> bool:
    """True when at least one top-level field of ``data`` is non-null."""
    return isinstance(data, Mapping) and any(value is not None for value in data.values())


def raise_graphql_errors(errors: Sequence[Mapping[str, Any]]) -> None:
    """Raise the taxonomy exception for a fatal list of GraphQL errors.

    Messages are joined with ``"; "`` and classified by content:
    ``unauth`` means AuthenticationError, "not found", "unknown id" or
    "Could not resolve to a User" mean NotFoundError, and everything else
    is a ValidationError carrying the raw error objects.
    """
    message = "; ".join(str(error.get("message", "")) for error in errors)
    if _UNAUTHORIZED.search(message):
        raise AuthenticationError(message)
    if _NOT_FOUND.search(message):
        raise NotFoundError(message)
    raise ValidationError(message, errors=list(errors))


def extract_data(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return the ``data`` object of a GraphQL response, applying partial success.

    Raises:
        AuthenticationError, NotFoundError, ValidationError: when ``errors``
            is non-empty and ``data`` has no non-null top-level field
    """
    data = payload.get("data")
    errors = payload.get("errors") or []
    if errors:
        if has_usable_data(data):
            logger.debug(f"Suppressing {len(errors)} GraphQL error(s) on partial success")
            return dict(data)
        raise_graphql_errors(errors)
    return dict(data) if isinstance(data, Mapping) else {}


def dig(data: Any, path: Sequence[str]) -> Any:
    """Follow ``path`` through nested mappings, returning None on a missing key."""
    current = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def iter_connection(
    fetch_page: PageFetcher,
    connection_path: Sequence[str],
    variables: Mapping[str, Any] | None = None,
    cursor_param: str = DEFAULT_CURSOR_PARAM,
    items_key: str = "edges",
) -> Iterator[Any]:
    """Walk a Relay connection page by page.

    ``fetch_page`` receives the variables for each page (the caller's
    variables plus ``cursor_param`` set to the previous ``endCursor``, None
    for the first page) and returns the ``data`` mapping. Different pages
    may therefore be fetched with different queries.

    Yields:
        ``edge["node"]`` for ``items_key="edges"``, or each entry of
        ``nodes`` for ``items_key="nodes"``
    """
    cursor: str | None = None
    while True:
        page_variables = {**(variables or {}), cursor_param: cursor}
        data = fetch_page(page_variables)
        connection = dig(data, connection_path)
        if not isinstance(connection, Mapping):
            raise ApiError(
                f"GraphQL connection {'.'.join(connection_path)} missing from response"
            )

        for item in connection.get(items_key) or []:
            yield item.get("node") if items_key == "edges" else item

        page_info = connection.get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            return
        next_cursor = page_info.get("endCursor")
        if next_cursor is None or next_cursor == cursor:
            logger.warning(
                f"GraphQL connection {'.'.join(connection_path)} reported hasNextPage "
                f"without a new endCursor; stopping"
            )
            return
        cursor = next_cursor


class RelayPagination(ABC):
    """Relay pagination helpers for clients that implement ``execute``."""

    @abstractmethod
    def execute(self, query: str, variables: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Run ``query`` and return its ``data``."""
        pass

    def each_edge(
        self,
        fetch_page: PageFetcher | str,
        connection_path: Sequence[str],
        variables: Mapping[str, Any] | None = None,
        cursor_param: str = DEFAULT_CURSOR_PARAM,
    ) -> Iterator[Any]:
        """Yield every ``edges[].node`` of a Relay connection.

        ``fetch_page`` is either a callback that performs the request for
        the given variables, or a query string executed with this client.
        """
        return iter_connection(
            self._page_fetcher(fetch_page), connection_path, variables, cursor_param, "edges"
        )

    def each_node(
        self,
        fetch_page: PageFetcher | str,
        connection_path: Sequence[str],
        variables: Mapping[str, Any] | None = None,
        cursor_param: str = DEFAULT_CURSOR_PARAM,
    ) -> Iterator[Any]:
        """Like each_edge, for connections queried through ``nodes``."""
        return iter_connection(
            self._page_fetcher(fetch_page), connection_path, variables, cursor_param, "nodes"
        )

    def _page_fetcher(self, fetch_page: PageFetcher | str) -> PageFetcher:
        if isinstance(fetch_page, str):
            query = fetch_page
            return lambda page_variables: self.execute(query, page_variables)
        return fetch_page


class GraphQLClient(RelayPagination):
    """POSTs ``{query, variables}`` through an HttpClient."""

    def __init__(self, http_client: HttpClient, endpoint: str = "") -> None:
        """Initialize the client.

        Args:
            http_client: Configured request executor
            endpoint: Path of the GraphQL endpoint relative to the base URL
        """
        self._http = http_client
        self._endpoint = endpoint

    @property
    def http_client(self) -> HttpClient:
        return self._http

    def post(self, query: str, variables: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Send a query and return the full response payload, errors included."""
        payload = self._http.request(
            "POST",
            self._endpoint,
            body={"query": query, "variables": dict(variables or {})},
        )
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise ApiError(f"Unexpected GraphQL response of type {type(payload).__name__}")
        return payload

    def execute(self, query: str, variables: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Run a query and return its ``data``.

        Raises:
            AuthenticationError, NotFoundError, ValidationError: on fatal
                GraphQL errors
        """
        return extract_data(self.post(query, variables))


class DeprecationTrackingClient(RelayPagination):
    """GraphQL client wrapper that records global-id deprecation warnings.

    GitHub reports legacy node ids through ``extensions.warnings`` entries
    of type ``DEPRECATION`` carrying ``legacy_global_id`` and
    ``next_global_id``. This wrapper remembers those pairs so callers can
    upgrade ids they cached earlier.
    """

    def __init__(self, client: GraphQLClient) -> None:
        self._client = client
        self._deprecations: dict[str, str] = {}

    @property
    def deprecations(self) -> Mapping[str, str]:
        """Read-only ``legacy id -> next id`` mapping seen so far."""
        return MappingProxyType(self._deprecations)

    @property
    def http_client(self) -> HttpClient:
        return self._client.http_client

    def upgraded_id(self, legacy_id: str) -> str:
        """Return the upgraded id for ``legacy_id``, or ``legacy_id`` itself."""
        return self._deprecations.get(legacy_id, legacy_id)

    def post(self, query: str, variables: Mapping[str, Any] | None = None) -> dict[str, Any]:
        payload = self._client.post(query, variables)
        self._record_deprecations(payload)
        return payload

    def execute(self, query: str, variables: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return extract_data(self.post(query, variables))

    def _record_deprecations(self, payload: Mapping[str, Any]) -> None:
        warnings = dig(payload, ("extensions", "warnings")) or []
        for warning in warnings:
            if not isinstance(warning, Mapping) or warning.get("type") != "DEPRECATION":
                continue
            legacy = dig(warning, ("data", "legacy_global_id"))
            updated = dig(warning, ("data", "next_global_id"))
            if legacy and updated:
                if legacy not in self._deprecations:
                    logger.debug(f"Recorded deprecated global id {legacy} -> {updated}")
                self._deprecations[legacy] = updated


__all__ = [
    "DEFAULT_CURSOR_PARAM",
    "PageFetcher",
    "DeprecationTrackingClient",
    "GraphQLClient",
    "RelayPagination",
    "dig",
    "extract_data",
    "has_usable_data",
    "iter_connection",
    "raise_graphql_errors",
]
