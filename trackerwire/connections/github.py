"""GitHub connection presets: REST repositories and GraphQL Projects V2."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import httpx

from trackerwire.config.backend_config import BackendConfig, Platform
from trackerwire.connections.base import BackendConnection
from trackerwire.transport.auth import AuthStrategy, BearerAuth
from trackerwire.transport.graphql import (
    DEFAULT_CURSOR_PARAM,
    DeprecationTrackingClient,
    GraphQLClient,
    PageFetcher,
)

GITHUB_API_URL = "https://api.github.com"
GRAPHQL_ENDPOINT = "graphql"


class GitHubRepoConnection(BackendConnection):
    """Connection to one GitHub repository through the REST API.

    Credential keys:
        - owner: Repository owner (user or organization)
        - repo: Repository name
        - access_token: Personal access token or app token
    """

    platform = Platform.GITHUB_REPO

    @property
    def platform_name(self) -> str:
        return "GitHub"

    @property
    def base_url(self) -> str:
        return GITHUB_API_URL

    @property
    def repo_path(self) -> str:
        """``repos/<owner>/<repo>``, the prefix of every repository endpoint."""
        return f"repos/{self.config.options['owner']}/{self.config.options['repo']}"

    def auth(self) -> AuthStrategy:
        return BearerAuth(str(self.config.options["access_token"]))

    def extra_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/vnd.github.v3+json"}


class GitHubProjectConnection(BackendConnection):
    """Connection to GitHub Projects V2 through the GraphQL API.

    Credential keys:
        - access_token: Token with the ``project`` scope

    Requests opt in to next-generation global ids. GitHub reports legacy
    ids it still accepts as deprecation warnings; those mappings are
    available through ``upgraded_id``.
    """

    platform = Platform.GITHUB_PROJECT

    def __init__(
        self,
        config: BackendConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(config, transport=transport)
        self._graphql = DeprecationTrackingClient(
            GraphQLClient(self.http_client, endpoint=GRAPHQL_ENDPOINT)
        )

    @property
    def platform_name(self) -> str:
        return "GitHub Projects"

    @property
    def base_url(self) -> str:
        return GITHUB_API_URL

    def auth(self) -> AuthStrategy:
        return BearerAuth(str(self.config.options["access_token"]))

    def extra_headers(self) -> Mapping[str, str]:
        return {"X-Github-Next-Global-ID": "1"}

    @property
    def graphql(self) -> DeprecationTrackingClient:
        return self._graphql

    def execute(self, query: str, variables: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data``."""
        return self._graphql.execute(query, variables)

    def each_edge(
        self,
        fetch_page: PageFetcher | str,
        connection_path: Sequence[str],
        variables: Mapping[str, Any] | None = None,
        cursor_param: str = DEFAULT_CURSOR_PARAM,
    ) -> Iterator[Any]:
        """Yield every node of a Relay connection (see RelayPagination.each_edge)."""
        return self._graphql.each_edge(fetch_page, connection_path, variables, cursor_param)

    def upgraded_id(self, legacy_id: str) -> str:
        return self._graphql.upgraded_id(legacy_id)


__all__ = [
    "GITHUB_API_URL",
    "GRAPHQL_ENDPOINT",
    "GitHubProjectConnection",
    "GitHubRepoConnection",
]
