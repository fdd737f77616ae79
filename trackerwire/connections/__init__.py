"""Backend connection presets and the connection factory."""

from __future__ import annotations

import httpx

from trackerwire.config.backend_config import BackendConfig, Platform
from trackerwire.connections.base import BackendConnection
from trackerwire.connections.basecamp import BasecampConnection
from trackerwire.connections.fizzy import FizzyConnection
from trackerwire.connections.github import GitHubProjectConnection, GitHubRepoConnection
from trackerwire.connections.jira import JiraConnection
from trackerwire.connections.trello import TrelloConnection

CONNECTION_CLASSES: dict[Platform, type[BackendConnection]] = {
    Platform.JIRA: JiraConnection,
    Platform.TRELLO: TrelloConnection,
    Platform.GITHUB_REPO: GitHubRepoConnection,
    Platform.GITHUB_PROJECT: GitHubProjectConnection,
    Platform.BASECAMP: BasecampConnection,
    Platform.FIZZY: FizzyConnection,
}


def create_connection(
    config: BackendConfig,
    *,
    transport: httpx.BaseTransport | None = None,
) -> BackendConnection:
    """Create the connection preset for ``config.platform``.

    Args:
        config: Validated backend configuration
        transport: httpx transport override, e.g. ``httpx.MockTransport``

    Returns:
        Connection instance for the configured platform
    """
    return CONNECTION_CLASSES[config.platform](config, transport=transport)


__all__ = [
    "CONNECTION_CLASSES",
    "BackendConnection",
    "BasecampConnection",
    "FizzyConnection",
    "GitHubProjectConnection",
    "GitHubRepoConnection",
    "JiraConnection",
    "TrelloConnection",
    "create_connection",
]
