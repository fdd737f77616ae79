"""Shared pytest fixtures for trackerwire tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from tests.helpers.http import ScriptedTransport
from trackerwire.config.backend_config import BackendConfig
from trackerwire.transport.auth import BearerAuth
from trackerwire.transport.client import HttpClient
from trackerwire.transport.config import ConnectionConfig
from trackerwire.transport.retry import RetryPolicy

BASE_URL = "https://api.example.test"


@pytest.fixture
def no_sleep():
    """Patch the retry sleep so backoff costs no wall time."""
    with patch("trackerwire.transport.client.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def make_client():
    """Factory for an HttpClient wired to a ScriptedTransport.

    Returns ``(client, transport)``. Clients are closed after the test.
    """
    clients: list[HttpClient] = []

    def _make(*outcomes, retry=None, auth=None, headers=None, base_url=BASE_URL):
        transport = ScriptedTransport(*outcomes)
        client = HttpClient(
            ConnectionConfig(
                base_url=base_url,
                auth=auth or BearerAuth("test-token"),
                default_headers=headers or {},
                retry=retry or RetryPolicy(),
            ),
            transport=transport,
        )
        clients.append(client)
        return client, transport

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def jira_options():
    """Valid Jira options using credential aliases."""
    return {
        "url": "acme.atlassian.net",
        "email": "bot@acme.test",
        "token": "jira-api-token",
    }


@pytest.fixture
def trello_options():
    """Valid Trello options."""
    return {"api_key": "trello-key", "api_token": "trello-token"}


@pytest.fixture
def github_repo_config():
    """Validated GitHub repository configuration."""
    return BackendConfig.from_mapping(
        "github_repo",
        {"owner": "octo", "repo": "hello", "access_token": "ghp_test"},
    )


@pytest.fixture
def github_project_config():
    """Validated GitHub Projects configuration."""
    return BackendConfig.from_mapping("github_project", {"access_token": "ghp_test"})
