"""Tests for trackerwire.connections package.

Tests cover:
- BackendConnection ABC contract and credential validation
- Base URL, authentication and headers for each backend preset
- Backend-specific error overrides (Trello invalid id, Jira Seraph header)
- Helpers handed out by a connection (pagination, status mapper, webhooks)
"""

from __future__ import annotations

import base64

import httpx
import pytest

from tests.helpers.http import ScriptedTransport, json_response
from trackerwire.config.backend_config import BackendConfig, Platform
from trackerwire.connections import (
    CONNECTION_CLASSES,
    BackendConnection,
    BasecampConnection,
    FizzyConnection,
    GitHubProjectConnection,
    GitHubRepoConnection,
    JiraConnection,
    TrelloConnection,
    create_connection,
)
from trackerwire.connections.jira import normalize_site_url
from trackerwire.status.mapper import CanonicalStatus
from trackerwire.transport.exceptions import (
    ApiError,
    AuthenticationError,
    CredentialValidationError,
    NotFoundError,
    ValidationError,
)
from trackerwire.utils.errors import ConfigValidationError
from trackerwire.webhooks.normalizers import (
    GitHubRepoWebhookNormalizer,
    JiraWebhookNormalizer,
)


@pytest.fixture
def jira_config(jira_options):
    return BackendConfig.from_mapping("jira", jira_options)


@pytest.fixture
def trello_config(trello_options):
    return BackendConfig.from_mapping("trello", trello_options)


class TestBackendConnectionABC:
    """Tests for the BackendConnection abstract base class."""

    def test_cannot_instantiate_abc(self, trello_config):
        with pytest.raises(TypeError, match="abstract"):
            BackendConnection(trello_config)

    def test_every_platform_has_a_connection(self):
        assert set(CONNECTION_CLASSES) == set(Platform)

    @pytest.mark.parametrize("platform, connection_class", list(CONNECTION_CLASSES.items()))
    def test_connection_platforms_match(self, platform, connection_class):
        assert connection_class.platform is platform


class TestConnectionValidation:
    """Tests for configuration checks at construction time."""

    def test_platform_mismatch(self, trello_config):
        with pytest.raises(ConfigValidationError, match="requires a 'jira' configuration"):
            JiraConnection(trello_config)

    def test_missing_credentials(self):
        """Configs built without from_mapping are still checked."""
        config = BackendConfig(platform=Platform.TRELLO, options={"api_key": "k"})

        with pytest.raises(CredentialValidationError) as exc_info:
            TrelloConnection(config)

        assert exc_info.value.platform_name == "Trello"
        assert exc_info.value.missing_keys == {"api_token"}

    def test_blank_credentials(self):
        config = BackendConfig(
            platform=Platform.BASECAMP, options={"account_id": "  ", "access_token": "t"}
        )

        with pytest.raises(CredentialValidationError, match="account_id"):
            BasecampConnection(config)


class TestCreateConnection:
    """Tests for the connection factory."""

    def test_creates_platform_connection(self, trello_config):
        with create_connection(trello_config, transport=ScriptedTransport()) as connection:
            assert isinstance(connection, TrelloConnection)
            assert connection.config is trello_config

    def test_repr(self, trello_config):
        connection = create_connection(trello_config, transport=ScriptedTransport())
        assert repr(connection) == "TrelloConnection(base_url='https://api.trello.com/1/')"
        connection.close()


class TestJiraConnection:
    """Tests for JiraConnection."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("acme.atlassian.net", "https://acme.atlassian.net"),
            ("https://acme.atlassian.net/", "https://acme.atlassian.net"),
            ("http://jira.local:8080", "http://jira.local:8080"),
        ],
    )
    def test_normalize_site_url(self, raw, expected):
        assert normalize_site_url(raw) == expected

    def test_request_uses_basic_auth(self, jira_config):
        transport = ScriptedTransport(json_response(200, {"key": "PROJ-1"}))

        with JiraConnection(jira_config, transport=transport) as connection:
            issue = connection.request("GET", "rest/api/3/issue/PROJ-1")

        assert issue == {"key": "PROJ-1"}
        request = transport.requests[0]
        assert str(request.url) == "https://acme.atlassian.net/rest/api/3/issue/PROJ-1"
        expected = base64.b64encode(b"bot@acme.test:jira-api-token").decode("ascii")
        assert request.headers["Authorization"] == f"Basic {expected}"

    def test_seraph_failure_raises_authentication_error(self, jira_config):
        """A 200 carrying AUTHENTICATED_FAILED is an authentication failure."""
        transport = ScriptedTransport(
            json_response(200, {}, headers={"X-Seraph-LoginReason": "AUTHENTICATED_FAILED"})
        )

        with JiraConnection(jira_config, transport=transport) as connection:
            with pytest.raises(AuthenticationError, match="Jira authentication failed"):
                connection.request("GET", "rest/api/3/myself")

    def test_seraph_ok_passes(self, jira_config):
        transport = ScriptedTransport(
            json_response(200, {"accountId": "a"}, headers={"X-Seraph-LoginReason": "OK"})
        )

        with JiraConnection(jira_config, transport=transport) as connection:
            assert connection.request("GET", "rest/api/3/myself") == {"accountId": "a"}

    def test_webhook_normalizer(self, jira_config):
        with JiraConnection(jira_config, transport=ScriptedTransport()) as connection:
            assert isinstance(connection.webhook_normalizer(), JiraWebhookNormalizer)


class TestTrelloConnection:
    """Tests for TrelloConnection."""

    def test_credentials_in_query(self, trello_config):
        transport = ScriptedTransport(json_response(200, {"id": "card1"}))

        with TrelloConnection(trello_config, transport=transport) as connection:
            connection.request("GET", "cards/card1", query={"fields": "name"})

        url = transport.requests[0].url
        assert str(url).startswith("https://api.trello.com/1/cards/card1?")
        assert url.params["key"] == "trello-key"
        assert url.params["token"] == "trello-token"
        assert url.params["fields"] == "name"
        assert "Authorization" not in transport.requests[0].headers

    def test_invalid_id_is_not_found(self, trello_config):
        transport = ScriptedTransport(httpx.Response(400, text="invalid id"))

        with TrelloConnection(trello_config, transport=transport) as connection:
            with pytest.raises(NotFoundError, match="invalid id") as exc_info:
                connection.request("GET", "cards/nope")

        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_other_bad_requests_are_validation_errors(self, trello_config):
        transport = ScriptedTransport(httpx.Response(400, text="invalid value for name"))

        with TrelloConnection(trello_config, transport=transport) as connection:
            with pytest.raises(ValidationError):
                connection.request("PUT", "cards/card1", body={"name": ""})


class TestGitHubRepoConnection:
    """Tests for GitHubRepoConnection."""

    def test_headers_and_repo_path(self, github_repo_config):
        transport = ScriptedTransport(json_response(200, {"number": 1}))

        with GitHubRepoConnection(github_repo_config, transport=transport) as connection:
            connection.request("GET", f"{connection.repo_path}/issues/1")

        request = transport.requests[0]
        assert str(request.url) == "https://api.github.com/repos/octo/hello/issues/1"
        assert request.headers["Accept"] == "application/vnd.github.v3+json"
        assert request.headers["Authorization"] == "Bearer ghp_test"

    def test_each_page_follows_link_header(self, github_repo_config):
        next_url = "https://api.github.com/repos/octo/hello/issues?page=2"
        transport = ScriptedTransport(
            json_response(200, [{"number": 1}], headers={"Link": f'<{next_url}>; rel="next"'}),
            json_response(200, [{"number": 2}]),
        )

        with GitHubRepoConnection(github_repo_config, transport=transport) as connection:
            pages = list(connection.each_page("repos/octo/hello/issues"))

        assert pages == [[{"number": 1}], [{"number": 2}]]
        assert str(transport.requests[1].url) == next_url

    def test_last_response(self, github_repo_config):
        transport = ScriptedTransport(
            json_response(200, {}, headers={"X-RateLimit-Remaining": "42"})
        )

        with GitHubRepoConnection(github_repo_config, transport=transport) as connection:
            connection.request("GET", "rate_limit")
            assert connection.last_response.headers["X-RateLimit-Remaining"] == "42"

    def test_webhook_normalizer(self, github_repo_config):
        connection = GitHubRepoConnection(github_repo_config, transport=ScriptedTransport())
        assert isinstance(connection.webhook_normalizer(), GitHubRepoWebhookNormalizer)
        connection.close()


class TestGitHubProjectConnection:
    """Tests for GitHubProjectConnection."""

    def test_execute_posts_to_graphql_endpoint(self, github_project_config):
        transport = ScriptedTransport(json_response(200, {"data": {"viewer": {"login": "o"}}}))

        with GitHubProjectConnection(github_project_config, transport=transport) as connection:
            data = connection.execute("query { viewer { login } }")

        assert data == {"viewer": {"login": "o"}}
        request = transport.requests[0]
        assert str(request.url) == "https://api.github.com/graphql"
        assert request.headers["X-Github-Next-Global-ID"] == "1"

    def test_tracks_deprecated_ids(self, github_project_config):
        payload = {
            "data": {"node": {"id": "PVT_new"}},
            "extensions": {
                "warnings": [
                    {
                        "type": "DEPRECATION",
                        "data": {
                            "legacy_global_id": "MDc6UHJvamVjdDE=",
                            "next_global_id": "PVT_new",
                        },
                    }
                ]
            },
        }
        transport = ScriptedTransport(json_response(200, payload))

        with GitHubProjectConnection(github_project_config, transport=transport) as connection:
            connection.execute("query { node(id: \"MDc6UHJvamVjdDE=\") { id } }")
            assert connection.upgraded_id("MDc6UHJvamVjdDE=") == "PVT_new"

    def test_each_edge(self, github_project_config):
        def page(nodes, has_next, cursor):
            return {
                "data": {
                    "node": {
                        "items": {
                            "edges": [{"node": node} for node in nodes],
                            "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
                        }
                    }
                }
            }

        transport = ScriptedTransport(
            json_response(200, page(["a"], True, "c1")),
            json_response(200, page(["b"], False, None)),
        )

        with GitHubProjectConnection(github_project_config, transport=transport) as connection:
            nodes = list(connection.each_edge("query", ["node", "items"], {"id": "PVT_1"}))

        assert nodes == ["a", "b"]
        assert transport.body(1)["variables"] == {"id": "PVT_1", "after": "c1"}

    def test_graphql_errors_are_classified(self, github_project_config):
        transport = ScriptedTransport(
            json_response(
                200,
                {"data": {"node": None}, "errors": [{"message": "Could not resolve to a node"}]},
            )
        )

        with GitHubProjectConnection(github_project_config, transport=transport) as connection:
            with pytest.raises(NotFoundError):
                connection.execute("query { node(id: \"x\") { id } }")


class TestBasecampConnection:
    """Tests for BasecampConnection."""

    def test_base_url_includes_account(self):
        config = BackendConfig.from_mapping("basecamp", {"account_id": 999, "token": "bc"})
        transport = ScriptedTransport(json_response(200, []))

        with BasecampConnection(config, transport=transport) as connection:
            connection.request("GET", "buckets/1/todolists/2/todos.json")

        request = transport.requests[0]
        assert str(request.url) == "https://3.basecampapi.com/999/buckets/1/todolists/2/todos.json"
        assert request.headers["Authorization"] == "Bearer bc"


class TestFizzyConnection:
    """Tests for FizzyConnection."""

    def test_default_base_url(self):
        config = BackendConfig.from_mapping("fizzy", {"account_slug": "acme", "token": "fz"})

        with FizzyConnection(config, transport=ScriptedTransport()) as connection:
            assert connection.base_url == "https://app.fizzy.do/acme/"
            assert connection.webhook_normalizer() is None

    def test_self_hosted_base_url(self):
        config = BackendConfig.from_mapping(
            "fizzy",
            {"account_slug": "acme", "token": "fz", "base_url": "https://fizzy.example.test/"},
        )
        transport = ScriptedTransport(json_response(200, []))

        with FizzyConnection(config, transport=transport) as connection:
            connection.request("GET", "boards")

        assert str(transport.requests[0].url) == "https://fizzy.example.test/acme/boards"


class TestConnectionHelpers:
    """Tests for helpers handed out by a connection."""

    def test_status_mapper_uses_config(self, trello_options):
        config = BackendConfig.from_mapping(
            "trello", {**trello_options, "status_mappings": {"Shipped": "closed"}}
        )

        with TrelloConnection(config, transport=ScriptedTransport()) as connection:
            mapper = connection.status_mapper()
            assert mapper.normalize("Shipped") is CanonicalStatus.CLOSED
            assert connection.status_mapper() is mapper

    def test_webhook_verifier_uses_secret(self, trello_options):
        config = BackendConfig.from_mapping("trello", {**trello_options, "webhook_secret": "s"})

        with TrelloConnection(config, transport=ScriptedTransport()) as connection:
            assert connection.webhook_verifier().enabled is True

    def test_webhook_verifier_disabled_without_secret(self, trello_config):
        with TrelloConnection(trello_config, transport=ScriptedTransport()) as connection:
            assert connection.webhook_verifier().enabled is False

    def test_retry_policy_from_config(self, trello_options, no_sleep):
        config = BackendConfig.from_mapping(
            "trello", {**trello_options, "retry_options": {"max": 2, "interval": 0.1}}
        )
        transport = ScriptedTransport(json_response(503), json_response(503))

        with TrelloConnection(config, transport=transport) as connection:
            with pytest.raises(ApiError):
                connection.request("GET", "members/me")

        assert len(transport.requests) == 2
        no_sleep.assert_called_once_with(0.1)

    def test_user_agent_from_config(self, trello_options):
        config = BackendConfig.from_mapping("trello", {**trello_options, "user_agent": "sync/1"})
        transport = ScriptedTransport(json_response(200, {}))

        with TrelloConnection(config, transport=transport) as connection:
            connection.request("GET", "members/me")

        assert transport.requests[0].headers["User-Agent"] == "sync/1"
