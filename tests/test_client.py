"""Tests for trackerwire.transport.client module.

Tests cover:
- Request construction (headers, auth, bodies, query parameters)
- Response parsing (JSON, no content, non-JSON bodies)
- Retry loop for retryable statuses and transport failures
- Error translation once retries are exhausted
"""

from __future__ import annotations

import httpx
import pytest

from tests.helpers.http import ScriptedTransport, json_response
from trackerwire import USER_AGENT
from trackerwire.transport.auth import NoAuth, QueryAuth
from trackerwire.transport.client import ApiResponse, HttpClient, encode_body
from trackerwire.transport.config import ConnectionConfig
from trackerwire.transport.exceptions import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from trackerwire.transport.retry import RetryPolicy


class TestEncodeBody:
    """Tests for encode_body."""

    def test_none_passes_through(self):
        assert encode_body(None) is None

    def test_string_passes_through(self):
        """Pre-serialized strings are sent verbatim."""
        assert encode_body('{"a": 1}') == '{"a": 1}'

    def test_bytes_pass_through(self):
        assert encode_body(b"raw") == b"raw"

    def test_dict_is_json_encoded(self):
        assert encode_body({"title": "Bug"}) == '{"title": "Bug"}'

    def test_list_is_json_encoded(self):
        assert encode_body([1, 2]) == "[1, 2]"


class TestRequestConstruction:
    """Tests for how requests are built."""

    def test_get_resolves_path_against_base_url(self, make_client):
        """Relative paths are joined to the base URL."""
        client, transport = make_client(json_response(200, {"id": 1}))

        client.request("GET", "issues/1")

        assert str(transport.requests[0].url) == "https://api.example.test/issues/1"
        assert transport.requests[0].method == "GET"

    def test_default_headers_are_sent(self, make_client):
        """JSON content negotiation and the trackerwire user agent are defaults."""
        client, transport = make_client(json_response(200, {}))

        client.request("GET", "issues")

        headers = transport.requests[0].headers
        assert headers["Content-Type"] == "application/json"
        assert headers["Accept"] == "application/json"
        assert headers["User-Agent"] == USER_AGENT

    def test_connection_headers_override_defaults(self, make_client):
        """ConnectionConfig.default_headers are merged over the defaults."""
        client, transport = make_client(
            json_response(200, {}),
            headers={"Accept": "application/vnd.github.v3+json"},
        )

        client.request("GET", "issues")

        assert transport.requests[0].headers["Accept"] == "application/vnd.github.v3+json"

    def test_per_call_headers_are_sent(self, make_client):
        client, transport = make_client(json_response(200, {}))

        client.request("GET", "issues", headers={"X-Trace": "abc"})

        assert transport.requests[0].headers["X-Trace"] == "abc"

    def test_bearer_auth_header(self, make_client):
        client, transport = make_client(json_response(200, {}))

        client.request("GET", "issues")

        assert transport.requests[0].headers["Authorization"] == "Bearer test-token"

    def test_dict_body_is_json_encoded(self, make_client):
        client, transport = make_client(json_response(201, {"id": 7}))

        client.request("POST", "issues", body={"title": "Bug"})

        assert transport.body() == {"title": "Bug"}
        assert transport.requests[0].method == "POST"

    def test_string_body_is_sent_verbatim(self, make_client):
        client, transport = make_client(json_response(200, {}))

        client.request("PUT", "issues/1", body='{"raw": true}')

        assert transport.requests[0].content == b'{"raw": true}'

    def test_query_parameters_are_appended(self, make_client):
        client, transport = make_client(json_response(200, []))

        client.request("GET", "issues", query={"state": "open", "page": 2})

        params = transport.requests[0].url.params
        assert params["state"] == "open"
        assert params["page"] == "2"

    def test_query_auth_merges_under_caller_params(self, make_client):
        """Caller query parameters win over auth parameters of the same name."""
        client, transport = make_client(
            json_response(200, {}),
            json_response(200, {}),
            auth=QueryAuth({"key": "k", "token": "t"}),
        )

        client.request("GET", "cards/1")
        client.request("GET", "cards/1", query={"token": "override"})

        first, second = transport.requests
        assert first.url.params["key"] == "k"
        assert first.url.params["token"] == "t"
        assert second.url.params["token"] == "override"
        assert "Authorization" not in first.headers

    def test_method_is_upper_cased(self, make_client):
        client, transport = make_client(json_response(200, {}))

        client.request("patch", "issues/1", body={})

        assert transport.requests[0].method == "PATCH"

    def test_user_agent_override(self):
        """An explicit user agent replaces the default one."""
        transport = ScriptedTransport(json_response(200, {}))
        with HttpClient(
            ConnectionConfig("https://api.example.test", auth=NoAuth()),
            transport=transport,
            user_agent="my-adapter/1.0",
        ) as client:
            client.send("GET", "ping")

        assert transport.requests[0].headers["User-Agent"] == "my-adapter/1.0"
        assert "Authorization" not in transport.requests[0].headers


class TestResponseParsing:
    """Tests for ApiResponse construction."""

    def test_send_returns_api_response(self, make_client):
        client, _ = make_client(json_response(200, {"id": 1}, headers={"X-Total": "10"}))

        response = client.send("GET", "issues/1")

        assert isinstance(response, ApiResponse)
        assert response.status_code == 200
        assert response.data == {"id": 1}
        assert response.no_content is False
        assert response.url == "https://api.example.test/issues/1"

    def test_headers_are_case_insensitive(self, make_client):
        client, _ = make_client(json_response(200, {}, headers={"X-Total": "10"}))

        response = client.send("GET", "issues")

        assert response.headers["x-total"] == "10"

    def test_request_returns_only_the_body(self, make_client):
        client, _ = make_client(json_response(200, [{"id": 1}, {"id": 2}]))

        assert client.request("GET", "issues") == [{"id": 1}, {"id": 2}]

    def test_204_is_no_content(self, make_client):
        client, _ = make_client(httpx.Response(204))

        response = client.send("DELETE", "issues/1")

        assert response.no_content is True
        assert response.data is None

    def test_empty_body_is_no_content(self, make_client):
        """A 200 with an empty body is treated like 204."""
        client, _ = make_client(httpx.Response(200, content=b""))

        assert client.request("POST", "issues/1/labels") is None

    def test_whitespace_body_is_no_content(self, make_client):
        client, _ = make_client(httpx.Response(200, content=b"  \n"))

        assert client.send("GET", "ping").no_content is True

    def test_non_json_body_raises_api_error(self, make_client):
        """A body that is not JSON raises ApiError chained to the decode error."""
        client, _ = make_client(httpx.Response(200, content=b"<html>oops</html>"))

        with pytest.raises(ApiError, match="Non-JSON response from issues") as exc_info:
            client.request("GET", "issues")

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.status_code == 200
        assert exc_info.value.response_body == "<html>oops</html>"

    def test_last_response_is_recorded(self, make_client):
        client, _ = make_client(json_response(200, {"id": 1}))
        assert client.last_response is None

        client.request("GET", "issues/1")

        assert client.last_response is not None
        assert client.last_response.status_code == 200


class TestRetries:
    """Tests for the retry loop."""

    def test_retries_retryable_status_then_succeeds(self, make_client, no_sleep):
        client, transport = make_client(
            json_response(503, {"message": "unavailable"}),
            json_response(200, {"ok": True}),
        )

        assert client.request("GET", "issues") == {"ok": True}
        assert len(transport.requests) == 2
        no_sleep.assert_called_once_with(0.5)

    def test_exhausted_retries_raise_translated_error(self, make_client, no_sleep):
        """After max_attempts failures the last status is translated."""
        client, transport = make_client(
            json_response(500, {"message": "boom"}),
            json_response(500, {"message": "boom"}),
            json_response(500, {"message": "boom"}),
        )

        with pytest.raises(ApiError) as exc_info:
            client.request("GET", "issues")

        assert exc_info.value.status_code == 500
        assert "boom" in str(exc_info.value)
        assert len(transport.requests) == 3
        assert [call.args[0] for call in no_sleep.call_args_list] == [0.5, 1.0]

    def test_backoff_follows_policy(self, make_client, no_sleep):
        client, _ = make_client(
            json_response(502),
            json_response(502),
            json_response(502),
            json_response(200, {}),
            retry=RetryPolicy(max_attempts=4, initial_interval=1.0, backoff_factor=3.0),
        )

        client.request("GET", "issues")

        assert [call.args[0] for call in no_sleep.call_args_list] == [1.0, 3.0, 9.0]

    def test_non_retryable_status_is_not_retried(self, make_client, no_sleep):
        client, transport = make_client(json_response(404, {"message": "Not Found"}))

        with pytest.raises(NotFoundError, match="Not Found"):
            client.request("GET", "issues/999")

        assert len(transport.requests) == 1
        no_sleep.assert_not_called()

    def test_rate_limit_carries_retry_after(self, make_client, no_sleep):
        client, _ = make_client(
            json_response(429, {"message": "slow down"}, headers={"Retry-After": "30"}),
            retry=RetryPolicy(max_attempts=1),
        )

        with pytest.raises(RateLimitError) as exc_info:
            client.request("GET", "issues")

        assert exc_info.value.retry_after == "30"
        assert exc_info.value.retry_after_seconds == 30.0

    def test_rate_limit_is_retried(self, make_client, no_sleep):
        """One 429 then success: one retry, delayed by backoff rather than Retry-After."""
        client, transport = make_client(
            json_response(429, {}, headers={"Retry-After": "30"}),
            json_response(200, {"ok": True}),
        )

        assert client.request("GET", "issues") == {"ok": True}
        assert len(transport.requests) == 2
        no_sleep.assert_called_once_with(0.5)

    def test_timeout_is_retried(self, make_client, no_sleep):
        client, transport = make_client(
            httpx.ReadTimeout("timed out"),
            json_response(200, {"ok": True}),
        )

        assert client.request("GET", "issues") == {"ok": True}
        assert len(transport.requests) == 2

    def test_exhausted_connection_failures_raise_api_error(self, make_client, no_sleep):
        """Transport failures become ApiError with the original exception attached."""
        refused = httpx.ConnectError("Connection refused")
        client, transport = make_client(refused, refused, refused)

        with pytest.raises(ApiError) as exc_info:
            client.request("GET", "issues")

        error = exc_info.value
        assert error.status_code is None
        assert error.original_error is refused
        assert "Connection refused" in str(error)
        assert len(transport.requests) == 3

    def test_unclassified_transport_error_is_not_retried(self, make_client, no_sleep):
        client, transport = make_client(httpx.RemoteProtocolError("malformed response"))

        with pytest.raises(ApiError, match="malformed response"):
            client.request("GET", "issues")

        assert len(transport.requests) == 1
        no_sleep.assert_not_called()

    def test_retry_methods_restricts_retries(self, make_client, no_sleep):
        """Verbs outside retry_methods fail on the first retryable status."""
        client, transport = make_client(
            json_response(503, {"message": "unavailable"}),
            retry=RetryPolicy(retry_methods={"GET"}),
        )

        with pytest.raises(ApiError):
            client.request("POST", "issues", body={"title": "Bug"})

        assert len(transport.requests) == 1
        no_sleep.assert_not_called()

    def test_post_is_retried_by_default(self, make_client, no_sleep):
        client, transport = make_client(
            json_response(503),
            json_response(201, {"id": 1}),
        )

        assert client.request("POST", "issues", body={"title": "Bug"}) == {"id": 1}
        assert len(transport.requests) == 2
        assert transport.body(0) == transport.body(1)

    def test_last_response_is_kept_on_failure(self, make_client, no_sleep):
        client, _ = make_client(json_response(422, {"message": "Validation Failed"}))

        with pytest.raises(ValidationError):
            client.request("POST", "issues", body={})

        assert client.last_response.status_code == 422


class TestErrorTranslation:
    """Status codes surface as taxonomy errors through the client."""

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_authentication_statuses(self, make_client, status_code):
        client, _ = make_client(json_response(status_code, {"message": "Bad credentials"}))

        with pytest.raises(AuthenticationError, match="Bad credentials"):
            client.request("GET", "user")

    @pytest.mark.parametrize("status_code", [400, 422])
    def test_validation_statuses(self, make_client, status_code):
        client, _ = make_client(json_response(status_code, {"message": "Invalid field"}))

        with pytest.raises(ValidationError) as exc_info:
            client.request("POST", "issues", body={})

        assert exc_info.value.status_code == status_code


class TestLifecycle:
    """Tests for closing the client."""

    def test_context_manager_closes_client(self):
        transport = httpx.MockTransport(lambda request: json_response(200, {}))
        config = ConnectionConfig("https://api.example.test")
        with HttpClient(config, transport=transport) as client:
            client.request("GET", "ping")

        with pytest.raises(RuntimeError):
            client.request("GET", "ping")
