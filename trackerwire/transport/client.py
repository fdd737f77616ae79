"""Blocking HTTP client shared by every backend connection.

HttpClient issues one request at a time: it applies default headers and
authentication, retries transient failures with exponential backoff,
decodes JSON bodies and translates failures into the error taxonomy.

Concurrency:
    One HttpClient belongs to one connection. It is not safe to share an
    instance between threads: ``last_response`` is overwritten by every
    call. Callers that need parallel requests should build one client per
    thread. Retries block the calling thread; there is no cancellation
    hook beyond the per-attempt timeout in ConnectionConfig.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from trackerwire import USER_AGENT
from trackerwire.transport.config import ConnectionConfig
from trackerwire.transport.errors import translate_error
from trackerwire.transport.exceptions import ApiError
from trackerwire.transport.retry import classify_transport_error

logger = logging.getLogger(__name__)

HTTP_NO_CONTENT = 204

DEFAULT_HEADERS: Mapping[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class ApiResponse:
    """Parsed result of one successful request.

    Headers are returned alongside the body so pagination and
    backend-specific checks never need to read shared connection state.

    Attributes:
        status_code: HTTP status of the final attempt
        headers: Case-insensitive response headers
        data: Decoded JSON body, or None when there was no content
        no_content: True for 204 responses and empty bodies
        url: Final request URL
    """

    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    data: Any = None
    no_content: bool = False
    url: str = ""


def encode_body(body: Any) -> bytes | str | None:
    """Serialize a request body: strings and bytes pass through, anything else is JSON."""
    if body is None or isinstance(body, (str, bytes)):
        return body
    return json.dumps(body)


class HttpClient:
    """Request executor for one configured backend.

    Example:
        >>> config = ConnectionConfig("https://api.github.com", auth=BearerAuth(token))
        >>> with HttpClient(config) as client:
        ...     issue = client.request("GET", "repos/octo/hello/issues/1")
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        transport: httpx.BaseTransport | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Immutable connection settings
            transport: httpx transport to send requests through. Defaults to
                httpx's standard blocking transport; tests pass an
                ``httpx.MockTransport``.
            user_agent: Overrides the default ``trackerwire/<version>`` agent
        """
        self._config = config
        headers = {**DEFAULT_HEADERS, "User-Agent": user_agent or USER_AGENT}
        headers.update(config.default_headers)
        self._client = httpx.Client(
            base_url=config.base_url,
            headers=headers,
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
            follow_redirects=True,
        )
        self._last_response: httpx.Response | None = None

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def last_response(self) -> httpx.Response | None:
        """Most recent raw response received by this client, including failures."""
        return self._last_response

    def close(self) -> None:
        """Close the underlying httpx client and release connections."""
        self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Execute a request and return only the decoded body (None for no content)."""
        return self.send(method, path, body=body, query=query, headers=headers).data

    def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        """Execute a request with retries.

        Args:
            method: HTTP verb
            path: Path relative to the base URL, or an absolute URL
            body: Pre-serialized string/bytes, or a structure to JSON-encode
            query: Query parameters appended to the URL
            headers: Extra headers for this request only

        Returns:
            ApiResponse with the decoded body and the response headers

        Raises:
            AuthenticationError, NotFoundError, RateLimitError,
            ValidationError, ApiError: once retries are exhausted or the
                failure is not retryable
        """
        method = method.upper()
        content = encode_body(body)
        request_headers: dict[str, str] = dict(headers or {})
        params: dict[str, Any] = dict(query or {})
        self._config.auth.apply(request_headers, params)

        policy = self._config.retry
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self._client.request(
                    method,
                    path,
                    content=content,
                    params=params or None,
                    headers=request_headers,
                )
            except httpx.HTTPError as e:
                kind = classify_transport_error(e)
                if attempt < policy.max_attempts and policy.should_retry_failure(method, kind):
                    self._wait_before_retry(method, path, attempt, f"{kind.value if kind else e}")
                    continue
                logger.debug(f"{method} {path} failed without response: {e}")
                raise translate_error(None, None, original_error=e) from e

            self._last_response = response
            if response.is_success:
                return self._parse(response, path)

            if attempt < policy.max_attempts and policy.should_retry_status(
                method, response.status_code
            ):
                self._wait_before_retry(method, path, attempt, f"HTTP {response.status_code}")
                continue

            logger.debug(f"{method} {path} failed with HTTP {response.status_code}")
            raise translate_error(response.status_code, response.text, response.headers)

    def _wait_before_retry(self, method: str, path: str, attempt: int, cause: str) -> None:
        delay = self._config.retry.delay_for(attempt)
        logger.warning(
            f"{method} {path} attempt {attempt}/{self._config.retry.max_attempts} "
            f"failed ({cause}), retrying in {delay:.2f}s"
        )
        time.sleep(delay)

    def _parse(self, response: httpx.Response, path: str) -> ApiResponse:
        if response.status_code == HTTP_NO_CONTENT or not response.content.strip():
            return ApiResponse(
                status_code=response.status_code,
                headers=response.headers,
                no_content=True,
                url=str(response.url),
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(
                f"Non-JSON response from {path}",
                original_error=e,
                status_code=response.status_code,
                response_body=response.text,
            ) from e
        return ApiResponse(
            status_code=response.status_code,
            headers=response.headers,
            data=data,
            url=str(response.url),
        )


__all__ = [
    "DEFAULT_HEADERS",
    "ApiResponse",
    "HttpClient",
    "encode_body",
]
