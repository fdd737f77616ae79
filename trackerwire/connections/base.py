"""Base class for backend connection presets.

A connection turns a validated BackendConfig into a ready-to-use
HttpClient: it picks the base URL, the authentication strategy and any
backend-specific headers, and layers backend-specific error overrides on
top of the generic translation. It also hands out the status mapper,
webhook verifier and webhook normalizer configured for the backend.

One connection serves one adapter. It is not safe to share between
threads (see HttpClient).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from typing import Any, ClassVar

import httpx

from trackerwire.config.backend_config import (
    PLATFORM_REQUIRED_CREDENTIALS,
    BackendConfig,
    Platform,
)
from trackerwire.status.mapper import StatusMapper
from trackerwire.transport.auth import AuthStrategy
from trackerwire.transport.client import ApiResponse, HttpClient
from trackerwire.transport.config import ConnectionConfig
from trackerwire.transport.exceptions import CredentialValidationError
from trackerwire.transport.pagination import LinkPaginator
from trackerwire.utils.errors import ConfigValidationError, TrackerWireError
from trackerwire.webhooks.normalizers import WebhookNormalizer, create_normalizer
from trackerwire.webhooks.verifier import WebhookVerifier

logger = logging.getLogger(__name__)


class BackendConnection(ABC):
    """Connection preset for one backend.

    Subclasses set ``platform`` and implement ``platform_name``,
    ``base_url`` and ``auth``. They may override ``extra_headers``,
    ``_reclassify`` (error overrides) and ``_check_response`` (checks on
    successful responses).
    """

    platform: ClassVar[Platform]

    def __init__(
        self,
        config: BackendConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the connection.

        Args:
            config: Validated backend configuration for ``platform``
            transport: httpx transport override, e.g. ``httpx.MockTransport``

        Raises:
            ConfigValidationError: If ``config`` is for another platform
            CredentialValidationError: If required credentials are missing
        """
        if config.platform is not self.platform:
            raise ConfigValidationError(
                f"{type(self).__name__} requires a '{self.platform.value}' configuration, "
                f"got '{config.platform.value}'"
            )
        self._config = config
        self._validate_credentials(config.options)
        self._http = HttpClient(
            ConnectionConfig(
                base_url=self.base_url,
                auth=self.auth(),
                default_headers=self.extra_headers(),
                retry=config.retry,
                timeout=config.timeout,
            ),
            transport=transport,
            user_agent=config.user_agent,
        )
        self._status_mapper: StatusMapper | None = None
        logger.debug(f"Created {self.platform_name} connection to {self.base_url}")

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Human-readable platform name."""
        pass

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Root URL that request paths are resolved against."""
        pass

    @abstractmethod
    def auth(self) -> AuthStrategy:
        """Authentication strategy for every request."""
        pass

    def extra_headers(self) -> Mapping[str, str]:
        """Backend-specific headers merged over the client defaults."""
        return {}

    @property
    def required_credential_keys(self) -> frozenset[str]:
        return PLATFORM_REQUIRED_CREDENTIALS[self.platform]

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def http_client(self) -> HttpClient:
        return self._http

    @property
    def last_response(self) -> httpx.Response | None:
        return self._http.last_response

    def _validate_credentials(self, options: Mapping[str, Any]) -> None:
        """Validate that all required credential keys are present and non-empty.

        Raises:
            CredentialValidationError: If any required keys are missing
        """
        missing = {
            key
            for key in self.required_credential_keys
            if options.get(key) is None or str(options.get(key)).strip() == ""
        }
        if missing:
            raise CredentialValidationError(
                platform_name=self.platform_name,
                missing_keys=missing,
            )

    def _reclassify(self, error: TrackerWireError) -> TrackerWireError:
        """Backend-specific override of a translated error. Identity by default."""
        return error

    def _check_response(self, response: ApiResponse) -> None:
        """Inspect a successful response; raise to turn it into a failure."""
        return None

    def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        """Execute a request through the HttpClient with backend overrides applied."""
        try:
            response = self._http.send(method, path, body=body, query=query, headers=headers)
        except TrackerWireError as e:
            override = self._reclassify(e)
            if override is e:
                raise
            logger.debug(
                f"{self.platform_name} reclassified {type(e).__name__} "
                f"as {type(override).__name__}"
            )
            raise override from e
        self._check_response(response)
        return response

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

    def each_page(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Iterator[Any]:
        """Yield every page of a Link-header paginated collection."""
        return LinkPaginator(self).each_page(
            path, method=method, body=body, query=query, headers=headers
        )

    def status_mapper(self) -> StatusMapper:
        """StatusMapper built from the configured status mappings."""
        if self._status_mapper is None:
            self._status_mapper = StatusMapper.from_config(self._config)
        return self._status_mapper

    def webhook_verifier(self) -> WebhookVerifier:
        """WebhookVerifier for the configured secret (disabled without one)."""
        return WebhookVerifier(self._config.webhook_secret)

    def webhook_normalizer(self) -> WebhookNormalizer | None:
        """Webhook normalizer for this backend, or None if it has no webhooks."""
        return create_normalizer(self.platform)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> BackendConnection:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r})"


__all__ = [
    "BackendConnection",
]
