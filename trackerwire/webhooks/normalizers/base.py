"""Base class for platform-specific webhook normalizers."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

from trackerwire.webhooks.events import NormalizedWebhookEvent, WebhookUser

logger = logging.getLogger(__name__)

HeadersInput = Mapping[str, str] | httpx.Headers | None

_JIRA_STYLE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def as_mapping(value: Any) -> dict[str, Any]:
    """Return ``value`` when it is a JSON object, else an empty dict."""
    return value if isinstance(value, dict) else {}


def as_text(value: Any) -> str | None:
    """Return ``value`` when it is a string, else None."""
    return value if isinstance(value, str) else None


def id_string(value: Any) -> str | None:
    """Backend ids arrive as numbers or strings; events always carry strings."""
    if value is None or value == "":
        return None
    return str(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp as sent by webhook payloads.

    Accepts a trailing ``Z`` and Jira-style ``+0000`` offsets. Returns None
    for missing or unparseable values.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.strptime(value, _JIRA_STYLE_FORMAT)
    except ValueError:
        logger.debug(f"Ignoring unparseable webhook timestamp: {value!r}")
        return None


def parse_epoch_millis(value: Any) -> datetime | None:
    """Convert a millisecond epoch timestamp to an aware UTC datetime."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Ignoring out-of-range webhook timestamp: {value!r}")
        return None


class WebhookNormalizer(ABC):
    """Turns one backend's webhook payloads into NormalizedWebhookEvent.

    Subclasses implement ``_parse_payload`` as a dispatch on the backend's
    event discriminator. Malformed JSON, non-object payloads and
    unrecognized discriminators all produce None: a webhook that cannot be
    understood is "no event", never an exception.
    """

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Human-readable platform name."""
        pass

    @property
    @abstractmethod
    def source(self) -> str:
        """Platform identifier recorded on every event (Platform value)."""
        pass

    @abstractmethod
    def _parse_payload(
        self, payload: dict[str, Any], headers: httpx.Headers
    ) -> NormalizedWebhookEvent | None:
        """Normalize an already-decoded payload.

        Args:
            payload: Decoded JSON object
            headers: Case-insensitive request headers

        Returns:
            The event, or None when the payload is not a supported event
        """
        pass

    def parse(
        self, raw_body: str | bytes, headers: HeadersInput = None
    ) -> NormalizedWebhookEvent | None:
        """Parse a verified webhook request.

        Args:
            raw_body: Request body as received
            headers: Request headers; lookups are case-insensitive

        Returns:
            NormalizedWebhookEvent, or None for malformed or unsupported payloads
        """
        payload = self._load_payload(raw_body)
        if payload is None:
            return None
        try:
            event = self._parse_payload(payload, httpx.Headers(headers or {}))
        except (TypeError, ValueError, KeyError, AttributeError, OverflowError, OSError) as e:
            logger.debug(f"Ignoring {self.platform_name} webhook with unexpected shape: {e!r}")
            return None
        if event is None:
            logger.debug(f"{self.platform_name} webhook payload produced no event")
        return event

    def _load_payload(self, raw_body: str | bytes) -> dict[str, Any] | None:
        try:
            payload = json.loads(raw_body)
        except (ValueError, TypeError) as e:
            logger.debug(f"Ignoring {self.platform_name} webhook with invalid JSON: {e}")
            return None
        if not isinstance(payload, dict):
            logger.debug(
                f"Ignoring {self.platform_name} webhook: expected a JSON object, "
                f"got {type(payload).__name__}"
            )
            return None
        return payload

    def _user(
        self,
        data: Any,
        id_key: str = "id",
        name_key: str = "name",
        email_key: str | None = "email",
    ) -> WebhookUser | None:
        """Build a WebhookUser from a user object, or None without an id."""
        user = as_mapping(data)
        user_id = id_string(user.get(id_key))
        if user_id is None:
            return None
        return WebhookUser(
            id=user_id,
            name=user.get(name_key),
            email=user.get(email_key) if email_key else None,
            source=self.source,
            raw_data=user,
        )


__all__ = [
    "HeadersInput",
    "WebhookNormalizer",
    "as_mapping",
    "as_text",
    "id_string",
    "parse_epoch_millis",
    "parse_timestamp",
]
