"""Jira Cloud connection preset."""

from __future__ import annotations

import re

from trackerwire.config.backend_config import Platform
from trackerwire.connections.base import BackendConnection
from trackerwire.transport.auth import AuthStrategy, BasicAuth
from trackerwire.transport.client import ApiResponse
from trackerwire.transport.exceptions import AuthenticationError

SERAPH_HEADER = "X-Seraph-LoginReason"
SERAPH_FAILURE = "AUTHENTICATED_FAILED"

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def normalize_site_url(raw_url: str) -> str:
    """Prefix ``https://`` when no scheme is given and drop trailing slashes."""
    url = raw_url.strip()
    if not _SCHEME.match(url):
        url = f"https://{url}"
    return url.rstrip("/")


class JiraConnection(BackendConnection):
    """Connection to a Jira Cloud site.

    Credential keys:
        - site_url: Jira site, with or without scheme
        - username: Atlassian account email
        - api_token: Atlassian API token

    Jira sometimes answers a rejected login with 200 and reports the
    failure only in the ``X-Seraph-LoginReason`` header; such responses
    raise AuthenticationError.
    """

    platform = Platform.JIRA

    @property
    def platform_name(self) -> str:
        return "Jira"

    @property
    def base_url(self) -> str:
        return normalize_site_url(str(self.config.options["site_url"]))

    def auth(self) -> AuthStrategy:
        options = self.config.options
        return BasicAuth(str(options["username"]), str(options["api_token"]))

    def _check_response(self, response: ApiResponse) -> None:
        if SERAPH_FAILURE in (response.headers.get(SERAPH_HEADER) or ""):
            raise AuthenticationError("Jira authentication failed")


__all__ = [
    "SERAPH_HEADER",
    "JiraConnection",
    "normalize_site_url",
]
