"""Trello connection preset."""

from __future__ import annotations

from collections.abc import Mapping

from trackerwire.config.backend_config import Platform
from trackerwire.connections.base import BackendConnection
from trackerwire.transport.auth import AuthStrategy, QueryAuth
from trackerwire.transport.errors import reclassify_invalid_id
from trackerwire.utils.errors import TrackerWireError


class TrelloConnection(BackendConnection):
    """Connection to the Trello REST API.

    Credential keys:
        - api_key: Trello API key
        - api_token: Trello token

    Credentials travel as ``key``/``token`` query parameters. Trello
    reports a missing or malformed id as HTTP 400 "invalid id", which is
    raised as NotFoundError.
    """

    platform = Platform.TRELLO

    BASE_URL = "https://api.trello.com/1/"

    @property
    def platform_name(self) -> str:
        return "Trello"

    @property
    def base_url(self) -> str:
        return self.BASE_URL

    def auth(self) -> AuthStrategy:
        return QueryAuth(
            {
                "key": str(self.config.options["api_key"]),
                "token": str(self.config.options["api_token"]),
            }
        )

    def extra_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json"}

    def _reclassify(self, error: TrackerWireError) -> TrackerWireError:
        return reclassify_invalid_id(error)


__all__ = [
    "TrelloConnection",
]
