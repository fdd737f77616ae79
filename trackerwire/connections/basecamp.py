"""Basecamp 4 connection preset."""

from __future__ import annotations

from trackerwire.config.backend_config import Platform
from trackerwire.connections.base import BackendConnection
from trackerwire.transport.auth import AuthStrategy, BearerAuth


class BasecampConnection(BackendConnection):
    """Connection to the Basecamp API for one account.

    Credential keys:
        - account_id: Basecamp account id (part of every URL)
        - access_token: OAuth access token
    """

    platform = Platform.BASECAMP

    BASE_URL_TEMPLATE = "https://3.basecampapi.com/{account_id}/"

    @property
    def platform_name(self) -> str:
        return "Basecamp"

    @property
    def base_url(self) -> str:
        return self.BASE_URL_TEMPLATE.format(account_id=self.config.options["account_id"])

    def auth(self) -> AuthStrategy:
        return BearerAuth(str(self.config.options["access_token"]))


__all__ = [
    "BasecampConnection",
]
