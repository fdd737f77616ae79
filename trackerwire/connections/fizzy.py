"""Fizzy connection preset."""

from __future__ import annotations

from trackerwire.config.backend_config import Platform
from trackerwire.connections.base import BackendConnection
from trackerwire.transport.auth import AuthStrategy, BearerAuth

DEFAULT_BASE_URL = "https://app.fizzy.do"


class FizzyConnection(BackendConnection):
    """Connection to a Fizzy account.

    Credential keys:
        - account_slug: Account slug, the first path segment of every URL
        - access_token: Personal access token

    Optional ``base_url`` points at a self-hosted instance.
    """

    platform = Platform.FIZZY

    @property
    def platform_name(self) -> str:
        return "Fizzy"

    @property
    def base_url(self) -> str:
        root = str(self.config.option("base_url") or DEFAULT_BASE_URL).rstrip("/")
        return f"{root}/{self.config.options['account_slug']}/"

    def auth(self) -> AuthStrategy:
        return BearerAuth(str(self.config.options["access_token"]))


__all__ = [
    "DEFAULT_BASE_URL",
    "FizzyConnection",
]
