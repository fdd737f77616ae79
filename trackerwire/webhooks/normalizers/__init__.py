"""Platform-specific webhook normalizers and their registry."""

from __future__ import annotations

from trackerwire.config.backend_config import Platform
from trackerwire.webhooks.normalizers.base import WebhookNormalizer
from trackerwire.webhooks.normalizers.basecamp import BasecampWebhookNormalizer
from trackerwire.webhooks.normalizers.github import (
    GitHubProjectWebhookNormalizer,
    GitHubRepoWebhookNormalizer,
)
from trackerwire.webhooks.normalizers.jira import JiraWebhookNormalizer
from trackerwire.webhooks.normalizers.trello import TrelloWebhookNormalizer

# =============================================================================
# Normalizer Registry
# =============================================================================
# Maps Platform enums to normalizer classes. Platforms without inbound
# webhooks (Fizzy) have no entry.
# =============================================================================


def _build_normalizer_registry() -> dict[Platform, type[WebhookNormalizer]]:
    return {
        Platform.JIRA: JiraWebhookNormalizer,
        Platform.TRELLO: TrelloWebhookNormalizer,
        Platform.GITHUB_REPO: GitHubRepoWebhookNormalizer,
        Platform.GITHUB_PROJECT: GitHubProjectWebhookNormalizer,
        Platform.BASECAMP: BasecampWebhookNormalizer,
    }


# Cached registry instance (built on first access)
_normalizer_registry: dict[Platform, type[WebhookNormalizer]] | None = None


def get_normalizer_registry() -> dict[Platform, type[WebhookNormalizer]]:
    """Get the normalizer registry, building it if necessary.

    Returns:
        Mapping of Platform enum values to their normalizer classes
    """
    global _normalizer_registry
    if _normalizer_registry is None:
        _normalizer_registry = _build_normalizer_registry()
    return _normalizer_registry


def create_normalizer(platform: Platform) -> WebhookNormalizer | None:
    """Create a normalizer instance for the given platform.

    Args:
        platform: Platform enum value

    Returns:
        Normalizer instance, or None if the platform has no webhooks
    """
    normalizer_class = get_normalizer_registry().get(platform)
    if normalizer_class is None:
        return None
    return normalizer_class()


__all__ = [
    # Base class
    "WebhookNormalizer",
    # Normalizer classes
    "BasecampWebhookNormalizer",
    "GitHubProjectWebhookNormalizer",
    "GitHubRepoWebhookNormalizer",
    "JiraWebhookNormalizer",
    "TrelloWebhookNormalizer",
    # Registry functions
    "create_normalizer",
    "get_normalizer_registry",
]
