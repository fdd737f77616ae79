"""Webhook ingestion: signature verification and event normalization.

Inbound requests flow through WebhookVerifier first, then through the
platform's WebhookNormalizer:

    verifier = WebhookVerifier(secret)
    if verifier.verify(body, headers.get(SIGNATURE_HEADER)):
        event = create_normalizer(Platform.GITHUB_REPO).parse(body, headers)
"""

from trackerwire.webhooks.events import (
    EventType,
    NormalizedWebhookEvent,
    ResourceType,
    WebhookUser,
)
from trackerwire.webhooks.normalizers import (
    WebhookNormalizer,
    create_normalizer,
    get_normalizer_registry,
)
from trackerwire.webhooks.verifier import (
    SIGNATURE_HEADER,
    WebhookVerifier,
    compute_signature,
    secure_compare,
)

__all__ = [
    "EventType",
    "NormalizedWebhookEvent",
    "ResourceType",
    "SIGNATURE_HEADER",
    "WebhookNormalizer",
    "WebhookUser",
    "WebhookVerifier",
    "compute_signature",
    "create_normalizer",
    "get_normalizer_registry",
    "secure_compare",
]
