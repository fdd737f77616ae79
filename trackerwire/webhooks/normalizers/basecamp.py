"""Basecamp webhook normalizer.

Basecamp names events with a ``kind`` such as ``todo_created`` or
``comment_content_changed`` and describes the affected object in
``recording``. Kinds are matched by suffix.
"""

from __future__ import annotations

from typing import Any

import httpx

from trackerwire.config.backend_config import Platform
from trackerwire.webhooks.events import EventType, NormalizedWebhookEvent, ResourceType
from trackerwire.webhooks.normalizers.base import (
    WebhookNormalizer,
    as_mapping,
    as_text,
    id_string,
    parse_timestamp,
)

# Checked in order, first matching suffix wins
KIND_SUFFIXES: tuple[tuple[str, EventType, ResourceType], ...] = (
    ("todo_created", EventType.ISSUE_CREATED, ResourceType.ISSUE),
    ("todo_completed", EventType.ISSUE_CLOSED, ResourceType.ISSUE),
    ("todo_assignment_changed", EventType.ISSUE_UPDATED, ResourceType.ISSUE),
    ("todo_completion_changed", EventType.ISSUE_UPDATED, ResourceType.ISSUE),
    ("todo_content_updated", EventType.ISSUE_UPDATED, ResourceType.ISSUE),
    ("todo_description_changed", EventType.ISSUE_UPDATED, ResourceType.ISSUE),
    ("todo_due_on_changed", EventType.ISSUE_UPDATED, ResourceType.ISSUE),
    ("comment_created", EventType.COMMENT_ADDED, ResourceType.COMMENT),
    ("comment_content_changed", EventType.COMMENT_UPDATED, ResourceType.COMMENT),
)


def classify_kind(kind: str) -> tuple[EventType, ResourceType] | None:
    for suffix, event_type, resource_type in KIND_SUFFIXES:
        if kind.endswith(suffix):
            return event_type, resource_type
    return None


class BasecampWebhookNormalizer(WebhookNormalizer):
    """Normalizer for Basecamp to-do and comment webhooks."""

    @property
    def platform_name(self) -> str:
        return "Basecamp"

    @property
    def source(self) -> str:
        return Platform.BASECAMP.value

    def _parse_payload(
        self, payload: dict[str, Any], headers: httpx.Headers
    ) -> NormalizedWebhookEvent | None:
        kind = as_text(payload.get("kind"))
        recording = as_mapping(payload.get("recording"))
        if not kind or not recording:
            return None
        classified = classify_kind(kind)
        if classified is None:
            return None
        event_type, resource_type = classified

        return NormalizedWebhookEvent(
            source=self.source,
            event_type=event_type,
            resource_type=resource_type,
            resource_id=id_string(recording.get("id")),
            project_id=id_string(as_mapping(recording.get("bucket")).get("id")),
            actor=self._user(payload.get("creator"), email_key="email_address"),
            timestamp=parse_timestamp(payload.get("created_at")),
            data={"recording": recording, "kind": kind},
            raw_data=payload,
        )


__all__ = [
    "KIND_SUFFIXES",
    "BasecampWebhookNormalizer",
    "classify_kind",
]
