"""Jira Cloud webhook normalizer.

Jira names the event in the payload's ``webhookEvent`` field and sends the
event time as milliseconds since the epoch. Field changes on
``jira:issue_updated`` arrive as ``changelog.items``.
"""

from __future__ import annotations

from typing import Any

import httpx

from trackerwire.config.backend_config import Platform
from trackerwire.webhooks.events import (
    ChangeSet,
    EventType,
    NormalizedWebhookEvent,
    ResourceType,
)
from trackerwire.webhooks.normalizers.base import (
    WebhookNormalizer,
    as_mapping,
    as_text,
    id_string,
    parse_epoch_millis,
)

JIRA_EVENTS: dict[str, tuple[EventType, ResourceType]] = {
    "jira:issue_created": (EventType.ISSUE_CREATED, ResourceType.ISSUE),
    "jira:issue_updated": (EventType.ISSUE_UPDATED, ResourceType.ISSUE),
    "jira:issue_deleted": (EventType.ISSUE_DELETED, ResourceType.ISSUE),
    "comment_created": (EventType.COMMENT_ADDED, ResourceType.COMMENT),
    "comment_updated": (EventType.COMMENT_UPDATED, ResourceType.COMMENT),
    "comment_deleted": (EventType.COMMENT_DELETED, ResourceType.COMMENT),
}


def parse_changelog(changelog: Any) -> ChangeSet | None:
    """Convert ``changelog.items`` into ``field -> (old, new)``.

    The display strings (``fromString``/``toString``) are preferred over the
    raw ids (``from``/``to``).
    """
    items = as_mapping(changelog).get("items")
    if not isinstance(items, list):
        return None
    changes: ChangeSet = {}
    for item in items:
        item = as_mapping(item)
        name = item.get("field") or item.get("fieldId")
        if not name:
            continue
        old = item.get("fromString") if item.get("fromString") is not None else item.get("from")
        new = item.get("toString") if item.get("toString") is not None else item.get("to")
        changes[str(name)] = (old, new)
    return changes or None


class JiraWebhookNormalizer(WebhookNormalizer):
    """Normalizer for Jira issue and comment webhooks."""

    @property
    def platform_name(self) -> str:
        return "Jira"

    @property
    def source(self) -> str:
        return Platform.JIRA.value

    def _parse_payload(
        self, payload: dict[str, Any], headers: httpx.Headers
    ) -> NormalizedWebhookEvent | None:
        event_name = as_text(payload.get("webhookEvent"))
        mapped = JIRA_EVENTS.get(event_name) if event_name else None
        if mapped is None:
            return None
        event_type, resource_type = mapped

        issue = as_mapping(payload.get("issue"))
        comment = as_mapping(payload.get("comment"))
        if resource_type is ResourceType.COMMENT:
            if not comment:
                return None
            resource_id = id_string(comment.get("id"))
            object_key = id_string(issue.get("key"))
            actor_data = comment.get("author")
        else:
            if not issue:
                return None
            resource_id = id_string(issue.get("id"))
            object_key = id_string(issue.get("key"))
            actor_data = payload.get("user")

        project = as_mapping(as_mapping(issue.get("fields")).get("project"))
        changes = (
            parse_changelog(payload.get("changelog"))
            if event_type is EventType.ISSUE_UPDATED
            else None
        )

        data: dict[str, Any] = {"issue": issue or None}
        if comment:
            data["comment"] = comment

        return NormalizedWebhookEvent(
            source=self.source,
            event_type=event_type,
            resource_type=resource_type,
            resource_id=resource_id,
            project_id=id_string(project.get("id")),
            actor=self._user(
                actor_data, id_key="accountId", name_key="displayName", email_key="emailAddress"
            ),
            timestamp=parse_epoch_millis(payload.get("timestamp")),
            changes=changes,
            object_key=object_key,
            data=data,
            raw_data=payload,
        )


__all__ = [
    "JIRA_EVENTS",
    "JiraWebhookNormalizer",
    "parse_changelog",
]
