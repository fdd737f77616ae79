"""Normalized webhook event model.

Every backend's inbound webhook is reduced to one NormalizedWebhookEvent:
what happened (event_type), to what (resource_type and resource_id), where
(project_id), by whom (actor) and which fields changed (changes). The raw
payload is kept in raw_data for debugging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """Normalized webhook event kinds."""

    ISSUE_CREATED = "issue_created"
    ISSUE_UPDATED = "issue_updated"
    ISSUE_CLOSED = "issue_closed"
    ISSUE_REOPENED = "issue_reopened"
    ISSUE_MERGED = "issue_merged"
    ISSUE_ASSIGNED = "issue_assigned"
    ISSUE_LABELED = "issue_labeled"
    ISSUE_DELETED = "issue_deleted"
    COMMENT_ADDED = "comment_added"
    COMMENT_UPDATED = "comment_updated"
    COMMENT_DELETED = "comment_deleted"
    PROJECT_CREATED = "project_created"
    PROJECT_UPDATED = "project_updated"
    PROJECT_DELETED = "project_deleted"


class ResourceType(str, Enum):
    """Kind of resource a webhook event is about."""

    ISSUE = "issue"
    COMMENT = "comment"
    PROJECT = "project"


@dataclass(frozen=True)
class WebhookUser:
    """Actor that triggered a webhook event.

    Attributes:
        id: Backend user id, always a string
        name: Display name or login
        email: Email address when the backend includes it
        source: Platform the user belongs to
        raw_data: User object as sent by the backend
    """

    id: str
    name: str | None = None
    email: str | None = None
    source: str = ""
    raw_data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


ChangeSet = dict[str, tuple[Any, Any]]


@dataclass(frozen=True)
class NormalizedWebhookEvent:
    """One inbound webhook delivery, normalized across backends.

    Attributes:
        source: Platform the webhook came from (e.g. "jira", "github_repo")
        event_type: What happened
        resource_type: Kind of resource affected
        resource_id: Id of the affected resource, as a string
        project_id: Project, repository or board the resource belongs to
        actor: User that triggered the event, when known
        timestamp: When the event occurred, when the payload says
        changes: ``field -> (old, new)`` pairs, or None when nothing is reported
        object_key: Human-facing key (Jira issue key, issue number, card short id)
        data: Backend sub-objects relevant to the event (issue, comment, card)
        raw_data: The complete decoded payload

    Fields cannot be reassigned, but ``changes``, ``data`` and ``raw_data``
    are plain dicts, so events compare by value and are not hashable.
    """

    __hash__ = None  # type: ignore[assignment]

    source: str
    event_type: EventType
    resource_type: ResourceType
    resource_id: str | None
    project_id: str | None = None
    actor: WebhookUser | None = None
    timestamp: datetime | None = None
    changes: ChangeSet | None = None
    object_key: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    raw_data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        # An empty change set carries no information
        if not self.changes:
            object.__setattr__(self, "changes", None)

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        """JSON-safe representation, without raw_data unless requested."""
        result: dict[str, Any] = {
            "source": self.source,
            "event_type": self.event_type.value,
            "resource_type": self.resource_type.value,
            "resource_id": self.resource_id,
            "project_id": self.project_id,
            "actor": _user_to_dict(self.actor),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "changes": (
                {name: list(values) for name, values in self.changes.items()}
                if self.changes
                else None
            ),
            "object_key": self.object_key,
            "data": self.data,
        }
        if include_raw:
            result["raw_data"] = self.raw_data
        return result


def _user_to_dict(user: WebhookUser | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email, "source": user.source}


__all__ = [
    "ChangeSet",
    "EventType",
    "NormalizedWebhookEvent",
    "ResourceType",
    "WebhookUser",
]
