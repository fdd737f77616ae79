"""GitHub webhook normalizers.

GitHub names the event in the ``X-GitHub-Event`` header and the action in
the payload's ``action`` field. Repository webhooks (issues, comments,
pull requests) and Projects V2 webhooks (project items, projects) are
handled by separate normalizers because they belong to different
connections.
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
    parse_timestamp,
)

EVENT_HEADER = "X-GitHub-Event"

ISSUE_ACTIONS: dict[str, EventType] = {
    "opened": EventType.ISSUE_CREATED,
    "edited": EventType.ISSUE_UPDATED,
    "closed": EventType.ISSUE_CLOSED,
    "reopened": EventType.ISSUE_REOPENED,
    "assigned": EventType.ISSUE_ASSIGNED,
    "unassigned": EventType.ISSUE_ASSIGNED,
    "labeled": EventType.ISSUE_LABELED,
    "unlabeled": EventType.ISSUE_LABELED,
}

COMMENT_ACTIONS: dict[str, EventType] = {
    "created": EventType.COMMENT_ADDED,
    "edited": EventType.COMMENT_UPDATED,
    "deleted": EventType.COMMENT_DELETED,
}

PROJECT_ITEM_ACTIONS: dict[str, EventType] = {
    "created": EventType.ISSUE_CREATED,
    "edited": EventType.ISSUE_UPDATED,
    "deleted": EventType.ISSUE_DELETED,
    "archived": EventType.ISSUE_UPDATED,
    "restored": EventType.ISSUE_UPDATED,
}

PROJECT_ACTIONS: dict[str, EventType] = {
    "created": EventType.PROJECT_CREATED,
    "edited": EventType.PROJECT_UPDATED,
    "deleted": EventType.PROJECT_DELETED,
}


def edited_fields(changes: Any, current: dict[str, Any]) -> ChangeSet:
    """Convert GitHub's ``changes.<field>.from`` into ``field -> (old, new)``.

    GitHub only reports the previous value; the new one is read from the
    current object.
    """
    result: ChangeSet = {}
    for name, change in as_mapping(changes).items():
        change = as_mapping(change)
        if "from" in change:
            result[name] = (change["from"], current.get(name))
    return result


def from_to_fields(changes: Any) -> ChangeSet:
    """Convert Projects V2 ``changes.<field>.{from,to}`` into ``field -> (old, new)``."""
    result: ChangeSet = {}
    for name, change in as_mapping(changes).items():
        change = as_mapping(change)
        result[name] = (change.get("from"), change.get("to"))
    return result


class GitHubRepoWebhookNormalizer(WebhookNormalizer):
    """Normalizer for repository webhooks: issues, issue_comment, pull_request."""

    @property
    def platform_name(self) -> str:
        return "GitHub"

    @property
    def source(self) -> str:
        return Platform.GITHUB_REPO.value

    def _parse_payload(
        self, payload: dict[str, Any], headers: httpx.Headers
    ) -> NormalizedWebhookEvent | None:
        event = headers.get(EVENT_HEADER)
        if event == "issues":
            return self._issue_event(payload)
        if event == "issue_comment":
            return self._comment_event(payload)
        if event == "pull_request":
            return self._pull_request_event(payload)
        return None

    def _repository(self, payload: dict[str, Any]) -> str | None:
        return as_mapping(payload.get("repository")).get("full_name")

    def _issue_event(self, payload: dict[str, Any]) -> NormalizedWebhookEvent | None:
        issue = as_mapping(payload.get("issue"))
        if not issue:
            return None
        action = as_text(payload.get("action"))
        number = id_string(issue.get("number"))
        return NormalizedWebhookEvent(
            source=self.source,
            event_type=ISSUE_ACTIONS.get(action, EventType.ISSUE_UPDATED),
            resource_type=ResourceType.ISSUE,
            resource_id=number,
            project_id=self._repository(payload),
            actor=self._user(payload.get("sender"), name_key="login"),
            timestamp=parse_timestamp(issue.get("updated_at")),
            changes=edited_fields(payload.get("changes"), issue),
            object_key=number,
            data={"issue": issue, "action": action},
            raw_data=payload,
        )

    def _comment_event(self, payload: dict[str, Any]) -> NormalizedWebhookEvent | None:
        comment = as_mapping(payload.get("comment"))
        issue = as_mapping(payload.get("issue"))
        action = as_text(payload.get("action"))
        event_type = COMMENT_ACTIONS.get(action)
        if not comment or not issue or event_type is None:
            return None
        return NormalizedWebhookEvent(
            source=self.source,
            event_type=event_type,
            resource_type=ResourceType.COMMENT,
            resource_id=id_string(comment.get("id")),
            project_id=self._repository(payload),
            actor=self._user(payload.get("sender"), name_key="login"),
            timestamp=parse_timestamp(comment.get("updated_at")),
            changes=edited_fields(payload.get("changes"), comment),
            object_key=id_string(issue.get("number")),
            data={"comment": comment, "issue": issue, "action": action},
            raw_data=payload,
        )

    def _pull_request_event(self, payload: dict[str, Any]) -> NormalizedWebhookEvent | None:
        pull_request = as_mapping(payload.get("pull_request"))
        if not pull_request:
            return None
        action = as_text(payload.get("action"))
        if action == "closed" and pull_request.get("merged"):
            event_type = EventType.ISSUE_MERGED
        else:
            event_type = ISSUE_ACTIONS.get(action, EventType.ISSUE_UPDATED)
        number = id_string(pull_request.get("number"))
        project_id = self._repository(payload) or as_mapping(
            as_mapping(pull_request.get("base")).get("repo")
        ).get("full_name")
        return NormalizedWebhookEvent(
            source=self.source,
            event_type=event_type,
            resource_type=ResourceType.ISSUE,
            resource_id=number,
            project_id=project_id,
            actor=self._user(payload.get("sender"), name_key="login"),
            timestamp=parse_timestamp(pull_request.get("updated_at")),
            changes=edited_fields(payload.get("changes"), pull_request),
            object_key=number,
            data={"issue": pull_request, "action": action, "is_pull_request": True},
            raw_data=payload,
        )


class GitHubProjectWebhookNormalizer(WebhookNormalizer):
    """Normalizer for Projects V2 webhooks: projects_v2_item and projects_v2.

    Project items are reported as issues; ids are GraphQL node ids.
    """

    @property
    def platform_name(self) -> str:
        return "GitHub Projects"

    @property
    def source(self) -> str:
        return Platform.GITHUB_PROJECT.value

    def _parse_payload(
        self, payload: dict[str, Any], headers: httpx.Headers
    ) -> NormalizedWebhookEvent | None:
        event = headers.get(EVENT_HEADER)
        if event == "projects_v2_item":
            return self._item_event(payload)
        if event == "projects_v2":
            return self._project_event(payload)
        return None

    def _item_event(self, payload: dict[str, Any]) -> NormalizedWebhookEvent | None:
        item = as_mapping(payload.get("projects_v2_item"))
        event_type = PROJECT_ITEM_ACTIONS.get(as_text(payload.get("action")))
        if not item or event_type is None:
            return None
        content = as_mapping(item.get("content"))
        project_id = item.get("project_node_id") or as_mapping(payload.get("projects_v2")).get(
            "node_id"
        )
        return NormalizedWebhookEvent(
            source=self.source,
            event_type=event_type,
            resource_type=ResourceType.ISSUE,
            resource_id=item.get("node_id"),
            project_id=project_id,
            actor=self._user(payload.get("sender"), name_key="login"),
            timestamp=parse_timestamp(item.get("updated_at") or payload.get("created_at")),
            changes=from_to_fields(payload.get("changes")),
            object_key=id_string(content.get("number")),
            data={"item": item, "content": content or None},
            raw_data=payload,
        )

    def _project_event(self, payload: dict[str, Any]) -> NormalizedWebhookEvent | None:
        project = as_mapping(payload.get("projects_v2"))
        event_type = PROJECT_ACTIONS.get(as_text(payload.get("action")))
        if not project or event_type is None:
            return None
        return NormalizedWebhookEvent(
            source=self.source,
            event_type=event_type,
            resource_type=ResourceType.PROJECT,
            resource_id=project.get("node_id"),
            project_id=project.get("node_id"),
            actor=self._user(payload.get("sender"), name_key="login"),
            timestamp=parse_timestamp(project.get("updated_at") or payload.get("created_at")),
            changes=from_to_fields(payload.get("changes")),
            object_key=id_string(project.get("number")),
            data={"project": project},
            raw_data=payload,
        )


__all__ = [
    "EVENT_HEADER",
    "GitHubProjectWebhookNormalizer",
    "GitHubRepoWebhookNormalizer",
    "edited_fields",
    "from_to_fields",
]
