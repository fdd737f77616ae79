"""Trello webhook normalizer.

Trello wraps every notification in an ``action`` object whose ``type``
names what happened. Card updates report the previous values of changed
fields in ``action.data.old``; the new values are on ``action.data.card``.
A move between lists therefore shows up as an ``idList`` change.
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

CARD_ACTIONS: dict[str, EventType] = {
    "createCard": EventType.ISSUE_CREATED,
    "updateCard": EventType.ISSUE_UPDATED,
    "addMemberToCard": EventType.ISSUE_UPDATED,
    "removeMemberFromCard": EventType.ISSUE_UPDATED,
}

COMMENT_ACTIONS: dict[str, EventType] = {
    "commentCard": EventType.COMMENT_ADDED,
    "updateComment": EventType.COMMENT_UPDATED,
    "deleteComment": EventType.COMMENT_DELETED,
}


def card_changes(old: Any, card: dict[str, Any]) -> ChangeSet:
    """Pair each ``data.old`` value with the card's current value."""
    return {str(name): (value, card.get(name)) for name, value in as_mapping(old).items()}


class TrelloWebhookNormalizer(WebhookNormalizer):
    """Normalizer for Trello card and comment actions."""

    @property
    def platform_name(self) -> str:
        return "Trello"

    @property
    def source(self) -> str:
        return Platform.TRELLO.value

    def _parse_payload(
        self, payload: dict[str, Any], headers: httpx.Headers
    ) -> NormalizedWebhookEvent | None:
        action = as_mapping(payload.get("action"))
        action_type = as_text(action.get("type"))
        if action_type is None:
            return None

        data = as_mapping(action.get("data"))
        card = as_mapping(data.get("card"))
        board_id = id_string(as_mapping(data.get("board")).get("id"))

        if action_type in CARD_ACTIONS:
            if not card:
                return None
            event_type = CARD_ACTIONS[action_type]
            resource_type = ResourceType.ISSUE
            resource_id = id_string(card.get("id"))
            changes = self._changes(action_type, data, card)
        elif action_type in COMMENT_ACTIONS:
            event_type = COMMENT_ACTIONS[action_type]
            resource_type = ResourceType.COMMENT
            # commentCard is itself the comment; later edits reference it as data.action
            if action_type == "commentCard":
                resource_id = id_string(action.get("id"))
            else:
                resource_id = id_string(as_mapping(data.get("action")).get("id"))
            changes = None
        else:
            return None

        return NormalizedWebhookEvent(
            source=self.source,
            event_type=event_type,
            resource_type=resource_type,
            resource_id=resource_id,
            project_id=board_id,
            actor=self._user(action.get("memberCreator"), name_key="fullName", email_key=None),
            timestamp=parse_timestamp(action.get("date")),
            changes=changes,
            object_key=id_string(card.get("idShort")),
            data={
                "card": card or None,
                "list": as_mapping(data.get("list")) or None,
                "text": data.get("text"),
                "action_type": action_type,
            },
            raw_data=payload,
        )

    def _changes(self, action_type: str, data: dict[str, Any], card: dict[str, Any]) -> ChangeSet:
        if action_type == "updateCard":
            return card_changes(data.get("old"), card)
        member_id = data.get("idMember") or as_mapping(data.get("member")).get("id")
        if action_type == "addMemberToCard":
            return {"assignees": (None, member_id)}
        if action_type == "removeMemberFromCard":
            return {"assignees": (member_id, None)}
        return {}


__all__ = [
    "CARD_ACTIONS",
    "COMMENT_ACTIONS",
    "TrelloWebhookNormalizer",
    "card_changes",
]
