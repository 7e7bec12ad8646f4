"""events.py — Clubhouse webhook event model and parsing.

A webhook delivery looks like::

    {
        "id": "5b3b1e46-...",
        "changed_at": "2018-06-27T13:24:01.000Z",
        "primary_id": 1234,
        "version": "v1",
        "member_id": "5a7b...",
        "actions": [
            {
                "id": 1234,
                "entity_type": "story",
                "action": "update",
                "name": "Fix login",
                "story_type": "bug",
                "app_url": "https://app.clubhouse.io/...",
                "changes": {"workflow_state_id": {"old": 500000008, "new": 500000010}}
            }
        ],
        "references": [{"id": 500000010, "entity_type": "workflow-state", "name": "In Progress", "type": "started"}]
    }

Only ``actions`` is required. Everything else is carried when present.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from errors import MalformedEventError

__all__ = [
    "ENTITY_EPIC",
    "ENTITY_MILESTONE",
    "ENTITY_PROJECT",
    "ENTITY_STORY",
    "ENTITY_WORKFLOW_STATE",
    "KIND_CREATE",
    "KIND_DELETE",
    "KIND_UPDATE",
    "Action",
    "Change",
    "Event",
    "Reference",
    "parse_event",
]

ENTITY_STORY = "story"
ENTITY_EPIC = "epic"
ENTITY_MILESTONE = "milestone"
ENTITY_PROJECT = "project"
ENTITY_WORKFLOW_STATE = "workflow-state"

KIND_UPDATE = "update"
KIND_CREATE = "create"
KIND_DELETE = "delete"


@dataclass(frozen=True)
class Change:
    old: Any = None
    new: Any = None


@dataclass(frozen=True)
class Action:
    """One entity change inside a webhook event.

    ``entity_type`` is kept verbatim, so types Clubhouse adds later pass
    through untouched. ``changes`` only carries data for ``update`` actions.
    """

    id: Optional[int]
    entity_type: str
    action: str
    name: Optional[str] = None
    story_type: Optional[str] = None
    app_url: Optional[str] = None
    changes: Mapping[str, Change] = field(default_factory=dict)


@dataclass(frozen=True)
class Reference:
    id: Optional[int]
    entity_type: str
    name: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class Event:
    id: Optional[str]
    changed_at: Optional[str]
    primary_id: Optional[int]
    version: Optional[str]
    member_id: Optional[str]
    actions: Tuple[Action, ...]
    references: Tuple[Reference, ...]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _parse_changes(raw: Any) -> Dict[str, Change]:
    """Decode ``changes`` without validating it.

    Only a few entries are ever inspected, so an unexpected shape elsewhere
    must not reject the whole delivery. A non-object entry is kept as the
    ``new`` value of an opaque :class:`Change`.
    """
    if not isinstance(raw, dict):
        return {}

    out: Dict[str, Change] = {}
    for key, entry in raw.items():
        if entry is None:
            continue
        if isinstance(entry, dict):
            out[str(key)] = Change(old=entry.get("old"), new=entry.get("new"))
        else:
            out[str(key)] = Change(new=entry)
    return out


def _parse_action(raw: Any, index: int) -> Action:
    if not isinstance(raw, dict):
        raise MalformedEventError(f"actions[{index}] must be an object")
    return Action(
        id=raw.get("id"),
        entity_type=str(raw.get("entity_type") or ""),
        action=str(raw.get("action") or ""),
        name=raw.get("name"),
        story_type=raw.get("story_type"),
        app_url=raw.get("app_url"),
        changes=_parse_changes(raw.get("changes")),
    )


def _parse_reference(raw: Any, index: int) -> Reference:
    if not isinstance(raw, dict):
        raise MalformedEventError(f"references[{index}] must be an object")
    return Reference(
        id=raw.get("id"),
        entity_type=str(raw.get("entity_type") or ""),
        name=raw.get("name"),
        type=raw.get("type"),
    )


def parse_event(payload: Dict[str, Any]) -> Event:
    """Build an :class:`Event` from a decoded webhook body.

    Raises:
        MalformedEventError: if ``actions`` is missing or any entry is malformed.
    """
    if not isinstance(payload, dict):
        raise MalformedEventError("Webhook body must be an object")

    actions = payload.get("actions")
    if not isinstance(actions, list):
        raise MalformedEventError("Webhook body is missing the 'actions' list")

    references = payload.get("references")
    if references is None:
        references = []
    if not isinstance(references, list):
        raise MalformedEventError("'references' must be a list")

    return Event(
        id=payload.get("id"),
        changed_at=payload.get("changed_at"),
        primary_id=payload.get("primary_id"),
        version=payload.get("version"),
        member_id=payload.get("member_id"),
        actions=tuple(_parse_action(a, i) for i, a in enumerate(actions)),
        references=tuple(_parse_reference(r, i) for i, r in enumerate(references)),
        raw=payload,
    )
