"""epics.py — Epic and epic-workflow records, and in-progress / to-do epic classification.

Part of the epic_sync Lambda.
"""
from __future__ import annotations

import functools
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Optional, Tuple

from errors import ParseError

__all__ = [
    "Epic",
    "EpicClassification",
    "EpicState",
    "EpicStats",
    "EpicWorkflow",
    "classify_epics",
    "epic_from_json",
    "epic_workflow_from_json",
    "epics_from_json",
]


@dataclass(frozen=True)
class EpicState:
    id: int
    name: str


@dataclass(frozen=True)
class EpicWorkflow:
    epic_states: Tuple[EpicState, ...]


@dataclass(frozen=True)
class EpicStats:
    # None when Clubhouse omits the count; such an epic is never classified.
    num_stories_started: Optional[int] = None
    num_stories_done: Optional[int] = None

    @property
    def has_progress(self) -> bool:
        return (self.num_stories_started or 0) > 0 or (self.num_stories_done or 0) > 0

    @property
    def untouched(self) -> bool:
        return self.num_stories_started == 0 and self.num_stories_done == 0


@dataclass(frozen=True)
class Epic:
    id: int
    epic_state_id: Optional[int]
    stats: EpicStats
    name: Optional[str] = None


@dataclass(frozen=True)
class EpicClassification:
    in_progress_id: Optional[int] = None
    to_do_id: Optional[int] = None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _classify_step(acc: EpicClassification, epic: Epic) -> EpicClassification:
    if epic.stats.has_progress:
        if acc.in_progress_id is None:
            return replace(acc, in_progress_id=epic.id)
    elif epic.stats.untouched:
        if acc.to_do_id is None:
            return replace(acc, to_do_id=epic.id)
    return acc


def classify_epics(epics: Iterable[Epic]) -> EpicClassification:
    """Pick the first epic with started/done stories and the first with none.

    Epics are scanned in the order given. Later candidates for a slot that is
    already filled are ignored, as is an epic whose stats fit neither slot.
    """
    return functools.reduce(_classify_step, epics, EpicClassification())


# ---------------------------------------------------------------------------
# JSON decoding
# ---------------------------------------------------------------------------


def _count(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def epic_from_json(raw: Any) -> Epic:
    if not isinstance(raw, dict):
        raise ParseError(f"Epic payload must be an object, got {type(raw).__name__}")
    if "id" not in raw:
        raise ParseError("Epic payload is missing 'id'")

    stats = raw.get("stats")
    if stats is None:
        stats = {}
    if not isinstance(stats, dict):
        raise ParseError(f"Epic {raw['id']} has a malformed 'stats' field")

    return Epic(
        id=raw["id"],
        epic_state_id=raw.get("epic_state_id"),
        stats=EpicStats(
            num_stories_started=_count(stats.get("num_stories_started")),
            num_stories_done=_count(stats.get("num_stories_done")),
        ),
        name=raw.get("name"),
    )


def epics_from_json(raw: Any) -> List[Epic]:
    if not isinstance(raw, list):
        raise ParseError(f"Epic listing must be a list, got {type(raw).__name__}")
    return [epic_from_json(item) for item in raw]


def epic_workflow_from_json(raw: Any) -> EpicWorkflow:
    if not isinstance(raw, dict):
        raise ParseError("Epic workflow payload must be an object")
    states = raw.get("epic_states")
    if not isinstance(states, list):
        raise ParseError("Epic workflow payload is missing 'epic_states'")

    parsed: List[EpicState] = []
    for entry in states:
        if not isinstance(entry, dict) or "id" not in entry:
            raise ParseError(f"Malformed epic state entry: {entry!r}")
        parsed.append(EpicState(id=entry["id"], name=str(entry.get("name") or "")))
    return EpicWorkflow(epic_states=tuple(parsed))
