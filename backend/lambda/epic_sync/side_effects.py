"""side_effects.py — Side-effect tags and the action matchers that trigger them.

Part of the epic_sync Lambda.
"""
from __future__ import annotations

import enum
from typing import Callable, Dict, Iterable, Optional

from events import ENTITY_STORY, KIND_UPDATE, Action

__all__ = [
    "SIDE_EFFECT_MATCHERS",
    "SideEffect",
    "find_actionable",
]


class SideEffect(enum.Enum):
    UPDATE_EPIC_WHEN_STORY_PROGRESSES = "updateEpicWhenStoryProgresses"


def _story_workflow_state_changed(action: Action) -> bool:
    return (
        action.entity_type == ENTITY_STORY
        and action.action == KIND_UPDATE
        and action.changes.get("workflow_state_id") is not None
    )


SIDE_EFFECT_MATCHERS: Dict[SideEffect, Callable[[Action], bool]] = {
    SideEffect.UPDATE_EPIC_WHEN_STORY_PROGRESSES: _story_workflow_state_changed,
}


def find_actionable(actions: Iterable[Action], side_effect: SideEffect) -> Optional[Action]:
    """Return the first action that triggers ``side_effect``, or None."""
    matcher = SIDE_EFFECT_MATCHERS[side_effect]
    return next((action for action in actions if matcher(action)), None)
