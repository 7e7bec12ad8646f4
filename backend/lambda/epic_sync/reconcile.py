"""reconcile.py — Epic state resolution and the to-do / in-progress reconciliation.

Part of the epic_sync Lambda.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import EPIC_STATE_IN_PROGRESS, EPIC_STATE_TODO, logger
from epics import EpicClassification, EpicWorkflow
from errors import ConfigurationError

__all__ = [
    "Transition",
    "WorkflowStateIds",
    "reconcile_epics",
    "resolve_state_id",
    "resolve_state_ids",
]


@dataclass(frozen=True)
class WorkflowStateIds:
    todo: int
    in_progress: int


@dataclass(frozen=True)
class Transition:
    epic_id: int
    from_state_id: int
    to_state_id: int
    applied: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "epic_id": self.epic_id,
            "from_state_id": self.from_state_id,
            "to_state_id": self.to_state_id,
            "applied": self.applied,
        }


def resolve_state_id(workflow: EpicWorkflow, name: str) -> int:
    """Return the id of the epic state named exactly ``name``."""
    for state in workflow.epic_states:
        if state.name == name:
            return state.id
    known = ", ".join(repr(s.name) for s in workflow.epic_states) or "none"
    raise ConfigurationError(f"Epic workflow has no state named {name!r} (known: {known})")


def resolve_state_ids(workflow: EpicWorkflow) -> WorkflowStateIds:
    return WorkflowStateIds(
        todo=resolve_state_id(workflow, EPIC_STATE_TODO),
        in_progress=resolve_state_id(workflow, EPIC_STATE_IN_PROGRESS),
    )


def _move_epic(
    client,
    epic_id: int,
    *,
    expected_state_id: int,
    target_state_id: int,
    dry_run: bool,
) -> Optional[Transition]:
    # Re-read the epic; the bulk listing may already be stale.
    current = client.get_epic(epic_id)
    if current.epic_state_id != expected_state_id:
        logger.info(
            "Epic %s in state %s, expected %s: no change",
            epic_id, current.epic_state_id, expected_state_id,
        )
        return None

    if dry_run:
        logger.info("[DRY RUN] Epic %s: %s -> %s", epic_id, expected_state_id, target_state_id)
        return Transition(epic_id, expected_state_id, target_state_id, applied=False)

    client.set_epic_state(epic_id, target_state_id)
    logger.info("Epic %s moved: %s -> %s", epic_id, expected_state_id, target_state_id)
    return Transition(epic_id, expected_state_id, target_state_id)


def reconcile_epics(
    client,
    classification: EpicClassification,
    state_ids: WorkflowStateIds,
    *,
    dry_run: bool = False,
) -> List[Transition]:
    """Move the classified epics into the state their stories imply.

    The in-progress epic only moves if it is currently "to do", and the to-do
    epic only moves if it is currently "in progress". Epics in any other state
    are left alone, so re-running against unchanged remote state writes
    nothing.
    """
    transitions: List[Transition] = []

    if classification.in_progress_id is not None:
        moved = _move_epic(
            client,
            classification.in_progress_id,
            expected_state_id=state_ids.todo,
            target_state_id=state_ids.in_progress,
            dry_run=dry_run,
        )
        if moved:
            transitions.append(moved)

    if classification.to_do_id is not None:
        moved = _move_epic(
            client,
            classification.to_do_id,
            expected_state_id=state_ids.in_progress,
            target_state_id=state_ids.todo,
            dry_run=dry_run,
        )
        if moved:
            transitions.append(moved)

    return transitions
