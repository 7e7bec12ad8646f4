"""epic_sync/lambda_function.py — Clubhouse webhook that keeps epic states in sync with their stories.

Clubhouse calls this Lambda (API Gateway proxy) whenever tracked work changes.
When a story's workflow state changes, the first epic with started or done
stories is moved from "to do" to "in progress", and the first epic with no
started or done stories is moved from "in progress" back to "to do".

Route (via API Gateway proxy):
    POST   /api/v1/clubhouse/webhook    — Clubhouse webhook delivery

The handler returns the decoded webhook body whether or not an epic moved.
Any failure raises, so the invocation fails and Clubhouse may redeliver.

Environment variables: see config.py.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import config
from clubhouse_client import ClubhouseClient
from config import COMPONENT_NAME, logger
from epics import classify_epics
from errors import EpicSyncError
from events import Event, parse_event
from http_utils import _json_body
from observability import _emit_structured_observability
from reconcile import Transition, reconcile_epics, resolve_state_ids
from side_effects import SideEffect, find_actionable

__all__ = [
    "lambda_handler",
    "process_event",
]


def process_event(
    event: Event,
    client: ClubhouseClient,
    *,
    dry_run: Optional[bool] = None,
) -> List[Transition]:
    """Run the epic sync for one parsed webhook event.

    Returns the transitions applied (or, in dry-run mode, decided).
    """
    if dry_run is None:
        dry_run = config.DRY_RUN

    workflow = client.get_epic_workflow()
    all_epics = client.list_epics()
    state_ids = resolve_state_ids(workflow)

    trigger = find_actionable(event.actions, SideEffect.UPDATE_EPIC_WHEN_STORY_PROGRESSES)
    if trigger is None:
        logger.info("Webhook %s: no story workflow change among %d action(s)", event.id, len(event.actions))
        return []

    change = trigger.changes["workflow_state_id"]
    logger.info(
        "Webhook %s: story %s workflow_state_id %s -> %s",
        event.id, trigger.id, change.old, change.new,
    )

    classification = classify_epics(all_epics)
    logger.info(
        "Epic classification over %d epic(s): in_progress=%s to_do=%s",
        len(all_epics), classification.in_progress_id, classification.to_do_id,
    )
    return reconcile_epics(client, classification, state_ids, dry_run=dry_run)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    started = time.time()
    webhook_id: Optional[str] = None
    try:
        payload = _json_body(event)
        parsed = parse_event(payload)
        webhook_id = parsed.id
        logger.info("Webhook received: id=%s actions=%d", parsed.id, len(parsed.actions))

        transitions = process_event(parsed, ClubhouseClient())
    except EpicSyncError as exc:
        logger.error("Epic sync failed for webhook %s: %s", webhook_id or "unknown", exc)
        _emit_structured_observability(
            component=COMPONENT_NAME,
            event="epic_sync.failed",
            webhook_id=webhook_id,
            latency_ms=int((time.time() - started) * 1000),
            error_code=type(exc).__name__,
        )
        raise

    _emit_structured_observability(
        component=COMPONENT_NAME,
        event="epic_sync.completed",
        webhook_id=webhook_id,
        latency_ms=int((time.time() - started) * 1000),
        extra={"transitions": [t.as_dict() for t in transitions]},
    )
    return parsed.raw
