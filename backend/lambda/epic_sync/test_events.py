"""test_events.py — Webhook event parsing and side-effect matching.

Run: python3 -m pytest test_events.py -v
"""

from __future__ import annotations

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(__file__))

from errors import MalformedEventError  # noqa: E402
from events import (  # noqa: E402
    ENTITY_EPIC,
    ENTITY_MILESTONE,
    ENTITY_PROJECT,
    ENTITY_STORY,
    ENTITY_WORKFLOW_STATE,
    KIND_CREATE,
    KIND_DELETE,
    KIND_UPDATE,
    Action,
    Change,
    parse_event,
)
from side_effects import SIDE_EFFECT_MATCHERS, SideEffect, find_actionable  # noqa: E402


def _action(entity_type="story", kind="update", changes=None, action_id=1):
    return Action(id=action_id, entity_type=entity_type, action=kind, changes=changes or {})


class ParseEventTests(unittest.TestCase):
    def test_full_payload(self):
        event = parse_event({
            "id": "evt-1",
            "changed_at": "2018-06-27T13:24:01.000Z",
            "primary_id": 55,
            "version": "v1",
            "member_id": "mem-1",
            "actions": [
                {
                    "id": 55,
                    "entity_type": "story",
                    "action": "update",
                    "name": "Story",
                    "story_type": "chore",
                    "app_url": "https://app.clubhouse.io/x/story/55",
                    "changes": {"workflow_state_id": {"old": 1, "new": 2}, "position": {"old": 3, "new": 4}},
                }
            ],
            "references": [{"id": 2, "entity_type": "workflow-state", "name": "Started", "type": "started"}],
        })

        self.assertEqual(event.id, "evt-1")
        self.assertEqual(event.primary_id, 55)
        self.assertEqual(len(event.actions), 1)
        action = event.actions[0]
        self.assertEqual(action.story_type, "chore")
        self.assertEqual(action.changes["workflow_state_id"], Change(old=1, new=2))
        self.assertEqual(event.references[0].type, "started")

    def test_only_actions_required(self):
        event = parse_event({"actions": []})
        self.assertIsNone(event.id)
        self.assertEqual(event.actions, ())
        self.assertEqual(event.references, ())

    def test_unknown_entity_type_kept_verbatim(self):
        event = parse_event({"actions": [{"id": 1, "entity_type": "label", "action": "create"}]})
        self.assertEqual(event.actions[0].entity_type, "label")
        self.assertEqual(dict(event.actions[0].changes), {})

    def test_missing_actions_rejected(self):
        with self.assertRaises(MalformedEventError):
            parse_event({"id": "evt-1"})

    def test_non_object_action_rejected(self):
        with self.assertRaises(MalformedEventError):
            parse_event({"actions": ["story"]})

    def test_scalar_change_entry_kept_opaque(self):
        event = parse_event({
            "actions": [
                {"id": 1, "entity_type": ENTITY_STORY, "action": KIND_CREATE, "changes": {"estimate": 3}},
                {
                    "id": 2,
                    "entity_type": ENTITY_STORY,
                    "action": KIND_UPDATE,
                    "changes": {"workflow_state_id": {"old": 1, "new": 2}},
                },
            ]
        })

        self.assertEqual(event.actions[0].changes["estimate"], Change(old=None, new=3))
        found = find_actionable(event.actions, SideEffect.UPDATE_EPIC_WHEN_STORY_PROGRESSES)
        self.assertEqual(found.id, 2)

    def test_non_object_changes_parses_as_empty(self):
        event = parse_event({"actions": [{"entity_type": ENTITY_STORY, "action": KIND_DELETE, "changes": "gone"}]})
        self.assertEqual(dict(event.actions[0].changes), {})

    def test_null_change_entry_dropped(self):
        event = parse_event(
            {"actions": [{"entity_type": "story", "action": "update", "changes": {"workflow_state_id": None}}]}
        )
        self.assertNotIn("workflow_state_id", event.actions[0].changes)

    def test_raw_payload_kept(self):
        payload = {"actions": [], "extra": {"nested": True}}
        self.assertIs(parse_event(payload).raw, payload)


class SideEffectTests(unittest.TestCase):
    def setUp(self):
        self.matcher = SIDE_EFFECT_MATCHERS[SideEffect.UPDATE_EPIC_WHEN_STORY_PROGRESSES]

    def test_every_side_effect_has_matcher(self):
        self.assertEqual(set(SIDE_EFFECT_MATCHERS), set(SideEffect))

    def test_story_workflow_change_matches(self):
        self.assertTrue(self.matcher(_action(changes={"workflow_state_id": Change(1, 2)})))

    def test_other_field_change_does_not_match(self):
        self.assertFalse(self.matcher(_action(changes={"name": Change("a", "b")})))

    def test_create_or_delete_does_not_match(self):
        for kind in (KIND_CREATE, KIND_DELETE):
            with self.subTest(kind=kind):
                self.assertFalse(self.matcher(_action(kind=kind, changes={"workflow_state_id": Change(None, 2)})))

    def test_non_story_entities_do_not_match(self):
        for entity_type in (ENTITY_EPIC, ENTITY_MILESTONE, ENTITY_PROJECT, ENTITY_WORKFLOW_STATE, "label"):
            with self.subTest(entity_type=entity_type):
                self.assertFalse(
                    self.matcher(_action(entity_type=entity_type, changes={"workflow_state_id": Change(1, 2)}))
                )

    def test_find_actionable_returns_first_match(self):
        actions = [
            _action(action_id=1, kind="create"),
            _action(action_id=2, changes={"workflow_state_id": Change(1, 2)}),
            _action(action_id=3, changes={"workflow_state_id": Change(2, 3)}),
        ]
        found = find_actionable(actions, SideEffect.UPDATE_EPIC_WHEN_STORY_PROGRESSES)
        self.assertEqual(found.id, 2)

    def test_find_actionable_none(self):
        self.assertIsNone(find_actionable([], SideEffect.UPDATE_EPIC_WHEN_STORY_PROGRESSES))
