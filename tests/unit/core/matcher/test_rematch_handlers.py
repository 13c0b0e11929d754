#!/usr/bin/env python3
"""
Tests for the event-driven re-matching handlers.

Runs against in-memory SQLite (see tests/__init__.py).

Covers:
1. PropertyCreated: stricter threshold, Searching-only, idempotence
2. HousingSearchStageChanged: only a move into Searching triggers matching
3. HousingPreferencesUpdated: re-score, retire untouched matches, keep progressed ones
4. High-score reminders and their best-effort failure handling

Usage:
    python -m pytest tests/unit/core/matcher/test_rematch_handlers.py -v
"""

import unittest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from core.enums import HousingSearchStage, ListingStatus, PropertyMatchStatus, ReminderPriority
from core.matcher import (
    HousingPreferencesUpdatedHandler,
    HousingSearchStageChangedHandler,
    PropertyCreatedHandler,
)
from core.scorer.models import HousingPreferences
from core.utils import utcnow
from database.models import PropertyMatch
from database.uow import relocation_uow
from events.models import HousingPreferencesUpdated, HousingSearchStageChanged, PropertyCreated
from reminders.service import ReminderService
from tests import (
    PERFECT_PREFERENCES,
    STAFF_USER_ID,
    add_property,
    add_search,
    create_test_session_factory,
)

# Scores 65 against the default listing: between the 50 and 70 thresholds
MID_PREFERENCES = dict(
    budget=Decimal("500000"),
    min_bedrooms=6,
    min_bathrooms=Decimal("3"),
    required_features=("garage", "basement"),
)

# Scores 20 against the default listing (city only)
POOR_PREFERENCES = dict(
    budget=Decimal("200000"),
    min_bedrooms=6,
    min_bathrooms=Decimal("3"),
    required_features=("pool",),
)


def property_created(prop):
    return PropertyCreated(property_id=prop.id, created_by=STAFF_USER_ID)


def stage_changed(search, new_stage=HousingSearchStage.SEARCHING, old_stage=HousingSearchStage.AWAITING_AGREEMENTS):
    return HousingSearchStageChanged(
        housing_search_id=search.id,
        applicant_id=search.applicant_id,
        old_stage=old_stage,
        new_stage=new_stage,
        changed_by=STAFF_USER_ID,
    )


def preferences_updated(search):
    return HousingPreferencesUpdated(
        housing_search_id=search.id,
        applicant_id=search.applicant_id,
        updated_by=STAFF_USER_ID,
    )


@pytest.mark.db
class HandlerTestCase(unittest.TestCase):

    def setUp(self):
        self.session_factory = create_test_session_factory()
        self.reminder_service = ReminderService(self.session_factory)

    def handler(self, handler_cls, reminder_service=None):
        return handler_cls(
            session_factory=self.session_factory,
            reminder_service=reminder_service or self.reminder_service,
        )

    def matches_for(self, search):
        with relocation_uow(self.session_factory) as repo:
            return repo.matches.get_matches_for_search(search.id)

    def reminders_for(self, match_id):
        return self.reminder_service.list_for_entity("PropertyMatch", match_id)


class TestPropertyCreatedHandler(HandlerTestCase):

    def test_matches_searching_families_and_creates_reminder(self):
        _, search = add_search(self.session_factory, preferences=PERFECT_PREFERENCES)
        prop = add_property(self.session_factory)

        summary = self.handler(PropertyCreatedHandler).handle(property_created(prop))

        self.assertEqual(summary.created, 1)
        self.assertEqual(summary.reminders_created, 1)
        matches = self.matches_for(search)
        self.assertEqual(len(matches), 1)
        match = matches[0]
        self.assertEqual(match.match_score, 100)
        self.assertTrue(match.is_auto_matched)
        self.assertEqual(match.status, PropertyMatchStatus.MATCH_IDENTIFIED)

        reminders = self.reminders_for(match.id)
        self.assertEqual(len(reminders), 1)
        self.assertEqual(reminders[0].title, "New high-score property match for Cohen Family")
        self.assertEqual(reminders[0].priority, ReminderPriority.HIGH)
        self.assertIn("123 Main St, Union scored 100% match", reminders[0].notes)

    def test_stricter_threshold_for_new_listings(self):
        _, search = add_search(self.session_factory, preferences=MID_PREFERENCES)
        prop = add_property(self.session_factory)

        summary = self.handler(PropertyCreatedHandler).handle(property_created(prop))

        self.assertEqual(summary.created, 0)
        self.assertEqual(self.matches_for(search), [])

    def test_only_searching_stage_is_matched(self):
        _, paused = add_search(self.session_factory, stage=HousingSearchStage.PAUSED,
                               preferences=PERFECT_PREFERENCES)
        prop = add_property(self.session_factory)

        summary = self.handler(PropertyCreatedHandler).handle(property_created(prop))

        self.assertEqual(summary.created, 0)
        self.assertEqual(self.matches_for(paused), [])

    def test_handling_twice_creates_no_duplicates(self):
        _, search = add_search(self.session_factory, preferences=PERFECT_PREFERENCES)
        prop = add_property(self.session_factory)
        handler = self.handler(PropertyCreatedHandler)

        handler.handle(property_created(prop))
        second = handler.handle(property_created(prop))

        self.assertEqual(second.created, 0)
        self.assertEqual(second.skipped, 1)
        self.assertEqual(len(self.matches_for(search)), 1)

    def test_inactive_listing_is_skipped(self):
        _, search = add_search(self.session_factory, preferences=PERFECT_PREFERENCES)
        prop = add_property(self.session_factory)
        with relocation_uow(self.session_factory) as repo:
            repo.properties.get_by_id(prop.id).update_status(ListingStatus.OFF_MARKET, STAFF_USER_ID)

        summary = self.handler(PropertyCreatedHandler).handle(property_created(prop))

        self.assertEqual(summary.created, 0)
        self.assertEqual(self.matches_for(search), [])

    def test_missing_listing_is_ignored(self):
        prop = add_property(self.session_factory)
        with relocation_uow(self.session_factory) as repo:
            repo.properties.get_by_id(prop.id).soft_delete(STAFF_USER_ID)

        summary = self.handler(PropertyCreatedHandler).handle(property_created(prop))
        self.assertEqual(summary.created, 0)

    def test_reminder_failure_does_not_roll_back_matches(self):
        _, search = add_search(self.session_factory, preferences=PERFECT_PREFERENCES)
        prop = add_property(self.session_factory)
        failing = MagicMock()
        failing.next_follow_up_time.return_value = utcnow() + timedelta(days=1)
        failing.create_reminder.side_effect = RuntimeError("reminder store down")

        summary = self.handler(PropertyCreatedHandler, reminder_service=failing).handle(property_created(prop))

        self.assertEqual(summary.created, 1)
        self.assertEqual(summary.reminders_created, 0)
        self.assertEqual(summary.reminders_failed, 1)
        self.assertEqual(len(self.matches_for(search)), 1)


class TestStageChangedHandler(HandlerTestCase):

    def test_entering_searching_matches_active_listings(self):
        _, search = add_search(self.session_factory, preferences=MID_PREFERENCES)
        add_property(self.session_factory)
        add_property(self.session_factory, street="9 Far Rd", city="Newark",
                     price=Decimal("900000"), bedrooms=1, bathrooms=Decimal("1"), features=[])

        summary = self.handler(HousingSearchStageChangedHandler).handle(stage_changed(search))

        # 65 reaches the stage-change threshold of 50 but not the reminder threshold
        self.assertEqual(summary.created, 1)
        self.assertEqual(summary.reminders_created, 0)
        matches = self.matches_for(search)
        self.assertEqual([m.match_score for m in matches], [65])

    def test_other_target_stages_do_nothing(self):
        _, search = add_search(self.session_factory, stage=HousingSearchStage.PAUSED,
                               preferences=PERFECT_PREFERENCES)
        add_property(self.session_factory)

        summary = self.handler(HousingSearchStageChangedHandler).handle(
            stage_changed(search, new_stage=HousingSearchStage.PAUSED, old_stage=HousingSearchStage.SEARCHING)
        )

        self.assertEqual(summary.created, 0)
        self.assertEqual(self.matches_for(search), [])

    def test_search_that_already_left_searching_is_skipped(self):
        _, search = add_search(self.session_factory, stage=HousingSearchStage.PAUSED,
                               preferences=PERFECT_PREFERENCES)
        add_property(self.session_factory)

        summary = self.handler(HousingSearchStageChangedHandler).handle(stage_changed(search))

        self.assertEqual(summary.created, 0)

    def test_existing_matches_are_skipped(self):
        _, search = add_search(self.session_factory, preferences=PERFECT_PREFERENCES)
        add_property(self.session_factory)
        handler = self.handler(HousingSearchStageChangedHandler)

        first = handler.handle(stage_changed(search))
        second = handler.handle(stage_changed(search))

        self.assertEqual(first.created, 1)
        self.assertEqual(first.reminders_created, 1)
        self.assertEqual(second.created, 0)
        self.assertEqual(second.skipped, 1)


class TestPreferencesUpdatedHandler(HandlerTestCase):

    def _seed_matches(self):
        _, search = add_search(self.session_factory, preferences=PERFECT_PREFERENCES)
        untouched = add_property(self.session_factory, street="1 First St")
        progressed = add_property(self.session_factory, street="2 Second St")
        self.handler(HousingSearchStageChangedHandler).handle(stage_changed(search))

        with relocation_uow(self.session_factory) as repo:
            match = repo.matches.get_existing_match(search.id, progressed.id)
            match.request_showing(STAFF_USER_ID)
        return search, untouched, progressed

    def _set_preferences(self, search, preferences):
        with relocation_uow(self.session_factory) as repo:
            repo.housing_searches.get_by_id(search.id).update_preferences(
                HousingPreferences(**preferences), STAFF_USER_ID
            )

    def test_retires_identified_matches_and_keeps_progressed_ones(self):
        search, untouched, progressed = self._seed_matches()
        self._set_preferences(search, POOR_PREFERENCES)

        summary = self.handler(HousingPreferencesUpdatedHandler).handle(preferences_updated(search))

        self.assertEqual(summary.removed, 1)
        self.assertEqual(summary.updated, 1)
        self.assertEqual(summary.created, 0)

        matches = self.matches_for(search)
        self.assertEqual(len(matches), 1)
        kept = matches[0]
        self.assertEqual(kept.property_id, progressed.id)
        self.assertEqual(kept.status, PropertyMatchStatus.SHOWING_REQUESTED)
        self.assertEqual(kept.match_score, 20)
        self.assertEqual(kept.modified_by, STAFF_USER_ID)

    def test_unchanged_scores_are_left_alone(self):
        search, _, _ = self._seed_matches()

        summary = self.handler(HousingPreferencesUpdatedHandler).handle(preferences_updated(search))

        self.assertEqual(summary.removed, 0)
        self.assertEqual(summary.updated, 0)
        self.assertEqual(len(self.matches_for(search)), 2)

    def test_discovers_new_matches(self):
        _, search = add_search(self.session_factory, preferences=POOR_PREFERENCES)
        add_property(self.session_factory)
        self.assertEqual(self.handler(HousingSearchStageChangedHandler).handle(stage_changed(search)).created, 0)

        self._set_preferences(search, PERFECT_PREFERENCES)
        summary = self.handler(HousingPreferencesUpdatedHandler).handle(preferences_updated(search))

        self.assertEqual(summary.created, 1)
        self.assertEqual(summary.reminders_created, 1)
        match_id = summary.created_match_ids[0]
        reminders = self.reminders_for(match_id)
        self.assertEqual(reminders[0].title, "New match found for Cohen Family (preferences updated)")

    def test_search_not_in_searching_is_skipped(self):
        _, search = add_search(self.session_factory, stage=HousingSearchStage.UNDER_CONTRACT,
                               preferences=PERFECT_PREFERENCES)
        add_property(self.session_factory)

        summary = self.handler(HousingPreferencesUpdatedHandler).handle(preferences_updated(search))

        self.assertEqual(summary.created, 0)
        self.assertEqual(self.matches_for(search), [])

    def test_retired_listing_is_not_rematched_in_same_pass(self):
        search, untouched, _ = self._seed_matches()
        self._set_preferences(search, POOR_PREFERENCES)

        self.handler(HousingPreferencesUpdatedHandler).handle(preferences_updated(search))

        with relocation_uow(self.session_factory) as repo:
            self.assertIsNone(repo.matches.get_existing_match(search.id, untouched.id))
            self.assertEqual(repo.db.query(PropertyMatch).count(), 1)
