"""Tests for ReminderService on in-memory SQLite."""

import unittest
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from core.config_loader import ReminderConfig
from core.enums import ReminderPriority, ReminderStatus
from core.exceptions import NotFoundException
from core.utils import utcnow
from reminders.service import ReminderService
from tests import STAFF_USER_ID, create_test_session_factory


class TestNextFollowUpTime(unittest.TestCase):

    def test_defaults_to_nine_utc_next_day(self):
        service = ReminderService()
        now = datetime(2026, 5, 1, 15, 30, 12, tzinfo=timezone.utc)
        self.assertEqual(
            service.next_follow_up_time(now),
            datetime(2026, 5, 2, 9, 0, tzinfo=timezone.utc)
        )

    def test_configurable(self):
        service = ReminderService(config=ReminderConfig(due_in_days=3, due_hour_utc=14))
        now = datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc)
        self.assertEqual(
            service.next_follow_up_time(now),
            datetime(2026, 5, 4, 14, 0, tzinfo=timezone.utc)
        )


@pytest.mark.db
class TestReminderLifecycle(unittest.TestCase):

    def setUp(self):
        self.service = ReminderService(create_test_session_factory())
        self.match_id = uuid.uuid4()

    def create(self, **overrides):
        data = dict(
            title="High-score property match for Cohen Family",
            due_at=self.service.next_follow_up_time(),
            entity_type="PropertyMatch",
            entity_id=self.match_id,
            priority=ReminderPriority.HIGH,
            created_by=STAFF_USER_ID,
        )
        data.update(overrides)
        return self.service.create_reminder(**data)

    def test_create_and_list_for_entity(self):
        reminder = self.create(notes="  Schedule showing  ")
        self.create(entity_id=uuid.uuid4())

        reminders = self.service.list_for_entity("PropertyMatch", self.match_id)

        self.assertEqual([r.id for r in reminders], [reminder.id])
        self.assertEqual(reminders[0].notes, "Schedule showing")
        self.assertEqual(reminders[0].status, ReminderStatus.OPEN)
        self.assertEqual(reminders[0].priority, ReminderPriority.HIGH)

    def test_complete(self):
        reminder = self.create()
        completed = self.service.complete(reminder.id, STAFF_USER_ID)
        self.assertEqual(completed.status, ReminderStatus.COMPLETED)
        self.assertEqual(completed.completed_by, STAFF_USER_ID)

    def test_snooze_then_dismiss_then_reopen(self):
        reminder = self.create()
        snoozed = self.service.snooze(reminder.id, utcnow() + timedelta(days=2), STAFF_USER_ID)
        self.assertEqual(snoozed.status, ReminderStatus.SNOOZED)
        self.assertEqual(snoozed.snooze_count, 1)

        self.assertEqual(self.service.dismiss(reminder.id, STAFF_USER_ID).status, ReminderStatus.DISMISSED)
        self.assertEqual(self.service.reopen(reminder.id).status, ReminderStatus.OPEN)

    def test_list_due(self):
        due = self.create()
        done = self.create()
        self.service.complete(done.id, STAFF_USER_ID)

        self.assertEqual(self.service.list_due(before=utcnow() - timedelta(days=1)), [])
        upcoming = self.service.list_due(before=utcnow() + timedelta(days=3))
        self.assertEqual([r.id for r in upcoming], [due.id])

    def test_unknown_reminder(self):
        with self.assertRaises(NotFoundException):
            self.service.complete(uuid.uuid4(), STAFF_USER_ID)
