#!/usr/bin/env python3
"""
Follow-up Reminder Service.

Command-style API for staff follow-ups linked to any entity. The
re-matching handlers use create_reminder() fire-and-forget for high-score
matches; a failure there is logged by the caller and never rolls back the
matches themselves.

Usage:
    from reminders.service import ReminderService

    service = ReminderService(session_factory)
    service.create_reminder(
        title="High-score property match for Cohen Family",
        due_at=service.next_follow_up_time(),
        entity_type="PropertyMatch",
        entity_id=match_id,
        priority=ReminderPriority.HIGH,
    )
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from core.config_loader import ReminderConfig
from core.enums import ReminderPriority
from core.exceptions import NotFoundException
from core.utils import utcnow
from database.models import FollowUpReminder
from database.uow import relocation_uow

logger = logging.getLogger(__name__)


class ReminderService:
    def __init__(self, session_factory=None, config: Optional[ReminderConfig] = None):
        """
        Initialize reminder service.

        Args:
            session_factory: Session factory for the unit of work (None = default)
            config: ReminderConfig with due-date defaults
        """
        self.session_factory = session_factory
        self.config = config or ReminderConfig()

    def next_follow_up_time(self, now: Optional[datetime] = None) -> datetime:
        """Default due time: due_in_days from now at due_hour_utc (09:00 UTC tomorrow)."""
        now = now or utcnow()
        due = now + timedelta(days=self.config.due_in_days)
        return due.replace(hour=self.config.due_hour_utc, minute=0, second=0, microsecond=0)

    def create_reminder(
        self,
        title: str,
        due_at: datetime,
        entity_type: str,
        entity_id: uuid.UUID,
        notes: Optional[str] = None,
        priority: ReminderPriority = ReminderPriority.NORMAL,
        created_by: Optional[uuid.UUID] = None
    ) -> FollowUpReminder:
        with relocation_uow(self.session_factory) as repo:
            reminder = FollowUpReminder.create(
                title=title,
                due_at=due_at,
                entity_type=entity_type,
                entity_id=entity_id,
                created_by=created_by,
                notes=notes,
                priority=priority,
            )
            repo.add(reminder)

        logger.info(f"Created {priority.value} reminder for {entity_type} {entity_id}: {title}")
        return reminder

    def _get(self, repo, reminder_id: uuid.UUID) -> FollowUpReminder:
        reminder = repo.reminders.get_by_id(reminder_id)
        if reminder is None:
            raise NotFoundException("FollowUpReminder", reminder_id)
        return reminder

    def complete(self, reminder_id: uuid.UUID, user_id: uuid.UUID) -> FollowUpReminder:
        with relocation_uow(self.session_factory) as repo:
            reminder = self._get(repo, reminder_id)
            reminder.complete(user_id)
        return reminder

    def snooze(self, reminder_id: uuid.UUID, until: datetime, user_id: uuid.UUID) -> FollowUpReminder:
        with relocation_uow(self.session_factory) as repo:
            reminder = self._get(repo, reminder_id)
            reminder.snooze(until, user_id)
        logger.info(f"Snoozed reminder {reminder_id} until {until.isoformat()}")
        return reminder

    def dismiss(self, reminder_id: uuid.UUID, user_id: uuid.UUID) -> FollowUpReminder:
        with relocation_uow(self.session_factory) as repo:
            reminder = self._get(repo, reminder_id)
            reminder.dismiss(user_id)
        return reminder

    def reopen(self, reminder_id: uuid.UUID) -> FollowUpReminder:
        with relocation_uow(self.session_factory) as repo:
            reminder = self._get(repo, reminder_id)
            reminder.reopen()
        return reminder

    def list_for_entity(self, entity_type: str, entity_id: uuid.UUID) -> List[FollowUpReminder]:
        with relocation_uow(self.session_factory) as repo:
            return repo.reminders.get_for_entity(entity_type, entity_id)

    def list_due(self, before: Optional[datetime] = None, limit: int = 100) -> List[FollowUpReminder]:
        with relocation_uow(self.session_factory) as repo:
            return repo.reminders.get_due(before or utcnow(), limit=limit)
