import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select, and_, or_

from core.enums import ReminderStatus
from database.models import FollowUpReminder
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ReminderRepository(BaseRepository):
    def get_by_id(self, reminder_id: Any) -> Optional[FollowUpReminder]:
        stmt = select(FollowUpReminder).where(FollowUpReminder.id == reminder_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_for_entity(self, entity_type: str, entity_id: Any) -> List[FollowUpReminder]:
        stmt = (
            select(FollowUpReminder)
            .where(
                FollowUpReminder.entity_type == entity_type,
                FollowUpReminder.entity_id == entity_id
            )
            .order_by(FollowUpReminder.due_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_due(self, before: datetime, limit: int = 100) -> List[FollowUpReminder]:
        """Open reminders due by `before`, plus snoozed ones whose snooze has lapsed."""
        stmt = (
            select(FollowUpReminder)
            .where(or_(
                and_(
                    FollowUpReminder.status == ReminderStatus.OPEN,
                    FollowUpReminder.due_at <= before
                ),
                and_(
                    FollowUpReminder.status == ReminderStatus.SNOOZED,
                    FollowUpReminder.snoozed_until <= before
                ),
            ))
            .order_by(FollowUpReminder.due_at)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())
