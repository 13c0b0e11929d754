import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Text, TIMESTAMP, Integer, Uuid, Index

from core.enums import ReminderPriority, ReminderStatus
from core.exceptions import ValidationException
from core.utils import utcnow

from .base import Base, enum_column_type

MAX_TITLE_LENGTH = 200


def _validated_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise ValidationException("Title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationException(f"Title cannot exceed {MAX_TITLE_LENGTH} characters")
    return title.strip()


def _check_not_past(when: datetime, label: str) -> None:
    # Compared by calendar day so "today at 09:00" stays valid all day
    if when.date() < utcnow().date():
        raise ValidationException(f"{label} cannot be in the past")


class FollowUpReminder(Base):
    """A staff follow-up linked to any entity by (entity_type, entity_id)."""
    __tablename__ = 'follow_up_reminder'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    due_at = Column(TIMESTAMP(timezone=True), nullable=False)
    priority = Column(enum_column_type(ReminderPriority), nullable=False, default=ReminderPriority.NORMAL)

    entity_type = Column(Text, nullable=False)
    entity_id = Column(Uuid, nullable=False)

    status = Column(enum_column_type(ReminderStatus), nullable=False, default=ReminderStatus.OPEN)
    snoozed_until = Column(TIMESTAMP(timezone=True), nullable=True)
    snooze_count = Column(Integer, nullable=False, default=0)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    completed_by = Column(Uuid, nullable=True)
    completed_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_reminder_entity', 'entity_type', 'entity_id'),
        Index('idx_reminder_status_due', 'status', 'due_at'),
    )

    @classmethod
    def create(
        cls,
        title: str,
        due_at: datetime,
        entity_type: str,
        entity_id: uuid.UUID,
        created_by: Optional[uuid.UUID],
        notes: Optional[str] = None,
        priority: ReminderPriority = ReminderPriority.NORMAL,
    ) -> "FollowUpReminder":
        title = _validated_title(title)
        if not entity_type or not entity_type.strip():
            raise ValidationException("Entity type is required")
        if due_at is None:
            raise ValidationException("Due date is required")
        _check_not_past(due_at, "Due date")

        return cls(
            id=uuid.uuid4(),
            title=title,
            notes=notes.strip() if notes else None,
            due_at=due_at,
            priority=priority,
            entity_type=entity_type.strip(),
            entity_id=entity_id,
            status=ReminderStatus.OPEN,
            snooze_count=0,
            created_by=created_by,
            created_at=utcnow(),
        )

    def complete(self, user_id: uuid.UUID) -> None:
        if self.status == ReminderStatus.COMPLETED:
            raise ValidationException("Reminder is already completed")
        self.status = ReminderStatus.COMPLETED
        self.completed_at = utcnow()
        self.completed_by = user_id

    def snooze(self, until: datetime, user_id: uuid.UUID) -> None:
        if self.status == ReminderStatus.COMPLETED:
            raise ValidationException("Cannot snooze a completed reminder")
        _check_not_past(until, "Snooze date")
        self.status = ReminderStatus.SNOOZED
        self.snoozed_until = until
        self.snooze_count = (self.snooze_count or 0) + 1

    def dismiss(self, user_id: uuid.UUID) -> None:
        if self.status == ReminderStatus.COMPLETED:
            raise ValidationException("Cannot dismiss a completed reminder")
        self.status = ReminderStatus.DISMISSED
        self.completed_at = utcnow()
        self.completed_by = user_id

    def reopen(self) -> None:
        if self.status in (ReminderStatus.OPEN, ReminderStatus.SNOOZED):
            raise ValidationException("Reminder is already open")
        self.status = ReminderStatus.OPEN
        self.completed_at = None
        self.completed_by = None
        self.snoozed_until = None

    @property
    def effective_due_at(self) -> datetime:
        return self.snoozed_until or self.due_at
