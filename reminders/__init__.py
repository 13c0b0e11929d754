"""Follow-up reminders."""
from reminders.service import ReminderService

__all__ = ['ReminderService']
