from dataclasses import dataclass, field
from typing import Any, Optional

from core.config_loader import AppConfig
from core.matcher.handlers import (
    HousingPreferencesUpdatedHandler,
    HousingSearchStageChangedHandler,
    PropertyCreatedHandler,
)
from core.scorer.service import PropertyMatchingService
from events.dispatcher import DomainEventDispatcher
from events.models import HousingPreferencesUpdated, HousingSearchStageChanged, PropertyCreated
from reminders.service import ReminderService


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    This eliminates duplicate wiring code and provides a single source
    of truth for service instantiation. DB access is obtained via
    relocation_uow(session_factory) inside each operation.
    """
    config: AppConfig
    session_factory: Any
    dispatcher: DomainEventDispatcher
    scorer: PropertyMatchingService
    reminder_service: ReminderService
    handlers: dict = field(default_factory=dict)

    @classmethod
    def build(cls, config: AppConfig, session_factory: Optional[Any] = None) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            session_factory: Session factory to use instead of the configured
                database (tests pass an in-memory SQLite factory)

        Returns:
            Fully wired AppContext instance (no DB session attached)
        """
        if session_factory is None:
            session_factory = cls._build_session_factory(config)

        scorer = PropertyMatchingService()
        reminder_service = ReminderService(session_factory, config.reminders)
        dispatcher = cls._build_dispatcher(config)

        handlers = {}
        if config.matching.enabled:
            handlers = cls._register_handlers(dispatcher, config, session_factory, scorer, reminder_service)

        return cls(
            config=config,
            session_factory=session_factory,
            dispatcher=dispatcher,
            scorer=scorer,
            reminder_service=reminder_service,
            handlers=handlers,
        )

    @staticmethod
    def _build_session_factory(config: AppConfig):
        from database.database import SessionLocal, configure_database

        configure_database(config.database.url, echo=config.database.echo)
        return SessionLocal

    @staticmethod
    def _build_dispatcher(config: AppConfig) -> DomainEventDispatcher:
        events_config = config.events
        return DomainEventDispatcher(
            use_async_queue=events_config.use_async_queue,
            redis_url=events_config.redis_url,
            queue_name=events_config.queue_name,
            job_timeout=events_config.job_timeout,
        )

    @staticmethod
    def _register_handlers(dispatcher, config, session_factory, scorer, reminder_service) -> dict:
        """Register one re-matching handler per triggering event."""
        wiring = dict(
            session_factory=session_factory,
            scorer=scorer,
            reminder_service=reminder_service,
            matching=config.matching,
            reminders=config.reminders,
        )
        handlers = {
            PropertyCreated: PropertyCreatedHandler(**wiring),
            HousingSearchStageChanged: HousingSearchStageChangedHandler(**wiring),
            HousingPreferencesUpdated: HousingPreferencesUpdatedHandler(**wiring),
        }
        for event_type, handler in handlers.items():
            dispatcher.register(event_type, handler)
        return handlers
