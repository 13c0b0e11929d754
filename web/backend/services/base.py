#!/usr/bin/env python3
"""
Shared plumbing for the application services.

Every mutating call runs in one relocation_uow(); domain events recorded by
the entities are pulled inside the unit of work and published only after
it has committed.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Type, TypeVar

from core.enums import parse_enum
from core.exceptions import NotFoundException, ValidationException
from database.uow import relocation_uow
from events.dispatcher import DomainEventDispatcher

logger = logging.getLogger(__name__)

E = TypeVar('E')


class ApplicationService:
    def __init__(self, session_factory=None, dispatcher: Optional[DomainEventDispatcher] = None):
        self.session_factory = session_factory
        self.dispatcher = dispatcher

    def _uow(self):
        return relocation_uow(self.session_factory)

    def _publish(self, events: Iterable[Any]) -> None:
        events = list(events)
        if not events:
            return
        if self.dispatcher is None:
            logger.debug(f"No dispatcher configured; dropping {len(events)} events")
            return
        self.dispatcher.dispatch(events)

    @staticmethod
    def _collect(*entities: Any) -> List[Any]:
        events = []
        for entity in entities:
            if entity is not None:
                events.extend(entity.pull_domain_events())
        return events

    @staticmethod
    def _require(getter: Callable[[Any], Optional[E]], entity_name: str, entity_id: Any) -> E:
        entity = getter(entity_id)
        if entity is None:
            raise NotFoundException(entity_name, entity_id)
        return entity

    @staticmethod
    def _parse(enum_cls: Type[E], raw: Any, label: str) -> E:
        value = parse_enum(enum_cls, raw)
        if value is None:
            valid = ", ".join(m.value for m in enum_cls)
            raise ValidationException(f"Invalid {label} '{raw}'. Valid values: {valid}")
        return value
