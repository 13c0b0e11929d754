from typing import List, Type

from sqlalchemy import JSON, Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), 'postgresql')


def enum_column_type(enum_cls: Type) -> SAEnum:
    """Store an enum as its canonical value string (e.g. 'UnderContract')."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class DomainEventsMixin:
    """
    Collects domain events raised by an entity until the service pulls them.

    Events are kept on the instance, outside the mapped state, so they survive
    flush/commit/expire and are handed out exactly once.
    """

    def record_event(self, event) -> None:
        events = getattr(self, '_domain_events', None)
        if events is None:
            events = []
            setattr(self, '_domain_events', events)
        events.append(event)

    def pull_domain_events(self) -> List:
        events = getattr(self, '_domain_events', None) or []
        setattr(self, '_domain_events', [])
        return list(events)

    @property
    def pending_events(self) -> List:
        return list(getattr(self, '_domain_events', None) or [])
