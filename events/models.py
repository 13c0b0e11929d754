#!/usr/bin/env python3
"""
Domain event messages.

Entities record these while they change; application services pull them
after the unit of work commits and hand them to the DomainEventDispatcher.
Events are plain pydantic models so they can cross the RQ queue as JSON.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from core.enums import BoardDecision, HousingSearchStage
from core.utils import utcnow


class DomainEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    occurred_at: datetime = Field(default_factory=utcnow)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_payload(self) -> Dict[str, Any]:
        return {'event_type': self.event_type, 'data': self.model_dump(mode='json')}


class PropertyCreated(DomainEvent):
    """A new listing was added; triggers matching against active searches."""
    property_id: uuid.UUID
    created_by: Optional[uuid.UUID] = None


class HousingSearchStarted(DomainEvent):
    housing_search_id: uuid.UUID
    applicant_id: uuid.UUID


class HousingSearchStageChanged(DomainEvent):
    """Raised on every applied stage transition."""
    housing_search_id: uuid.UUID
    applicant_id: uuid.UUID
    old_stage: HousingSearchStage
    new_stage: HousingSearchStage
    changed_by: Optional[uuid.UUID] = None


class HousingPreferencesUpdated(DomainEvent):
    housing_search_id: uuid.UUID
    applicant_id: uuid.UUID
    updated_by: Optional[uuid.UUID] = None


class ApplicantCreated(DomainEvent):
    applicant_id: uuid.UUID


class ApplicantBoardDecisionMade(DomainEvent):
    applicant_id: uuid.UUID
    decision: BoardDecision
    reviewed_by: Optional[uuid.UUID] = None


EVENT_TYPES: Dict[str, Type[DomainEvent]] = {
    cls.__name__: cls
    for cls in (
        PropertyCreated,
        HousingSearchStarted,
        HousingSearchStageChanged,
        HousingPreferencesUpdated,
        ApplicantCreated,
        ApplicantBoardDecisionMade,
    )
}


def event_from_payload(payload: Dict[str, Any]) -> DomainEvent:
    """Inverse of DomainEvent.to_payload()."""
    event_type = payload.get('event_type')
    event_cls = EVENT_TYPES.get(event_type)
    if event_cls is None:
        raise ValueError(f"Unknown domain event type: {event_type}")
    return event_cls.model_validate(payload.get('data') or {})
