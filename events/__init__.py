"""Domain events: messages, dispatcher and RQ worker task."""
from events.models import (
    ApplicantBoardDecisionMade,
    ApplicantCreated,
    DomainEvent,
    HousingPreferencesUpdated,
    HousingSearchStageChanged,
    HousingSearchStarted,
    PropertyCreated,
    event_from_payload,
)
from events.dispatcher import DomainEventDispatcher, process_domain_event_task

__all__ = [
    'ApplicantBoardDecisionMade', 'ApplicantCreated', 'DomainEvent',
    'HousingPreferencesUpdated', 'HousingSearchStageChanged', 'HousingSearchStarted',
    'PropertyCreated', 'event_from_payload',
    'DomainEventDispatcher', 'process_domain_event_task',
]
