"""Matcher Module - match lifecycle and event-driven re-matching."""
from core.matcher.policy import RescoreDecision, decide_rescore, is_high_score, should_create
from core.matcher.lifecycle import MatchLifecycleManager
from core.matcher.handlers import (
    HousingPreferencesUpdatedHandler,
    HousingSearchStageChangedHandler,
    PropertyCreatedHandler,
    RematchSummary,
)

__all__ = [
    'MatchLifecycleManager', 'RescoreDecision', 'decide_rescore', 'is_high_score', 'should_create',
    'PropertyCreatedHandler', 'HousingSearchStageChangedHandler',
    'HousingPreferencesUpdatedHandler', 'RematchSummary',
]
