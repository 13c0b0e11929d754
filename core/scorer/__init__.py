#!/usr/bin/env python3
"""
Scoring Module - Weighted property match scoring.

Public API:
- calculate_match_score: Pure (property, preferences) -> (score, breakdown)
- PropertyMatchingService: Object wrapper used by handlers and services
- HousingPreferences / ShulProximityPreference: Scorer inputs
- MatchScoreBreakdown: Explainable per-factor result

Layout:
- models.py: Value objects and the breakdown model
- factors.py: Budget, bedrooms, bathrooms, location, features
- service.py: Aggregation and match_details (de)serialisation
"""

from core.scorer.models import (
    FactorScore,
    HousingPreferences,
    MatchScoreBreakdown,
    ShulProximityPreference,
)
from core.scorer.service import (
    PropertyMatchingService,
    calculate_match_score,
    deserialize_match_details,
    serialize_match_details,
)

__all__ = [
    'FactorScore',
    'HousingPreferences',
    'MatchScoreBreakdown',
    'PropertyMatchingService',
    'ShulProximityPreference',
    'calculate_match_score',
    'deserialize_match_details',
    'serialize_match_details',
]
