#!/usr/bin/env python3
"""
Match Scoring Service - deterministic property vs. preferences scoring.

Score = budget (30) + bedrooms (20) + bathrooms (15) + location (20)
        + features (15), capped at 100 by construction.

The scorer is pure: it reads the property's price, bedrooms, bathrooms,
city and features and never touches the database. Anything with those
attributes (ORM Property, test doubles) can be scored.
"""

import logging
from typing import Any, Optional, Tuple

from pydantic import ValidationError

from core.exceptions import ValidationException
from core.scorer import factors
from core.scorer.models import HousingPreferences, MatchScoreBreakdown

logger = logging.getLogger(__name__)


def calculate_match_score(
    property: Any,
    preferences: Optional[HousingPreferences]
) -> Tuple[int, MatchScoreBreakdown]:
    """
    Score a property against a family's housing preferences.

    Args:
        property: Object with price, bedrooms, bathrooms, city, features
        preferences: HousingPreferences, or None for "no preferences"

    Returns: (total score 0-100, breakdown)
    """
    preferences = preferences or HousingPreferences()

    budget_points, budget_notes = factors.budget_score(property.price, preferences)
    bedroom_points, bedroom_notes = factors.bedrooms_score(property.bedrooms, preferences)
    bathroom_points, bathroom_notes = factors.bathrooms_score(property.bathrooms, preferences)
    city_points, city_notes = factors.city_score(property.city)
    feature_points, feature_notes = factors.features_score(property.features, preferences)

    total = budget_points + bedroom_points + bathroom_points + city_points + feature_points

    breakdown = MatchScoreBreakdown(
        budget_score=budget_points,
        budget_notes=budget_notes,
        bedrooms_score=bedroom_points,
        bedrooms_notes=bedroom_notes,
        bathrooms_score=bathroom_points,
        bathrooms_notes=bathroom_notes,
        city_score=city_points,
        city_notes=city_notes,
        features_score=feature_points,
        features_notes=feature_notes,
        total_score=total,
    )
    return total, breakdown


def serialize_match_details(breakdown: MatchScoreBreakdown) -> str:
    """Compact camelCase JSON for PropertyMatch.match_details."""
    return breakdown.model_dump_json(by_alias=True)


def deserialize_match_details(raw: Optional[str]) -> Optional[MatchScoreBreakdown]:
    if not raw:
        return None
    try:
        return MatchScoreBreakdown.model_validate_json(raw)
    except ValidationError as e:
        raise ValidationException(f"Invalid match details: {e}")


class PropertyMatchingService:
    """
    Scores properties for housing searches.

    Thin object wrapper over the module functions so handlers and services
    can take the scorer as a dependency (and tests can swap it).
    """

    def calculate(self, property: Any, housing_search: Any) -> Tuple[int, MatchScoreBreakdown]:
        score, breakdown = calculate_match_score(property, housing_search.get_preferences())
        logger.debug(
            f"Scored property {getattr(property, 'id', None)} for search "
            f"{getattr(housing_search, 'id', None)}: {score}"
        )
        return score, breakdown

    def serialize(self, breakdown: MatchScoreBreakdown) -> str:
        return serialize_match_details(breakdown)

    def deserialize(self, raw: Optional[str]) -> Optional[MatchScoreBreakdown]:
        return deserialize_match_details(raw)
