#!/usr/bin/env python3
"""
Match Lifecycle Manager - creates, re-scores and retires PropertyMatch rows.

Works inside the caller's unit of work: it adds and removes rows on the
repository but never commits. Handlers commit once per batch.
"""

import logging
import uuid
from typing import Optional, Tuple

from core.exceptions import DuplicateMatchException
from core.matcher.policy import RescoreDecision, decide_rescore, should_create
from core.scorer.service import PropertyMatchingService
from database.models import HousingSearch, Property, PropertyMatch
from database.repository import RelocationRepository

logger = logging.getLogger(__name__)


class MatchLifecycleManager:
    def __init__(self, repo: RelocationRepository, scorer: Optional[PropertyMatchingService] = None):
        self.repo = repo
        self.scorer = scorer or PropertyMatchingService()

    def score(self, search: HousingSearch, prop: Property) -> Tuple[int, str]:
        """Return (score, serialised breakdown)."""
        score, breakdown = self.scorer.calculate(prop, search)
        return score, self.scorer.serialize(breakdown)

    def create_match(
        self,
        search: HousingSearch,
        prop: Property,
        is_auto_matched: bool,
        user_id: Optional[uuid.UUID],
        notes: Optional[str] = None,
        scored: Optional[Tuple[int, str]] = None,
    ) -> PropertyMatch:
        if self.repo.matches.exists(search.id, prop.id):
            raise DuplicateMatchException(search.id, prop.id)

        score, details = scored or self.score(search, prop)
        match = PropertyMatch.create(
            housing_search_id=search.id,
            property_id=prop.id,
            match_score=score,
            match_details=details,
            is_auto_matched=is_auto_matched,
            created_by=user_id,
            notes=notes,
        )
        self.repo.add(match)
        return match

    def create_if_eligible(
        self,
        search: HousingSearch,
        prop: Property,
        min_score: int,
        user_id: Optional[uuid.UUID],
    ) -> Optional[PropertyMatch]:
        """
        Create an automatic match when the score reaches min_score.

        The caller has already checked that no match exists for the pair.
        """
        score, details = self.score(search, prop)
        if not should_create(score, min_score):
            logger.debug(f"Property {prop.id} scored {score} for search {search.id}, below {min_score}")
            return None

        match = PropertyMatch.create(
            housing_search_id=search.id,
            property_id=prop.id,
            match_score=score,
            match_details=details,
            is_auto_matched=True,
            created_by=user_id,
        )
        self.repo.add(match)
        logger.info(f"Auto-matched property {prop.id} to search {search.id} (score {score})")
        return match

    def rescore(
        self,
        match: PropertyMatch,
        search: HousingSearch,
        prop: Property,
        min_score: int,
        user_id: Optional[uuid.UUID],
    ) -> RescoreDecision:
        score, details = self.score(search, prop)
        decision = decide_rescore(match.match_score, score, match.status, min_score)

        if decision == RescoreDecision.REMOVE:
            logger.info(f"Removing match {match.id} (score {score} < {min_score})")
            self.repo.matches.remove(match)
        elif decision == RescoreDecision.KEEP_AND_UPDATE:
            logger.info(
                f"Match {match.id} score below threshold ({score}) but kept due to status {match.status.value}"
            )
            match.update_score(score, details, user_id)
        elif decision == RescoreDecision.UPDATE:
            logger.info(f"Match {match.id} score updated from {match.match_score} to {score}")
            match.update_score(score, details, user_id)

        return decision
