#!/usr/bin/env python3
"""
Match service - manual matches and match progress.

Automatic matches come from the re-matching handlers; this service covers
what staff do by hand: pairing a search with a property, moving a match
through showings and offers, and deleting it.
"""

import logging
import uuid
from typing import Any, List, Optional

from core.enums import PropertyMatchStatus
from core.exceptions import ValidationException, require_user
from core.matcher.lifecycle import MatchLifecycleManager
from core.scorer.models import MatchScoreBreakdown
from core.scorer.service import PropertyMatchingService
from database.models import PropertyMatch

from .base import ApplicationService

logger = logging.getLogger(__name__)


def _load_related(match: PropertyMatch) -> PropertyMatch:
    # Touch relationships used by the API while the session is open
    match.property
    if match.housing_search is not None:
        match.housing_search.applicant
    return match


class MatchService(ApplicationService):
    """Service for managing property matches."""

    def __init__(self, session_factory=None, dispatcher=None, scorer: Optional[PropertyMatchingService] = None):
        super().__init__(session_factory, dispatcher)
        self.scorer = scorer or PropertyMatchingService()

    def create_match(
        self,
        housing_search_id: uuid.UUID,
        property_id: uuid.UUID,
        user_id: Optional[uuid.UUID],
        notes: Optional[str] = None
    ) -> PropertyMatch:
        """
        Create a manual match with a freshly computed score.

        Raises:
            NotFoundException: unknown search or property
            DuplicateMatchException: the pair is already matched
        """
        require_user(user_id, "create a match")

        with self._uow() as repo:
            search = self._require(repo.housing_searches.get_by_id, "HousingSearch", housing_search_id)
            prop = self._require(repo.properties.get_by_id, "Property", property_id)

            manager = MatchLifecycleManager(repo, self.scorer)
            match = manager.create_match(search, prop, is_auto_matched=False, user_id=user_id, notes=notes)
            repo.flush()
            _load_related(match)

        logger.info(f"Manual match {match.id} created (score {match.match_score})")
        return match

    def get_match(self, match_id: uuid.UUID) -> PropertyMatch:
        with self._uow() as repo:
            match = self._require(repo.matches.get_by_id, "PropertyMatch", match_id)
            return _load_related(match)

    def get_breakdown(self, match_id: uuid.UUID) -> Optional[MatchScoreBreakdown]:
        match = self.get_match(match_id)
        return self.scorer.deserialize(match.match_details)

    def list_for_search(self, housing_search_id: uuid.UUID) -> List[PropertyMatch]:
        with self._uow() as repo:
            self._require(repo.housing_searches.get_by_id, "HousingSearch", housing_search_id)
            return [_load_related(m) for m in repo.matches.get_matches_for_search(housing_search_id)]

    def list_for_property(self, property_id: uuid.UUID) -> List[PropertyMatch]:
        with self._uow() as repo:
            self._require(repo.properties.get_by_id, "Property", property_id)
            return [_load_related(m) for m in repo.matches.get_matches_for_property(property_id)]

    def update_status(
        self,
        match_id: uuid.UUID,
        status: Any,
        user_id: Optional[uuid.UUID],
        notes: Optional[str] = None,
        offer_amount: Any = None
    ) -> PropertyMatch:
        """Move a match to a new status via the matching domain operation."""
        require_user(user_id, "update a match")
        status = self._parse(PropertyMatchStatus, status, "match status")

        with self._uow() as repo:
            match = self._require(repo.matches.get_by_id, "PropertyMatch", match_id)

            if status == PropertyMatchStatus.SHOWING_REQUESTED:
                match.request_showing(user_id)
                if notes is not None:
                    match.update_notes(notes, user_id)
            elif status == PropertyMatchStatus.APPLICANT_INTERESTED:
                match.mark_interested(user_id, notes)
            elif status == PropertyMatchStatus.APPLICANT_REJECTED:
                match.reject(user_id, notes)
            elif status == PropertyMatchStatus.OFFER_MADE:
                if offer_amount is None:
                    raise ValidationException("Offer amount is required to record an offer.")
                match.mark_offer_made(offer_amount, user_id, notes)
            else:
                match.update_status(status, user_id, notes)
            _load_related(match)

        logger.info(f"Match {match_id} status set to {status.value}")
        return match

    def update_notes(self, match_id: uuid.UUID, notes: Optional[str], user_id: Optional[uuid.UUID]) -> PropertyMatch:
        require_user(user_id, "update match notes")
        with self._uow() as repo:
            match = self._require(repo.matches.get_by_id, "PropertyMatch", match_id)
            match.update_notes(notes, user_id)
            _load_related(match)
        return match

    def delete_match(self, match_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> None:
        require_user(user_id, "delete a match")
        with self._uow() as repo:
            match = self._require(repo.matches.get_by_id, "PropertyMatch", match_id)
            repo.matches.remove(match)
        logger.info(f"Deleted match {match_id}")
