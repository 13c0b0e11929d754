#!/usr/bin/env python3
"""
Housing search service - stage changes, preferences and agreements.

Stage changes and preference updates publish their domain events after the
unit of work commits, which is what drives re-matching.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.enums import AgreementType
from core.exceptions import ValidationException, require_user
from core.scorer.models import HousingPreferences
from core.stages.machine import ContractDetails, StageTransition, StageTransitionRequest
from core.utils import utcnow
from database.models import HousingSearch

from .base import ApplicationService

logger = logging.getLogger(__name__)


class HousingSearchService(ApplicationService):
    """Service for managing housing searches."""

    def get_housing_search(self, housing_search_id: uuid.UUID) -> HousingSearch:
        with self._uow() as repo:
            return self._require(repo.housing_searches.get_by_id, "HousingSearch", housing_search_id)

    def list_for_applicant(self, applicant_id: uuid.UUID) -> List[HousingSearch]:
        with self._uow() as repo:
            self._require(repo.applicants.get_by_id, "Applicant", applicant_id)
            return repo.housing_searches.get_for_applicant(applicant_id)

    def change_stage(
        self,
        housing_search_id: uuid.UUID,
        request: StageTransitionRequest,
        user_id: Optional[uuid.UUID]
    ) -> StageTransition:
        """
        Apply a stage transition.

        Raises:
            AuthenticationRequiredException: no acting user
            NotFoundException: unknown search
            ValidationException / StageTransitionException: rejected move
            ConcurrencyException: the row changed since it was loaded
        """
        require_user(user_id, "change the stage")

        with self._uow() as repo:
            search = self._require(repo.housing_searches.get_by_id, "HousingSearch", housing_search_id)
            if not search.is_active:
                raise ValidationException("Cannot change the stage of an inactive housing search.")
            plan = search.change_stage(request, user_id)
            events = self._collect(search)

        logger.info(
            f"Housing search {housing_search_id}: {plan.from_stage.value} -> {plan.to_stage.value}"
        )
        self._publish(events)
        return plan

    def start_searching(self, housing_search_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> StageTransition:
        return self.change_stage(housing_search_id, StageTransitionRequest("Searching"), user_id)

    def pause(self, housing_search_id: uuid.UUID, reason: Optional[str], user_id: Optional[uuid.UUID]) -> StageTransition:
        return self.change_stage(housing_search_id, StageTransitionRequest("Paused", reason=reason), user_id)

    def resume(self, housing_search_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> StageTransition:
        return self.change_stage(housing_search_id, StageTransitionRequest("Searching"), user_id)

    def put_under_contract(
        self,
        housing_search_id: uuid.UUID,
        price: Any,
        user_id: Optional[uuid.UUID],
        property_id: Optional[uuid.UUID] = None,
        expected_closing_date: Optional[datetime] = None
    ) -> StageTransition:
        contract = ContractDetails(price=price, property_id=property_id, expected_closing_date=expected_closing_date)
        return self.change_stage(
            housing_search_id, StageTransitionRequest("UnderContract", contract=contract), user_id
        )

    def contract_fell_through(
        self,
        housing_search_id: uuid.UUID,
        reason: Optional[str],
        user_id: Optional[uuid.UUID]
    ) -> StageTransition:
        return self.change_stage(housing_search_id, StageTransitionRequest("Searching", reason=reason), user_id)

    def record_closing(
        self,
        housing_search_id: uuid.UUID,
        closing_date: datetime,
        user_id: Optional[uuid.UUID]
    ) -> StageTransition:
        return self.change_stage(
            housing_search_id, StageTransitionRequest("Closed", closing_date=closing_date), user_id
        )

    def record_move_in(
        self,
        housing_search_id: uuid.UUID,
        moved_in_date: datetime,
        user_id: Optional[uuid.UUID]
    ) -> StageTransition:
        return self.change_stage(
            housing_search_id, StageTransitionRequest("MovedIn", moved_in_date=moved_in_date), user_id
        )

    def update_preferences(
        self,
        housing_search_id: uuid.UUID,
        preferences: Any,
        user_id: Optional[uuid.UUID]
    ) -> HousingSearch:
        """Replace the search preferences. Accepts HousingPreferences or its dict form."""
        require_user(user_id, "update housing preferences")
        if not isinstance(preferences, HousingPreferences):
            preferences = HousingPreferences.from_dict(preferences)

        with self._uow() as repo:
            search = self._require(repo.housing_searches.get_by_id, "HousingSearch", housing_search_id)
            search.update_preferences(preferences, user_id)
            events = self._collect(search)

        logger.info(f"Updated preferences for housing search {housing_search_id}")
        self._publish(events)
        return search

    def record_agreement(
        self,
        housing_search_id: uuid.UUID,
        agreement_type: Any,
        document_url: str,
        user_id: Optional[uuid.UUID]
    ) -> HousingSearch:
        require_user(user_id, "record an agreement")
        agreement_type = self._parse(AgreementType, agreement_type, "agreement type")

        with self._uow() as repo:
            search = self._require(repo.housing_searches.get_by_id, "HousingSearch", housing_search_id)
            search.record_agreement(agreement_type, document_url, user_id)
        return search

    def update_notes(
        self,
        housing_search_id: uuid.UUID,
        notes: Optional[str],
        user_id: Optional[uuid.UUID]
    ) -> HousingSearch:
        require_user(user_id, "update notes")
        with self._uow() as repo:
            search = self._require(repo.housing_searches.get_by_id, "HousingSearch", housing_search_id)
            search.update_notes(notes, user_id)
        return search

    def deactivate(self, housing_search_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> HousingSearch:
        require_user(user_id, "deactivate a housing search")
        with self._uow() as repo:
            search = self._require(repo.housing_searches.get_by_id, "HousingSearch", housing_search_id)
            search.deactivate(user_id)
        logger.info(f"Deactivated housing search {housing_search_id}")
        return search

    def open_new_search(
        self,
        applicant_id: uuid.UUID,
        user_id: Optional[uuid.UUID],
        preferences: Optional[Dict[str, Any]] = None
    ) -> HousingSearch:
        """
        Open another search for an approved applicant.

        Only allowed once the previous search has been deactivated.
        """
        require_user(user_id, "open a housing search")

        with self._uow() as repo:
            applicant = self._require(repo.applicants.get_by_id, "Applicant", applicant_id)
            if not applicant.is_approved:
                raise ValidationException("Only approved applicants can have a housing search.")
            if repo.housing_searches.get_active_for_applicant(applicant.id) is not None:
                raise ValidationException("Applicant already has an active housing search.")

            number = repo.housing_searches.next_search_number(utcnow().year)
            search = HousingSearch.start(applicant.id, number, user_id)
            if preferences:
                search.preferences = HousingPreferences.from_dict(preferences).to_dict()
            repo.add(search)
            events = self._collect(search)

        logger.info(f"Opened housing search {search.search_number} for applicant {applicant_id}")
        self._publish(events)
        return search
