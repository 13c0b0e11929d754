#!/usr/bin/env python3
"""
Applicant service - intake, board review and agreement recording.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.enums import AgreementType, ApplicationStatus, BoardDecision
from core.exceptions import DuplicateEmailException, ValidationException, require_user
from core.utils import utcnow
from database.models import Applicant, HousingSearch

from .base import ApplicationService

logger = logging.getLogger(__name__)


def _load_searches(applicant: Applicant) -> Applicant:
    # Detached entities cannot lazy-load
    list(applicant.housing_searches)
    return applicant


@dataclass
class BoardDecisionResult:
    applicant: Applicant
    housing_search: Optional[HousingSearch] = None


class ApplicantService(ApplicationService):
    """Service for managing applicants."""

    def create_applicant(self, data: Dict[str, Any], user_id: Optional[uuid.UUID]) -> Applicant:
        """
        Create an applicant in Submitted status.

        Raises:
            DuplicateEmailException: another non-deleted applicant has the email
        """
        require_user(user_id, "create an applicant")

        with self._uow() as repo:
            email = (data.get('husband_email') or '').strip()
            if email and repo.applicants.get_by_email(email) is not None:
                raise DuplicateEmailException(email)

            applicant = Applicant.create(created_by=user_id, **data)
            repo.add(applicant)
            _load_searches(applicant)
            events = self._collect(applicant)

        logger.info(f"Created applicant {applicant.id} ({applicant.family_name})")
        self._publish(events)
        return applicant

    def get_applicant(self, applicant_id: uuid.UUID) -> Applicant:
        with self._uow() as repo:
            applicant = self._require(repo.applicants.get_by_id, "Applicant", applicant_id)
            return _load_searches(applicant)

    def list_applicants(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Applicant]:
        parsed = self._parse(ApplicationStatus, status, "application status") if status else None
        with self._uow() as repo:
            applicants = repo.applicants.list_applicants(status=parsed, limit=limit, offset=offset)
            return [_load_searches(a) for a in applicants]

    def update_applicant(
        self,
        applicant_id: uuid.UUID,
        data: Dict[str, Any],
        user_id: Optional[uuid.UUID]
    ) -> Applicant:
        require_user(user_id, "update an applicant")

        with self._uow() as repo:
            applicant = self._require(repo.applicants.get_by_id, "Applicant", applicant_id)

            email = (data.get('husband_email') or '').strip()
            if email and repo.applicants.get_by_email(email, exclude_id=applicant.id) is not None:
                raise DuplicateEmailException(email)

            children = data.pop('children', None)
            applicant.update_contact(modified_by=user_id, **data)
            if children is not None:
                applicant.update_children(children, user_id)
            _load_searches(applicant)
        return applicant

    def delete_applicant(self, applicant_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> None:
        require_user(user_id, "delete an applicant")
        with self._uow() as repo:
            applicant = self._require(repo.applicants.get_by_id, "Applicant", applicant_id)
            applicant.soft_delete(user_id)
        logger.info(f"Soft-deleted applicant {applicant_id}")

    def set_board_decision(
        self,
        applicant_id: uuid.UUID,
        decision: Any,
        notes: Optional[str],
        user_id: Optional[uuid.UUID],
        review_date: Optional[datetime] = None
    ) -> BoardDecisionResult:
        """
        Record the board decision; Approved opens the first housing search.

        The search is created in AwaitingAgreements in the same unit of work,
        so an approval never exists without its search.
        """
        require_user(user_id, "record a board decision")
        decision = self._parse(BoardDecision, decision, "board decision")

        with self._uow() as repo:
            applicant = self._require(repo.applicants.get_by_id, "Applicant", applicant_id)
            _load_searches(applicant)
            applicant.set_board_decision(decision, notes, user_id, review_date)

            search = None
            if decision == BoardDecision.APPROVED:
                if repo.housing_searches.get_active_for_applicant(applicant.id) is not None:
                    raise ValidationException("Applicant already has an active housing search.")
                number = repo.housing_searches.next_search_number(utcnow().year)
                search = HousingSearch.start(applicant.id, number, user_id)
                repo.add(search)
                applicant.housing_searches.append(search)

            events = self._collect(applicant, search)

        logger.info(f"Board decision {decision.value} recorded for applicant {applicant_id}")
        self._publish(events)
        return BoardDecisionResult(applicant=applicant, housing_search=search)

    def reject_applicant(
        self,
        applicant_id: uuid.UUID,
        reason: Optional[str],
        user_id: Optional[uuid.UUID]
    ) -> Applicant:
        require_user(user_id, "reject an applicant")
        with self._uow() as repo:
            applicant = self._require(repo.applicants.get_by_id, "Applicant", applicant_id)
            applicant.reject(reason, user_id)
            _load_searches(applicant)
        logger.info(f"Rejected applicant {applicant_id}")
        return applicant

    def record_agreement(
        self,
        applicant_id: uuid.UUID,
        agreement_type: Any,
        document_url: str,
        user_id: Optional[uuid.UUID]
    ) -> HousingSearch:
        """Record a signed agreement on the applicant's active housing search."""
        require_user(user_id, "record an agreement")
        agreement_type = self._parse(AgreementType, agreement_type, "agreement type")

        with self._uow() as repo:
            self._require(repo.applicants.get_by_id, "Applicant", applicant_id)
            search = repo.housing_searches.get_active_for_applicant(applicant_id)
            if search is None:
                raise ValidationException("Applicant has no active housing search.")
            search.record_agreement(agreement_type, document_url, user_id)

        logger.info(f"Recorded {agreement_type.value} for housing search {search.id}")
        return search
