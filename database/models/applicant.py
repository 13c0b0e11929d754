import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Uuid, Index
from sqlalchemy.orm import relationship

from core.enums import ApplicationStatus, BoardDecision
from core.exceptions import ValidationException
from core.utils import append_note, utcnow
from events.models import ApplicantBoardDecisionMade, ApplicantCreated

from .base import Base, DomainEventsMixin, JSONType, enum_column_type


class Applicant(DomainEventsMixin, Base):
    """
    A family applying for relocation assistance.

    Board review lives here, not on the housing search: the decision can be
    recorded only while the application is Submitted, and an Approved
    decision is what opens the first housing search.
    """
    __tablename__ = 'applicant'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    husband_first_name = Column(Text, nullable=False)
    husband_last_name = Column(Text, nullable=False)
    husband_email = Column(Text, nullable=False)
    husband_phone = Column(Text, nullable=True)

    wife_first_name = Column(Text, nullable=True)
    wife_maiden_name = Column(Text, nullable=True)

    address = Column(JSONType, nullable=True)
    children = Column(JSONType, nullable=False, default=list)
    current_community = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(enum_column_type(ApplicationStatus), nullable=False, default=ApplicationStatus.SUBMITTED)

    board_decision = Column(enum_column_type(BoardDecision), nullable=False, default=BoardDecision.PENDING)
    board_decision_notes = Column(Text, nullable=True)
    board_review_date = Column(TIMESTAMP(timezone=True), nullable=True)
    board_reviewed_by = Column(Uuid, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    modified_by = Column(Uuid, nullable=True)
    modified_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    housing_searches = relationship(
        "HousingSearch",
        back_populates="applicant",
        order_by="HousingSearch.created_at",
    )

    __table_args__ = (
        Index('idx_applicant_email', 'husband_email'),
        Index('idx_applicant_status', 'status'),
    )

    @classmethod
    def create(
        cls,
        husband_first_name: str,
        husband_last_name: str,
        husband_email: str,
        created_by: uuid.UUID,
        husband_phone: Optional[str] = None,
        wife_first_name: Optional[str] = None,
        wife_maiden_name: Optional[str] = None,
        address: Optional[Dict[str, Any]] = None,
        children: Optional[List[Dict[str, Any]]] = None,
        current_community: Optional[str] = None,
    ) -> "Applicant":
        errors = cls._validate_names(husband_first_name, husband_last_name, husband_email)
        if errors:
            raise ValidationException.from_errors(errors)

        now = utcnow()
        applicant = cls(
            id=uuid.uuid4(),
            husband_first_name=husband_first_name.strip(),
            husband_last_name=husband_last_name.strip(),
            husband_email=husband_email.strip().lower(),
            husband_phone=husband_phone,
            wife_first_name=wife_first_name,
            wife_maiden_name=wife_maiden_name,
            address=address,
            children=list(children or []),
            current_community=current_community,
            housing_searches=[],
            status=ApplicationStatus.SUBMITTED,
            board_decision=BoardDecision.PENDING,
            is_deleted=False,
            created_by=created_by,
            created_at=now,
            modified_by=created_by,
            modified_at=now,
        )
        applicant.record_event(ApplicantCreated(applicant_id=applicant.id))
        return applicant

    @staticmethod
    def _validate_names(first_name: Optional[str], last_name: Optional[str], email: Optional[str]) -> List[str]:
        errors = []
        if not first_name or not first_name.strip():
            errors.append("First name is required")
        if not last_name or not last_name.strip():
            errors.append("Last name is required")
        if not email or '@' not in email:
            errors.append("A valid email address is required")
        return errors

    @property
    def family_name(self) -> str:
        return self.husband_last_name

    @property
    def active_housing_search(self):
        return next((s for s in self.housing_searches if s.is_active), None)

    @property
    def is_approved(self) -> bool:
        return self.status == ApplicationStatus.APPROVED

    def _touch(self, user_id: Optional[uuid.UUID]) -> None:
        self.modified_by = user_id
        self.modified_at = utcnow()

    def update_contact(
        self,
        husband_first_name: str,
        husband_last_name: str,
        husband_email: str,
        modified_by: uuid.UUID,
        husband_phone: Optional[str] = None,
        wife_first_name: Optional[str] = None,
        wife_maiden_name: Optional[str] = None,
        address: Optional[Dict[str, Any]] = None,
        current_community: Optional[str] = None,
    ) -> None:
        errors = self._validate_names(husband_first_name, husband_last_name, husband_email)
        if errors:
            raise ValidationException.from_errors(errors)

        self.husband_first_name = husband_first_name.strip()
        self.husband_last_name = husband_last_name.strip()
        self.husband_email = husband_email.strip().lower()
        self.husband_phone = husband_phone
        self.wife_first_name = wife_first_name
        self.wife_maiden_name = wife_maiden_name
        self.address = address
        self.current_community = current_community
        self._touch(modified_by)

    def update_children(self, children: Optional[List[Dict[str, Any]]], modified_by: uuid.UUID) -> None:
        self.children = list(children or [])
        self._touch(modified_by)

    def set_board_decision(
        self,
        decision: BoardDecision,
        notes: Optional[str],
        reviewed_by: uuid.UUID,
        review_date: Optional[datetime] = None,
    ) -> None:
        """
        Record the board's decision.

        Only allowed while Submitted. Approved moves the application to
        Approved; the caller then opens the housing search.
        """
        if self.status != ApplicationStatus.SUBMITTED:
            raise ValidationException(
                f"Board decision can only be set while the application is Submitted "
                f"(current status: {self.status.value})."
            )

        self.board_decision = decision
        self.board_decision_notes = notes
        self.board_review_date = review_date or utcnow()
        self.board_reviewed_by = reviewed_by
        if decision == BoardDecision.APPROVED:
            self.status = ApplicationStatus.APPROVED
        self._touch(reviewed_by)

        self.record_event(ApplicantBoardDecisionMade(
            applicant_id=self.id, decision=decision, reviewed_by=reviewed_by
        ))

    def reject(self, reason: Optional[str], modified_by: uuid.UUID) -> None:
        if self.status != ApplicationStatus.SUBMITTED:
            raise ValidationException(
                f"Can only reject an application in Submitted status (current status: {self.status.value})."
            )
        if self.board_decision != BoardDecision.REJECTED:
            raise ValidationException("Board decision must be Rejected before rejecting the application.")

        self.notes = append_note(self.notes, "Rejected", reason)
        self.status = ApplicationStatus.REJECTED
        self._touch(modified_by)

    def soft_delete(self, deleted_by: uuid.UUID) -> None:
        self.is_deleted = True
        self._touch(deleted_by)

    def restore(self, restored_by: uuid.UUID) -> None:
        self.is_deleted = False
        self._touch(restored_by)
