import uuid
from typing import Optional

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Boolean, Integer, Numeric, Uuid, Index
from sqlalchemy.orm import relationship

from core.enums import AgreementType, HousingSearchStage
from core.exceptions import ValidationException
from core.scorer.models import HousingPreferences
from core.stages.machine import (
    StageTransition,
    StageTransitionRequest,
    TransitionAction,
    plan_transition,
)
from core.utils import append_note, utcnow
from events.models import (
    HousingPreferencesUpdated,
    HousingSearchStageChanged,
    HousingSearchStarted,
)

from .base import Base, DomainEventsMixin, JSONType, enum_column_type


class HousingSearch(DomainEventsMixin, Base):
    """
    One family's house-hunting journey.

    Stage changes go through change_stage(), which plans the move with
    core.stages.plan_transition() and applies it in a single step. Rows are
    versioned; a stale update raises StaleDataError at flush.
    """
    __tablename__ = 'housing_search'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    applicant_id = Column(Uuid, ForeignKey('applicant.id', ondelete='CASCADE'), nullable=False)
    search_number = Column(Text, nullable=False, unique=True)

    stage = Column(enum_column_type(HousingSearchStage), nullable=False, default=HousingSearchStage.AWAITING_AGREEMENTS)
    stage_changed_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    preferences = Column(JSONType, nullable=True)

    # Current contract
    contract_property_id = Column(Uuid, nullable=True)
    contract_price = Column(Numeric(12, 2), nullable=True)
    contract_date = Column(TIMESTAMP(timezone=True), nullable=True)
    expected_closing_date = Column(TIMESTAMP(timezone=True), nullable=True)

    actual_closing_date = Column(TIMESTAMP(timezone=True), nullable=True)
    moved_in_date = Column(TIMESTAMP(timezone=True), nullable=True)

    failed_contract_count = Column(Integer, nullable=False, default=0)
    failed_contracts = Column(JSONType, nullable=False, default=list)

    broker_agreement_url = Column(Text, nullable=True)
    broker_agreement_signed_at = Column(TIMESTAMP(timezone=True), nullable=True)
    community_rules_url = Column(Text, nullable=True)
    community_rules_signed_at = Column(TIMESTAMP(timezone=True), nullable=True)

    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    modified_by = Column(Uuid, nullable=True)
    modified_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    version = Column(Integer, nullable=False)

    applicant = relationship("Applicant", back_populates="housing_searches")
    matches = relationship("PropertyMatch", back_populates="housing_search", cascade="all, delete-orphan")

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        Index('idx_housing_search_applicant', 'applicant_id'),
        Index('idx_housing_search_stage', 'stage', 'is_active'),
    )

    @classmethod
    def start(cls, applicant_id: uuid.UUID, search_number: str, created_by: uuid.UUID) -> "HousingSearch":
        """Open a search in AwaitingAgreements for a board-approved applicant."""
        if applicant_id is None:
            raise ValidationException("Applicant ID is required")
        if not search_number or not search_number.strip():
            raise ValidationException("Search number is required")

        now = utcnow()
        search = cls(
            id=uuid.uuid4(),
            applicant_id=applicant_id,
            search_number=search_number,
            stage=HousingSearchStage.AWAITING_AGREEMENTS,
            stage_changed_at=now,
            preferences=None,
            failed_contract_count=0,
            failed_contracts=[],
            is_active=True,
            created_by=created_by,
            created_at=now,
            modified_by=created_by,
            modified_at=now,
        )
        search.record_event(HousingSearchStarted(housing_search_id=search.id, applicant_id=applicant_id))
        return search

    def _touch(self, user_id: Optional[uuid.UUID]) -> None:
        self.modified_by = user_id
        self.modified_at = utcnow()

    # Agreements

    @property
    def broker_agreement_signed(self) -> bool:
        return self.broker_agreement_signed_at is not None

    @property
    def community_rules_signed(self) -> bool:
        return self.community_rules_signed_at is not None

    def record_agreement(self, agreement_type: AgreementType, document_url: str, user_id: uuid.UUID) -> None:
        if not document_url or not document_url.strip():
            raise ValidationException("Document URL is required to record a signed agreement.")

        signed_at = utcnow()
        if agreement_type == AgreementType.BROKER_AGREEMENT:
            self.broker_agreement_url = document_url.strip()
            self.broker_agreement_signed_at = signed_at
        elif agreement_type == AgreementType.COMMUNITY_RULES:
            self.community_rules_url = document_url.strip()
            self.community_rules_signed_at = signed_at
        else:
            raise ValidationException(f"Unknown agreement type: {agreement_type}")
        self._touch(user_id)

    # Preferences

    def get_preferences(self) -> HousingPreferences:
        return HousingPreferences.from_dict(self.preferences)

    def update_preferences(self, preferences: HousingPreferences, user_id: uuid.UUID) -> None:
        self.preferences = preferences.to_dict()
        self._touch(user_id)
        self.record_event(HousingPreferencesUpdated(
            housing_search_id=self.id, applicant_id=self.applicant_id, updated_by=user_id
        ))

    # Stages

    def change_stage(self, request: StageTransitionRequest, user_id: uuid.UUID) -> StageTransition:
        """
        Move to request.new_stage if the machine allows it.

        Raises before touching any field when the request is rejected.
        """
        plan = plan_transition(
            self.stage,
            request,
            broker_agreement_signed=self.broker_agreement_signed,
            community_rules_signed=self.community_rules_signed,
        )
        self._apply_transition(plan, user_id)
        return plan

    def _apply_transition(self, plan: StageTransition, user_id: uuid.UUID) -> None:
        now = utcnow()

        if plan.action == TransitionAction.PAUSE:
            self.notes = append_note(self.notes, "Paused", plan.reason)

        elif plan.action == TransitionAction.PUT_UNDER_CONTRACT:
            self.contract_property_id = plan.contract.property_id
            self.contract_price = plan.contract.price
            self.contract_date = now
            self.expected_closing_date = plan.contract.expected_closing_date

        elif plan.action == TransitionAction.CONTRACT_FELL_THROUGH:
            self._retire_contract(plan.reason, now)

        elif plan.action == TransitionAction.RECORD_CLOSING:
            self.actual_closing_date = plan.closing_date

        elif plan.action == TransitionAction.RECORD_MOVED_IN:
            self.moved_in_date = plan.moved_in_date

        old_stage = self.stage
        self.stage = plan.to_stage
        self.stage_changed_at = now
        self.modified_by = user_id
        self.modified_at = now

        self.record_event(HousingSearchStageChanged(
            housing_search_id=self.id,
            applicant_id=self.applicant_id,
            old_stage=old_stage,
            new_stage=plan.to_stage,
            changed_by=user_id,
            occurred_at=now,
        ))

    def _retire_contract(self, reason: Optional[str], failed_at) -> None:
        if self.contract_price is not None and self.contract_date is not None:
            attempt = {
                'property_id': str(self.contract_property_id) if self.contract_property_id else None,
                'contract_price': str(self.contract_price),
                'contract_date': self.contract_date.isoformat(),
                'failed_date': failed_at.isoformat(),
                'reason': reason,
            }
            # Reassign so the JSON column is flagged dirty
            self.failed_contracts = list(self.failed_contracts or []) + [attempt]

        self.failed_contract_count = (self.failed_contract_count or 0) + 1
        self.contract_property_id = None
        self.contract_price = None
        self.contract_date = None
        self.expected_closing_date = None
        self.actual_closing_date = None

    @property
    def is_under_contract(self) -> bool:
        return self.stage == HousingSearchStage.UNDER_CONTRACT and self.contract_property_id is not None

    @property
    def is_complete(self) -> bool:
        return self.stage == HousingSearchStage.MOVED_IN

    # Misc

    def update_notes(self, notes: Optional[str], user_id: uuid.UUID) -> None:
        self.notes = notes
        self._touch(user_id)

    def deactivate(self, user_id: uuid.UUID) -> None:
        self.is_active = False
        self._touch(user_id)

    def reactivate(self, user_id: uuid.UUID) -> None:
        self.is_active = True
        self._touch(user_id)
