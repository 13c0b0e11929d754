import uuid
from typing import Any, Optional

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Boolean, Integer, Numeric, Uuid, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from core.enums import PropertyMatchStatus
from core.exceptions import ValidationException
from core.scorer.models import to_decimal
from core.utils import utcnow

from .base import Base, enum_column_type


def _check_score(score: int) -> int:
    if score is None or not 0 <= score <= 100:
        raise ValidationException("Match score must be between 0 and 100")
    return score


class PropertyMatch(Base):
    """
    A scored pairing of a housing search and a property.

    At most one row per (housing_search_id, property_id). match_details holds
    the serialised MatchScoreBreakdown as compact camelCase JSON.
    """
    __tablename__ = 'property_match'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    housing_search_id = Column(Uuid, ForeignKey('housing_search.id', ondelete='CASCADE'), nullable=False)
    property_id = Column(Uuid, ForeignKey('property.id', ondelete='CASCADE'), nullable=False)

    match_score = Column(Integer, nullable=False)
    match_details = Column(Text, nullable=True)

    status = Column(enum_column_type(PropertyMatchStatus), nullable=False, default=PropertyMatchStatus.MATCH_IDENTIFIED)
    is_auto_matched = Column(Boolean, nullable=False, default=False)
    offer_amount = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    modified_by = Column(Uuid, nullable=True)
    modified_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('housing_search_id', 'property_id', name='uq_property_match_search_property'),
        Index('idx_property_match_property', 'property_id'),
        Index('idx_property_match_score', 'match_score'),
    )

    @classmethod
    def create(
        cls,
        housing_search_id: uuid.UUID,
        property_id: uuid.UUID,
        match_score: int,
        match_details: Optional[str],
        is_auto_matched: bool,
        created_by: Optional[uuid.UUID],
        notes: Optional[str] = None,
    ) -> "PropertyMatch":
        if housing_search_id is None:
            raise ValidationException("Housing search ID is required")
        if property_id is None:
            raise ValidationException("Property ID is required")

        return cls(
            id=uuid.uuid4(),
            housing_search_id=housing_search_id,
            property_id=property_id,
            match_score=_check_score(match_score),
            match_details=match_details,
            status=PropertyMatchStatus.MATCH_IDENTIFIED,
            is_auto_matched=is_auto_matched,
            notes=notes,
            created_by=created_by,
            created_at=utcnow(),
        )

    def _touch(self, user_id: Optional[uuid.UUID]) -> None:
        self.modified_by = user_id
        self.modified_at = utcnow()

    def update_score(self, score: int, match_details: Optional[str], modified_by: Optional[uuid.UUID]) -> None:
        self.match_score = _check_score(score)
        self.match_details = match_details
        self._touch(modified_by)

    def update_status(
        self,
        status: PropertyMatchStatus,
        modified_by: Optional[uuid.UUID],
        notes: Optional[str] = None,
    ) -> None:
        self.status = status
        if notes is not None:
            self.notes = notes
        self._touch(modified_by)

    def request_showing(self, modified_by: uuid.UUID) -> None:
        if self.status != PropertyMatchStatus.MATCH_IDENTIFIED:
            raise ValidationException("Can only request showing for matches in MatchIdentified status")
        self.update_status(PropertyMatchStatus.SHOWING_REQUESTED, modified_by)

    def mark_interested(self, modified_by: uuid.UUID, notes: Optional[str] = None) -> None:
        self.update_status(PropertyMatchStatus.APPLICANT_INTERESTED, modified_by, notes)

    def reject(self, modified_by: uuid.UUID, notes: Optional[str] = None) -> None:
        self.update_status(PropertyMatchStatus.APPLICANT_REJECTED, modified_by, notes)

    def mark_offer_made(self, offer_amount: Any, modified_by: uuid.UUID, notes: Optional[str] = None) -> None:
        amount = to_decimal(offer_amount, "Offer amount")
        if amount is None or amount <= 0:
            raise ValidationException("Offer amount must be greater than zero")
        self.offer_amount = amount
        self.update_status(PropertyMatchStatus.OFFER_MADE, modified_by, notes)

    def update_notes(self, notes: Optional[str], modified_by: uuid.UUID) -> None:
        self.notes = notes
        self._touch(modified_by)

    @property
    def is_progressed(self) -> bool:
        """True once the family has moved the match past identification."""
        return self.status != PropertyMatchStatus.MATCH_IDENTIFIED

    housing_search = relationship("HousingSearch", back_populates="matches")
    property = relationship("Property", back_populates="matches")
