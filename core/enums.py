"""
Enumerations shared by the domain model, the services and the API schemas.

Values are the canonical names that get persisted, so ``Stage.value`` is exactly
what ends up in the ``stage`` column regardless of how a caller spelled it.
"""

from enum import Enum
from typing import Optional, Type, TypeVar

E = TypeVar('E', bound=Enum)


class HousingSearchStage(str, Enum):
    """Lifecycle stages of a housing search."""
    AWAITING_AGREEMENTS = "AwaitingAgreements"
    SEARCHING = "Searching"
    UNDER_CONTRACT = "UnderContract"
    CLOSED = "Closed"
    MOVED_IN = "MovedIn"
    PAUSED = "Paused"


class ApplicationStatus(str, Enum):
    """Applicant-level status that gates housing search creation."""
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class BoardDecision(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    DEFERRED = "Deferred"


class ListingStatus(str, Enum):
    ACTIVE = "Active"
    UNDER_CONTRACT = "UnderContract"
    SOLD = "Sold"
    OFF_MARKET = "OffMarket"


class PropertyMatchStatus(str, Enum):
    """Progress of a property match through showings and offers."""
    MATCH_IDENTIFIED = "MatchIdentified"
    SHOWING_REQUESTED = "ShowingRequested"
    APPLICANT_INTERESTED = "ApplicantInterested"
    OFFER_MADE = "OfferMade"
    APPLICANT_REJECTED = "ApplicantRejected"


class MoveTimeline(str, Enum):
    IMMEDIATE = "Immediate"      # < 3 months
    SHORT_TERM = "ShortTerm"     # 3-6 months
    MEDIUM_TERM = "MediumTerm"   # 6-12 months
    LONG_TERM = "LongTerm"       # 1-2 years
    EXTENDED = "Extended"        # 2+ years
    FLEXIBLE = "Flexible"
    NOT_SURE = "NotSure"
    NEVER = "Never"              # investors


class AgreementType(str, Enum):
    """Agreements an approved family must sign before searching."""
    BROKER_AGREEMENT = "BrokerAgreement"
    COMMUNITY_RULES = "CommunityRules"


class ReminderPriority(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    URGENT = "Urgent"


class ReminderStatus(str, Enum):
    OPEN = "Open"
    COMPLETED = "Completed"
    DISMISSED = "Dismissed"
    SNOOZED = "Snoozed"


def parse_enum(enum_cls: Type[E], raw: Optional[str]) -> Optional[E]:
    """
    Case-insensitive lookup of an enum member by its canonical value.

    Returns None when the input does not name a member; callers decide
    which error to raise.
    """
    if raw is None:
        return None
    if isinstance(raw, enum_cls):
        return raw

    key = str(raw).strip().lower()
    if not key:
        return None

    for member in enum_cls:
        if member.value.lower() == key:
            return member
    return None
