from .base import Base, DomainEventsMixin
from .applicant import Applicant
from .housing_search import HousingSearch
from .property import Property, PropertyPhoto
from .match import PropertyMatch
from .reminder import FollowUpReminder

__all__ = [
    'Base',
    'DomainEventsMixin',
    'Applicant',
    'HousingSearch',
    'Property',
    'PropertyPhoto',
    'PropertyMatch',
    'FollowUpReminder',
]
