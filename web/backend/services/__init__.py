"""Business logic services."""

from .applicant_service import ApplicantService, BoardDecisionResult
from .housing_search_service import HousingSearchService
from .property_service import PropertyService
from .match_service import MatchService
