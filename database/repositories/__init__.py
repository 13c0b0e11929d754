from database.repositories.base import BaseRepository
from database.repositories.applicant import ApplicantRepository
from database.repositories.housing_search import HousingSearchRepository
from database.repositories.property import PropertyRepository
from database.repositories.match import MatchRepository
from database.repositories.reminder import ReminderRepository

__all__ = [
    'BaseRepository',
    'ApplicantRepository',
    'HousingSearchRepository',
    'PropertyRepository',
    'MatchRepository',
    'ReminderRepository',
]
