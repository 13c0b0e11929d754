import logging

from sqlalchemy.orm import Session

from database.repositories import (
    ApplicantRepository,
    HousingSearchRepository,
    MatchRepository,
    PropertyRepository,
    ReminderRepository,
)

logger = logging.getLogger(__name__)


class RelocationRepository:
    """
    Facade over the per-aggregate repositories sharing one Session.

    Usage:
        repo.properties.get_active_listings()
        repo.matches.exists(search_id, property_id)
    """

    def __init__(self, db: Session):
        self.db = db
        self.applicants = ApplicantRepository(db)
        self.housing_searches = HousingSearchRepository(db)
        self.properties = PropertyRepository(db)
        self.matches = MatchRepository(db)
        self.reminders = ReminderRepository(db)

    def add(self, entity):
        self.db.add(entity)
        return entity

    def flush(self):
        self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
