"""Tests for relocation_uow transaction handling on in-memory SQLite."""

import unittest

import pytest

from core.exceptions import ConcurrencyException, ConflictException
from database.models import Applicant, HousingSearch, PropertyMatch
from database.uow import relocation_uow
from tests import STAFF_USER_ID, add_property, add_search, create_test_session_factory


@pytest.mark.db
class TestRelocationUnitOfWork(unittest.TestCase):

    def setUp(self):
        self.session_factory = create_test_session_factory()

    def test_commits_on_success(self):
        applicant, search = add_search(self.session_factory)

        with relocation_uow(self.session_factory) as repo:
            self.assertIsNotNone(repo.applicants.get_by_id(applicant.id))
            self.assertEqual(repo.housing_searches.get_by_id(search.id).search_number, "HS-2026-0001")

    def test_rolls_back_on_error(self):
        with self.assertRaises(RuntimeError):
            with relocation_uow(self.session_factory) as repo:
                repo.add(Applicant.create("Moshe", "Cohen", "cohen@example.com", STAFF_USER_ID))
                raise RuntimeError("boom")

        with relocation_uow(self.session_factory) as repo:
            self.assertIsNone(repo.applicants.get_by_email("cohen@example.com"))

    def test_stale_version_raises_concurrency_exception(self):
        _, search = add_search(self.session_factory)
        table = HousingSearch.__table__

        with self.assertRaises(ConcurrencyException):
            with relocation_uow(self.session_factory) as repo:
                loaded = repo.housing_searches.get_by_id(search.id)
                # Simulate another writer bumping the version after our read
                repo.db.execute(
                    table.update().where(table.c.id == search.id).values(version=table.c.version + 1)
                )
                loaded.update_notes("Changed concurrently", STAFF_USER_ID)

    def test_version_increments_on_update(self):
        _, search = add_search(self.session_factory)
        with relocation_uow(self.session_factory) as repo:
            loaded = repo.housing_searches.get_by_id(search.id)
            start = loaded.version
            loaded.update_notes("First call done", STAFF_USER_ID)

        with relocation_uow(self.session_factory) as repo:
            self.assertEqual(repo.housing_searches.get_by_id(search.id).version, start + 1)

    def test_duplicate_pair_raises_conflict(self):
        _, search = add_search(self.session_factory)
        prop = add_property(self.session_factory)

        def match():
            return PropertyMatch.create(search.id, prop.id, 80, None, False, STAFF_USER_ID)

        with self.assertRaises(ConflictException):
            with relocation_uow(self.session_factory) as repo:
                repo.add(match())
                repo.add(match())

    def test_search_numbers_are_sequential(self):
        add_search(self.session_factory)
        with relocation_uow(self.session_factory) as repo:
            self.assertEqual(repo.housing_searches.next_search_number(2026), "HS-2026-0002")
            self.assertEqual(repo.housing_searches.next_search_number(2027), "HS-2027-0001")
