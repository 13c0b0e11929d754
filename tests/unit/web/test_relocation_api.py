#!/usr/bin/env python3
"""
API tests for the relocation endpoints.

Runs the FastAPI app with TestClient against in-memory SQLite and a
synchronous event dispatcher, so re-matching happens inside the request.

Usage:
    python -m pytest tests/unit/web/test_relocation_api.py -v
"""

import unittest
import uuid

import pytest
from fastapi.testclient import TestClient

from core.app_context import AppContext
from core.config_loader import AppConfig
from web.backend.app import create_app
from web.backend.dependencies import get_app_context
from tests import STAFF_USER_ID, create_test_session_factory

HEADERS = {"X-User-Id": str(STAFF_USER_ID)}

APPLICANT = {
    "husband_first_name": "Moshe",
    "husband_last_name": "Cohen",
    "husband_email": "moshe.cohen@example.com",
    "wife_first_name": "Sarah",
    "children": [{"name": "Yosef", "age": 7}],
}

PREFERENCES = {
    "budget": 500000,
    "min_bedrooms": 4,
    "min_bathrooms": 2,
    "required_features": ["garage", "basement"],
    "move_timeline": "ShortTerm",
}

PROPERTY = {
    "street": "123 Main St",
    "city": "Union",
    "price": 450000,
    "bedrooms": 4,
    "bathrooms": 2.5,
    "zip_code": "07083",
    "features": ["Garage", "Finished Basement", "Central Air"],
}


@pytest.mark.db
class RelocationApiTestCase(unittest.TestCase):

    def setUp(self):
        self.context = AppContext.build(AppConfig(), session_factory=create_test_session_factory())
        self.app = create_app()
        self.app.dependency_overrides[get_app_context] = lambda: self.context
        self.client = TestClient(self.app)

    def tearDown(self):
        self.app.dependency_overrides.clear()

    # Helpers

    def create_applicant(self, **overrides):
        body = dict(APPLICANT, **overrides)
        response = self.client.post("/api/applicants", json=body, headers=HEADERS)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["applicant"]

    def approve(self, applicant_id):
        response = self.client.post(
            f"/api/applicants/{applicant_id}/board-decision",
            json={"decision": "approved", "notes": "Welcome to the community"},
            headers=HEADERS,
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def sign_agreements(self, applicant_id):
        for agreement_type in ("BrokerAgreement", "CommunityRules"):
            response = self.client.post(
                f"/api/applicants/{applicant_id}/agreements",
                json={"agreement_type": agreement_type, "document_url": f"https://docs.example.com/{agreement_type}.pdf"},
                headers=HEADERS,
            )
            self.assertEqual(response.status_code, 200, response.text)
        return response.json()["housing_search"]

    def searching_family(self):
        applicant = self.create_applicant()
        search = self.approve(applicant["id"])["housing_search"]
        response = self.client.put(f"/api/applicants/{applicant['id']}/preferences", json=PREFERENCES, headers=HEADERS)
        self.assertEqual(response.status_code, 200, response.text)
        self.sign_agreements(applicant["id"])
        response = self.client.put(
            f"/api/housing-searches/{search['id']}/stage", json={"new_stage": "Searching"}, headers=HEADERS
        )
        self.assertEqual(response.status_code, 200, response.text)
        return applicant, search

    def create_property(self, **overrides):
        response = self.client.post("/api/properties", json=dict(PROPERTY, **overrides), headers=HEADERS)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["property"]


class TestHealth(RelocationApiTestCase):

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")


class TestRelocationFlow(RelocationApiTestCase):

    def test_new_listing_is_auto_matched_to_searching_family(self):
        applicant, search = self.searching_family()

        prop = self.create_property()

        response = self.client.get(f"/api/housing-searches/{search['id']}/matches")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["count"], 1)
        match = data["matches"][0]
        self.assertEqual(match["property_id"], prop["id"])
        self.assertEqual(match["match_score"], 100)
        self.assertTrue(match["is_auto_matched"])
        self.assertEqual(match["status"], "MatchIdentified")
        self.assertEqual(match["family_name"], "Cohen")
        self.assertEqual(match["breakdown"]["totalScore"], 100)
        self.assertEqual(match["breakdown"]["cityNotes"], "In target area (Union)")

        reminders = self.context.reminder_service.list_for_entity("PropertyMatch", uuid.UUID(match["id"]))
        self.assertEqual(len(reminders), 1)

        by_property = self.client.get(f"/api/properties/{prop['id']}/matches").json()
        self.assertEqual(by_property["count"], 1)

    def test_board_approval_opens_search(self):
        applicant = self.create_applicant()
        data = self.approve(applicant["id"])

        self.assertEqual(data["applicant"]["status"], "Approved")
        search = data["housing_search"]
        self.assertEqual(search["stage"], "AwaitingAgreements")
        self.assertEqual(search["allowed_stages"], ["Searching"])
        self.assertTrue(search["search_number"].startswith("HS-"))

        fetched = self.client.get(f"/api/applicants/{applicant['id']}").json()["applicant"]
        self.assertEqual([s["id"] for s in fetched["housing_searches"]], [search["id"]])

    def test_contract_falls_through_and_search_resumes(self):
        _, search = self.searching_family()
        prop = self.create_property()
        url = f"/api/housing-searches/{search['id']}/stage"

        response = self.client.put(url, json={
            "new_stage": "UnderContract",
            "contract": {"price": 440000, "property_id": prop["id"]},
        }, headers=HEADERS)
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["to_stage"], "UnderContract")
        self.assertEqual(response.json()["housing_search"]["contract_price"], 440000)

        response = self.client.put(url, json={"new_stage": "Searching", "reason": "Financing fell through"},
                                   headers=HEADERS)
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()["housing_search"]
        self.assertEqual(body["stage"], "Searching")
        self.assertEqual(body["failed_contract_count"], 1)
        self.assertIsNone(body["contract_price"])

    def test_manual_match_and_offer(self):
        _, search = self.searching_family()
        # Outside the target area and two bedrooms short: below the new-listing threshold
        prop = self.create_property(city="Newark", bedrooms=2)
        self.assertEqual(self.client.get(f"/api/housing-searches/{search['id']}/matches").json()["count"], 0)

        response = self.client.post("/api/matches", json={
            "housing_search_id": search["id"], "property_id": prop["id"], "notes": "Family asked to see it",
        }, headers=HEADERS)
        self.assertEqual(response.status_code, 201, response.text)
        match = response.json()["match"]
        self.assertEqual(match["match_score"], 60)
        self.assertFalse(match["is_auto_matched"])

        response = self.client.put(f"/api/matches/{match['id']}/status", json={"status": "OfferMade"}, headers=HEADERS)
        self.assertEqual(response.status_code, 400)

        response = self.client.put(f"/api/matches/{match['id']}/status",
                                   json={"status": "OfferMade", "offer_amount": 430000}, headers=HEADERS)
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["match"]["status"], "OfferMade")
        self.assertEqual(response.json()["match"]["offer_amount"], 430000)

    def test_preference_update_rescores_matches(self):
        _, search = self.searching_family()
        self.create_property()

        response = self.client.put(f"/api/housing-searches/{search['id']}/preferences",
                                   json=dict(PREFERENCES, min_bedrooms=5), headers=HEADERS)
        self.assertEqual(response.status_code, 200, response.text)

        matches = self.client.get(f"/api/housing-searches/{search['id']}/matches").json()["matches"]
        self.assertEqual([m["match_score"] for m in matches], [90])

    def test_property_photos_and_payment(self):
        prop = self.create_property(annual_taxes=12000)
        photo = self.client.post(f"/api/properties/{prop['id']}/photos",
                                 json={"url": "https://img.example.com/front.jpg"}, headers=HEADERS)
        self.assertEqual(photo.status_code, 201, photo.text)
        self.assertTrue(photo.json()["photo"]["is_primary"])

        fetched = self.client.get(f"/api/properties/{prop['id']}").json()["property"]
        self.assertEqual(len(fetched["photos"]), 1)

        payment = self.client.get(f"/api/properties/{prop['id']}/monthly-payment",
                                  params={"down_payment": 450000, "interest_rate": 6.5})
        self.assertEqual(payment.status_code, 200, payment.text)
        self.assertEqual(payment.json()["monthly_payment"], 0)


class TestErrorMapping(RelocationApiTestCase):

    def test_missing_user_is_401(self):
        response = self.client.post("/api/applicants", json=APPLICANT)
        self.assertEqual(response.status_code, 401)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["type"], "AuthenticationRequiredException")

    def test_invalid_user_header_is_400(self):
        response = self.client.post("/api/applicants", json=APPLICANT, headers={"X-User-Id": "staff"})
        self.assertEqual(response.status_code, 400)

    def test_unknown_applicant_is_404(self):
        response = self.client.get(f"/api/applicants/{uuid.uuid4()}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["type"], "NotFoundException")

    def test_malformed_id_is_400(self):
        response = self.client.get("/api/applicants/not-a-uuid")
        self.assertEqual(response.status_code, 400)

    def test_duplicate_email_is_409(self):
        self.create_applicant()
        response = self.client.post("/api/applicants",
                                    json=dict(APPLICANT, husband_email="MOSHE.COHEN@example.com"), headers=HEADERS)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["type"], "DuplicateEmailException")

    def test_duplicate_match_is_409(self):
        _, search = self.searching_family()
        prop = self.create_property()
        response = self.client.post("/api/matches", json={
            "housing_search_id": search["id"], "property_id": prop["id"],
        }, headers=HEADERS)
        self.assertEqual(response.status_code, 409)

    def test_illegal_transition_is_400_and_changes_nothing(self):
        applicant = self.create_applicant()
        search = self.approve(applicant["id"])["housing_search"]

        response = self.client.put(f"/api/housing-searches/{search['id']}/stage",
                                   json={"new_stage": "MovedIn"}, headers=HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["type"], "StageTransitionException")

        current = self.client.get(f"/api/housing-searches/{search['id']}").json()["housing_search"]
        self.assertEqual(current["stage"], "AwaitingAgreements")

    def test_agreements_required_before_searching(self):
        applicant = self.create_applicant()
        search = self.approve(applicant["id"])["housing_search"]

        response = self.client.put(f"/api/housing-searches/{search['id']}/stage",
                                   json={"new_stage": "Searching"}, headers=HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(len(response.json()["errors"]), 2)

    def test_invalid_board_decision_is_400(self):
        applicant = self.create_applicant()
        response = self.client.post(f"/api/applicants/{applicant['id']}/board-decision",
                                    json={"decision": "Maybe"}, headers=HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertIn("Valid values", response.json()["error"])

    def test_malformed_body_is_400(self):
        response = self.client.post("/api/properties", json={"street": "1 Elm"}, headers=HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["type"], "RequestValidationError")
