#!/usr/bin/env python3
"""
Re-matching Orchestrator - one handler per triggering domain event.

- PropertyCreatedHandler: a new Active listing is scored against every
  active search in Searching (stricter property_created_min_score).
- HousingSearchStageChangedHandler: a search entering Searching is scored
  against every Active listing it is not matched to yet.
- HousingPreferencesUpdatedHandler: existing matches are re-scored (and
  possibly retired), then unmatched listings are scored.

Each handler processes its whole candidate set inside one unit of work and
commits once. Reminders for high-score new matches are created afterwards,
best-effort: a failed reminder is logged and counted, never raised.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from core.config_loader import MatchingConfig, ReminderConfig
from core.enums import HousingSearchStage, ListingStatus, ReminderPriority
from core.matcher.lifecycle import MatchLifecycleManager
from core.matcher.policy import RescoreDecision, is_high_score
from core.scorer.service import PropertyMatchingService
from database.uow import relocation_uow
from events.models import HousingPreferencesUpdated, HousingSearchStageChanged, PropertyCreated

logger = logging.getLogger(__name__)

REMINDER_ENTITY_TYPE = "PropertyMatch"


@dataclass
class PendingReminder:
    """Data captured inside the unit of work for a reminder sent after commit."""
    match_id: uuid.UUID
    score: int
    family_name: str
    street: str
    city: str
    created_by: Optional[uuid.UUID] = None


@dataclass
class RematchSummary:
    trigger: str
    created: int = 0
    updated: int = 0
    removed: int = 0
    skipped: int = 0
    reminders_created: int = 0
    reminders_failed: int = 0
    created_match_ids: List[uuid.UUID] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"{self.trigger}: {self.created} created, {self.updated} updated, "
            f"{self.removed} removed, {self.skipped} skipped, "
            f"{self.reminders_created} reminders ({self.reminders_failed} failed)"
        )


def _family_name(search) -> str:
    applicant = search.applicant
    return applicant.family_name if applicant is not None else "Unknown"


class RematchHandler:
    """Shared wiring and the reminder side effect."""

    reminder_title = "High-score property match for {family} Family"
    reminder_notes = (
        "Property at {street}, {city} scored {score}% match. "
        "Review and schedule showing if appropriate."
    )

    def __init__(
        self,
        session_factory=None,
        scorer: Optional[PropertyMatchingService] = None,
        reminder_service=None,
        matching: Optional[MatchingConfig] = None,
        reminders: Optional[ReminderConfig] = None,
    ):
        self.session_factory = session_factory
        self.scorer = scorer or PropertyMatchingService()
        self.reminder_service = reminder_service
        self.matching = matching or MatchingConfig()
        self.reminders = reminders or ReminderConfig()

    def __call__(self, event) -> RematchSummary:
        return self.handle(event)

    def handle(self, event) -> RematchSummary:
        raise NotImplementedError

    def _pending(self, match, search, prop, user_id) -> Optional[PendingReminder]:
        if not is_high_score(match.match_score, self.matching.high_score_threshold):
            return None
        return PendingReminder(
            match_id=match.id,
            score=match.match_score,
            family_name=_family_name(search),
            street=prop.street,
            city=prop.city,
            created_by=user_id,
        )

    def _send_reminders(self, pending: List[PendingReminder], summary: RematchSummary) -> None:
        if not pending:
            return
        if self.reminder_service is None or not self.reminders.enabled:
            logger.debug(f"Reminders disabled; skipping {len(pending)} high-score reminders")
            return

        due_at = self.reminder_service.next_follow_up_time()
        for item in pending:
            try:
                self.reminder_service.create_reminder(
                    title=self.reminder_title.format(family=item.family_name),
                    due_at=due_at,
                    entity_type=REMINDER_ENTITY_TYPE,
                    entity_id=item.match_id,
                    notes=self.reminder_notes.format(street=item.street, city=item.city, score=item.score),
                    priority=ReminderPriority.HIGH,
                    created_by=item.created_by,
                )
                summary.reminders_created += 1
            except Exception:
                summary.reminders_failed += 1
                logger.exception(f"Failed to create reminder for match {item.match_id}")


class PropertyCreatedHandler(RematchHandler):
    reminder_title = "New high-score property match for {family} Family"

    def handle(self, event: PropertyCreated) -> RematchSummary:
        summary = RematchSummary(trigger=event.event_type)
        min_score = self.matching.property_created_min_score
        pending: List[PendingReminder] = []

        logger.info(f"Processing PropertyCreated for property {event.property_id}")

        with relocation_uow(self.session_factory) as repo:
            prop = repo.properties.get_by_id(event.property_id)
            if prop is None:
                logger.warning(f"Property {event.property_id} not found or deleted")
                return summary
            if prop.status != ListingStatus.ACTIVE:
                logger.info(f"Property {prop.id} is {prop.status.value}, skipping matching")
                return summary

            searches = repo.housing_searches.get_active_in_stage(HousingSearchStage.SEARCHING)
            already_matched = repo.matches.matched_search_ids(prop.id)
            manager = MatchLifecycleManager(repo, self.scorer)

            for search in searches:
                if search.id in already_matched:
                    summary.skipped += 1
                    continue
                match = manager.create_if_eligible(search, prop, min_score, event.created_by)
                if match is None:
                    continue
                summary.created += 1
                summary.created_match_ids.append(match.id)
                reminder = self._pending(match, search, prop, event.created_by)
                if reminder:
                    pending.append(reminder)

        self._send_reminders(pending, summary)
        logger.info(str(summary))
        return summary


class HousingSearchStageChangedHandler(RematchHandler):

    def handle(self, event: HousingSearchStageChanged) -> RematchSummary:
        summary = RematchSummary(trigger=event.event_type)
        if event.new_stage != HousingSearchStage.SEARCHING:
            return summary

        min_score = self.matching.stage_changed_min_score
        pending: List[PendingReminder] = []

        logger.info(f"Processing stage change to Searching for search {event.housing_search_id}")

        with relocation_uow(self.session_factory) as repo:
            search = repo.housing_searches.get_by_id(event.housing_search_id)
            if search is None or not search.is_active:
                logger.warning(f"Housing search {event.housing_search_id} not found or inactive")
                return summary
            if search.stage != HousingSearchStage.SEARCHING:
                logger.info(f"Housing search {search.id} already moved to {search.stage.value}, skipping")
                return summary

            matched = repo.matches.matched_property_ids(search.id)
            manager = MatchLifecycleManager(repo, self.scorer)

            for prop in repo.properties.get_active_listings():
                if prop.id in matched:
                    summary.skipped += 1
                    continue
                match = manager.create_if_eligible(search, prop, min_score, event.changed_by)
                if match is None:
                    continue
                summary.created += 1
                summary.created_match_ids.append(match.id)
                reminder = self._pending(match, search, prop, event.changed_by)
                if reminder:
                    pending.append(reminder)

        self._send_reminders(pending, summary)
        logger.info(str(summary))
        return summary


class HousingPreferencesUpdatedHandler(RematchHandler):
    reminder_title = "New match found for {family} Family (preferences updated)"
    reminder_notes = (
        "After updating preferences, property at {street}, {city} now scores {score}% match. "
        "Review and schedule showing if appropriate."
    )

    def handle(self, event: HousingPreferencesUpdated) -> RematchSummary:
        summary = RematchSummary(trigger=event.event_type)
        min_score = self.matching.preferences_updated_min_score
        user_id = event.updated_by
        pending: List[PendingReminder] = []

        with relocation_uow(self.session_factory) as repo:
            search = repo.housing_searches.get_by_id(event.housing_search_id)
            if search is None or not search.is_active:
                logger.warning(f"Housing search {event.housing_search_id} not found or inactive")
                return summary
            if search.stage != HousingSearchStage.SEARCHING:
                logger.info(
                    f"Housing search {search.id} is in stage {search.stage.value}, skipping re-matching"
                )
                return summary

            manager = MatchLifecycleManager(repo, self.scorer)
            existing = repo.matches.get_matches_for_search(search.id)

            # Phase 1: re-score what is already matched
            for match in existing:
                prop = repo.properties.get_by_id(match.property_id)
                if prop is None:
                    continue
                decision = manager.rescore(match, search, prop, min_score, user_id)
                if decision == RescoreDecision.REMOVE:
                    summary.removed += 1
                elif decision in (RescoreDecision.UPDATE, RescoreDecision.KEEP_AND_UPDATE):
                    summary.updated += 1

            # Phase 2: discover new matches. Properties removed in phase 1
            # are excluded as well as those still matched.
            seen = {match.property_id for match in existing}
            for prop in repo.properties.get_active_listings():
                if prop.id in seen:
                    continue
                match = manager.create_if_eligible(search, prop, min_score, user_id)
                if match is None:
                    continue
                summary.created += 1
                summary.created_match_ids.append(match.id)
                reminder = self._pending(match, search, prop, user_id)
                if reminder:
                    pending.append(reminder)

        self._send_reminders(pending, summary)
        logger.info(str(summary))
        return summary
