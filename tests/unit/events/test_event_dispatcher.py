#!/usr/bin/env python3
"""
Tests for domain event messages and the DomainEventDispatcher.

Covers:
1. Payload round-trip for queue transport
2. Sync dispatch: handler order, no handlers, failure propagation
3. Async dispatch: enqueue on RQ, fallback to sync when Redis is down
4. The RQ task entry point

Usage:
    python -m pytest tests/unit/events/test_event_dispatcher.py -v
"""

import unittest
import uuid
from unittest.mock import MagicMock, patch

from core.enums import HousingSearchStage
from events import dispatcher as dispatcher_module
from events.dispatcher import DomainEventDispatcher, process_domain_event_task
from events.models import (
    HousingPreferencesUpdated,
    HousingSearchStageChanged,
    PropertyCreated,
    event_from_payload,
)


def stage_event():
    return HousingSearchStageChanged(
        housing_search_id=uuid.uuid4(),
        applicant_id=uuid.uuid4(),
        old_stage=HousingSearchStage.AWAITING_AGREEMENTS,
        new_stage=HousingSearchStage.SEARCHING,
        changed_by=uuid.uuid4(),
    )


class TestEventPayloads(unittest.TestCase):

    def test_round_trip(self):
        event = stage_event()
        payload = event.to_payload()

        self.assertEqual(payload['event_type'], "HousingSearchStageChanged")
        self.assertEqual(payload['data']['new_stage'], "Searching")
        self.assertEqual(event_from_payload(payload), event)

    def test_unknown_event_type(self):
        with self.assertRaises(ValueError):
            event_from_payload({'event_type': 'ListingSold', 'data': {}})

    def test_events_are_immutable(self):
        event = PropertyCreated(property_id=uuid.uuid4())
        with self.assertRaises(Exception):
            event.property_id = uuid.uuid4()


class TestSyncDispatch(unittest.TestCase):

    def setUp(self):
        self.dispatcher = DomainEventDispatcher()

    def test_handlers_run_in_registration_order(self):
        calls = []
        self.dispatcher.register(PropertyCreated, lambda e: calls.append(("first", e.property_id)))
        self.dispatcher.register(PropertyCreated, lambda e: calls.append(("second", e.property_id)))
        event = PropertyCreated(property_id=uuid.uuid4())

        self.dispatcher.dispatch([event])

        self.assertEqual(calls, [("first", event.property_id), ("second", event.property_id)])

    def test_handlers_are_keyed_by_event_type(self):
        handler = MagicMock()
        self.dispatcher.register(HousingPreferencesUpdated, handler)

        self.dispatcher.dispatch([PropertyCreated(property_id=uuid.uuid4())])

        handler.assert_not_called()
        self.assertEqual(self.dispatcher.handlers_for(HousingPreferencesUpdated), [handler])

    def test_handler_failure_propagates(self):
        after = MagicMock()
        self.dispatcher.register(PropertyCreated, MagicMock(side_effect=RuntimeError("handler down")))
        self.dispatcher.register(PropertyCreated, after)

        with self.assertRaises(RuntimeError):
            self.dispatcher.dispatch([PropertyCreated(property_id=uuid.uuid4())])
        after.assert_not_called()

    def test_sync_mode_by_default(self):
        self.assertFalse(self.dispatcher.async_mode)
        self.assertIsNone(self.dispatcher.queue)


class TestAsyncDispatch(unittest.TestCase):

    @patch('events.dispatcher.Queue')
    @patch('events.dispatcher.Redis')
    def test_events_are_enqueued(self, mock_redis, mock_queue):
        queue = mock_queue.return_value
        queue.enqueue.return_value = MagicMock(id="job-1")
        handler = MagicMock()

        dispatcher = DomainEventDispatcher(use_async_queue=True, redis_url="redis://test:6379/0")
        dispatcher.register(HousingSearchStageChanged, handler)
        event = stage_event()
        dispatcher.dispatch([event])

        self.assertTrue(dispatcher.async_mode)
        mock_redis.from_url.assert_called_once_with("redis://test:6379/0")
        args, kwargs = queue.enqueue.call_args
        self.assertIs(args[0], process_domain_event_task)
        self.assertEqual(args[1], event.to_payload())
        self.assertEqual(kwargs['job_timeout'], "5m")
        handler.assert_not_called()

    @patch('events.dispatcher.Redis')
    def test_falls_back_to_sync_when_redis_unavailable(self, mock_redis):
        mock_redis.from_url.return_value.ping.side_effect = ConnectionError("refused")
        handler = MagicMock()

        dispatcher = DomainEventDispatcher(use_async_queue=True)
        dispatcher.register(PropertyCreated, handler)
        dispatcher.dispatch([PropertyCreated(property_id=uuid.uuid4())])

        self.assertFalse(dispatcher.async_mode)
        handler.assert_called_once()


class TestWorkerTask(unittest.TestCase):

    def tearDown(self):
        dispatcher_module._worker_context = None

    def test_task_handles_event_with_worker_context(self):
        context = MagicMock()
        dispatcher_module._worker_context = context
        event = stage_event()

        result = process_domain_event_task(event.to_payload())

        self.assertEqual(result, "HousingSearchStageChanged")
        context.dispatcher.handle.assert_called_once_with(event)
