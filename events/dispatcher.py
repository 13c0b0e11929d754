#!/usr/bin/env python3
"""
Domain Event Dispatcher.

Delivers events recorded by entities to the registered handlers once the
unit of work that produced them has committed.

Two delivery modes:
- sync (default): handlers run in-process, in registration order.
- async: each event is enqueued on Redis (RQ) and events/worker.py runs
  process_domain_event_task, which rebuilds the app context and handles it.

Usage:
    dispatcher = DomainEventDispatcher()
    dispatcher.register(PropertyCreated, handler.handle)
    dispatcher.dispatch(prop.pull_domain_events())
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from redis import Redis
from rq import Queue, Retry

from events.models import DomainEvent, event_from_payload

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], Any]


class DomainEventDispatcher:
    def __init__(
        self,
        use_async_queue: bool = False,
        redis_url: Optional[str] = None,
        queue_name: str = "domain-events",
        job_timeout: str = "5m"
    ):
        """
        Initialize dispatcher.

        Args:
            use_async_queue: Enqueue events on RQ instead of handling inline
            redis_url: Redis connection URL (async mode only)
            queue_name: RQ queue name
            job_timeout: RQ job timeout
        """
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)
        self.job_timeout = job_timeout
        self.redis_conn = None
        self.queue = None
        self.async_mode = False

        if not use_async_queue:
            logger.info("Async event queue disabled via config. Using sync mode.")
            return

        redis_url = redis_url or 'redis://localhost:6379/0'
        try:
            self.redis_conn = Redis.from_url(redis_url)
            self.redis_conn.ping()
            self.queue = Queue(queue_name, connection=self.redis_conn)
            self.async_mode = True
            logger.info(f"Event dispatcher connected to Redis queue '{queue_name}'")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}. Falling back to sync mode.")
            self.redis_conn = None
            self.queue = None

    def register(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def dispatch(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            if self.async_mode:
                job = self.queue.enqueue(
                    process_domain_event_task,
                    event.to_payload(),
                    job_timeout=self.job_timeout,
                    retry=Retry(max=3, interval=[10, 30, 60])
                )
                logger.info(f"Queued {event.event_type} as job {job.id}")
            else:
                self.handle(event)

    def handle(self, event: DomainEvent) -> None:
        """Run every handler registered for the event's type."""
        handlers = self._handlers.get(type(event), [])
        if not handlers:
            logger.debug(f"No handlers registered for {event.event_type}")
            return

        for handler in handlers:
            name = getattr(handler, '__qualname__', repr(handler))
            try:
                handler(event)
            except Exception:
                logger.exception(f"Handler {name} failed for {event.event_type}")
                raise


_worker_context = None


# Worker task - must be at module level for RQ
def process_domain_event_task(payload: Dict[str, Any]) -> str:
    """
    Handle one queued domain event (called by RQ worker).

    Builds the app context once per worker process with a sync dispatcher,
    so handling here never re-enqueues.
    """
    global _worker_context
    from core.app_context import AppContext
    from core.config_loader import load_config

    if _worker_context is None:
        config = load_config()
        config.events.use_async_queue = False
        _worker_context = AppContext.build(config)

    event = event_from_payload(payload)
    logger.info(f"Processing {event.event_type} from queue")
    _worker_context.dispatcher.handle(event)
    return event.event_type
