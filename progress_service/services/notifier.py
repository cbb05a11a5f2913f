"""Progress-changed notifications.

The engine hands one ProgressEvent to the notifier for every level that
accepted a change.  What happens next (websocket fan-out, dashboards
refreshing) belongs to the subscribers, not to this service.

Transport is Redis pub/sub on ``progress:{user_id}`` so a subscriber can
follow one learner, or ``PSUBSCRIBE progress:*`` to follow everyone.
Pub/sub is fire-and-forget: there are no acknowledgements, and an event
published while nobody is listening is gone.  A failed publish is logged
and counted; it never fails the progress write that produced it.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol, runtime_checkable

from progress_service.core.metrics import PROGRESS_EVENT_FAILURES
from progress_service.db.redis import redis_pool
from progress_service.models.progress import ProgressEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressNotifier(Protocol):
    async def emit(self, event: ProgressEvent) -> None: ...


class InMemoryProgressNotifier:
    """Keeps emitted events in order. Used in tests and without Redis."""

    def __init__(self) -> None:
        self._events: list[ProgressEvent] = []

    async def emit(self, event: ProgressEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[ProgressEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()


class RedisProgressNotifier:
    """Publishes JSON-encoded events over Redis pub/sub."""

    _PREFIX = "progress:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    def channel_for(self, user_id: str) -> str:
        return f"{self._PREFIX}{user_id}"

    async def emit(self, event: ProgressEvent) -> None:
        try:
            receivers = await self._redis.publish(
                self.channel_for(event.user_id), json.dumps(event.to_dict())
            )
        except Exception:
            PROGRESS_EVENT_FAILURES.labels(item_type=event.item_type.value).inc()
            logger.exception(
                "Failed to publish progress event %s/%s",
                event.item_type.value,
                event.item_id,
                extra={"user_id": event.user_id},
            )
            return
        logger.debug(
            "Published %s/%s to %d subscriber(s)",
            event.item_type.value,
            event.item_id,
            receivers,
        )


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    progress_notifier: ProgressNotifier = RedisProgressNotifier(redis_pool)
else:
    progress_notifier = InMemoryProgressNotifier()
