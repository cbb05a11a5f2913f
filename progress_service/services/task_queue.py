"""Background task queue on Redis lists.

The API enqueues with LPUSH and returns 202; the worker (``python -m
progress_service.worker``) takes tasks with BRPOP, so tasks run FIFO.
Delivery is at-most-once: a task in flight when the worker dies is lost.
For recalculation that is acceptable, since the next leaf update for the
learner recomputes the same aggregates anyway.
"""

from __future__ import annotations

import datetime
import json
import uuid
from dataclasses import asdict, dataclass, field
from typing import Protocol, runtime_checkable

from progress_service.db.redis import redis_pool

RECALCULATION_QUEUE = "progress_recalculation"


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


@dataclass(frozen=True, slots=True)
class Task:
    """A unit of background work.

    payload for RECALCULATION_QUEUE: ``{"user_id": ..., "path_id": ...}``
    or ``{"user_id": ..., "base_class_id": ...}``.
    """

    id: str
    queue: str
    payload: dict
    enqueued_at: int = field(default_factory=_now)

    @staticmethod
    def new(queue: str, payload: dict) -> Task:
        return Task(id=str(uuid.uuid4()), queue=queue, payload=payload)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @staticmethod
    def from_json(raw: str) -> Task:
        return Task(**json.loads(raw))

    def age_seconds(self, now: int | None = None) -> int:
        return max(0, (now if now is not None else _now()) - self.enqueued_at)


@runtime_checkable
class TaskQueue(Protocol):
    async def enqueue(self, queue: str, payload: dict) -> Task: ...
    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None: ...
    async def queue_length(self, queue: str) -> int: ...


class InMemoryTaskQueue:
    """List-backed queue for tests and Redis-less runs; never blocks."""

    def __init__(self) -> None:
        self._queues: dict[str, list[Task]] = {}

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task.new(queue, payload)
        self._queues.setdefault(queue, []).append(task)
        return task

    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None:
        tasks = self._queues.get(queue, [])
        return tasks.pop(0) if tasks else None

    async def queue_length(self, queue: str) -> int:
        return len(self._queues.get(queue, []))


class RedisTaskQueue:
    _PREFIX = "tasks:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task.new(queue, payload)
        await self._redis.lpush(f"{self._PREFIX}{queue}", task.to_json())
        return task

    async def dequeue(self, queue: str, timeout: int = 5) -> Task | None:
        # None on timeout
        result = await self._redis.brpop(f"{self._PREFIX}{queue}", timeout=timeout)
        if result is None:
            return None
        _, raw = result
        return Task.from_json(raw)

    async def queue_length(self, queue: str) -> int:
        return await self._redis.llen(f"{self._PREFIX}{queue}")


if redis_pool is not None:
    task_queue: TaskQueue = RedisTaskQueue(redis_pool)
else:
    task_queue = InMemoryTaskQueue()
