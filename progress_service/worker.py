"""Background worker process.

RUN:  python -m progress_service.worker

Same image as the API, different command:
  api:    uvicorn progress_service.main:app --host 0.0.0.0 --port 8000
  worker: python -m progress_service.worker

Handles recalculation requests: when a path gains or loses lessons, the
stored aggregates for its learners are stale until the next leaf update.
A recalculation task recomputes them through the same engine, so the
monotonicity gate still applies (a path that shrank never shows less
progress than before).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from progress_service.core.config import SETTINGS
from progress_service.core.logging import setup_logging
from progress_service.core.metrics import QUEUE_DEPTH
from progress_service.repos.factory import open_repos
from progress_service.services.cache import invalidate_learner
from progress_service.services.hierarchical_progress import HierarchicalProgressService
from progress_service.services.notifier import progress_notifier
from progress_service.services.task_queue import RECALCULATION_QUEUE, task_queue

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("worker")

HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@register_handler(RECALCULATION_QUEUE)
async def handle_recalculation(payload: dict) -> None:
    """Recompute one learner's path (and its class) or a whole class."""
    user_id = payload["user_id"]
    async with open_repos() as repos:
        service = HierarchicalProgressService(
            repos.progress, repos.hierarchy, progress_notifier
        )
        if payload.get("path_id"):
            await service.update_path_progress(payload["path_id"], user_id)
        elif payload.get("base_class_id"):
            await service.update_class_instance_progress(
                payload["base_class_id"], user_id
            )
        else:
            raise ValueError("recalculation task needs path_id or base_class_id")

    # Unconditional: a rejected path update can still move the class instance.
    await invalidate_learner(user_id)


async def process_one(
    queue_name: str, timeout: int = SETTINGS.worker_poll_timeout
) -> bool:
    """Dequeue and run a single task. Returns False when the queue was empty."""
    task = await task_queue.dequeue(queue_name, timeout=timeout)
    QUEUE_DEPTH.labels(queue_name=queue_name).set(
        await task_queue.queue_length(queue_name)
    )
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info(
            "Task %s on [%s] completed (queued %ds)",
            task.id,
            queue_name,
            task.age_seconds(),
        )
    except Exception:
        # No retry or dead-letter queue; the next leaf update recomputes
        # the same aggregates.
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
    return True


async def run_worker() -> None:
    """Poll all registered queues round-robin, forever."""
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        for queue_name in queues:
            await process_one(queue_name)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
