"""Redis connection management.

This module mirrors engine.py: when REDIS_URL is configured we create one
shared async client backed by a connection pool; when it is None (local
dev, tests) ``redis_pool`` is None and the notifier, cache and task queue
fall back to their in-memory implementations, so no Redis server is needed.

WHAT REDIS CARRIES HERE
-----------------------
PostgreSQL holds the durable state: the course hierarchy and every learner's
progress records.  Redis carries the parts that are ephemeral or shared
across processes:
  - pub/sub fan-out of progress-changed events to realtime subscribers
    (channel ``progress:{user_id}``)
  - the read-through cache for progress lookups (keys expire on a TTL)
  - the background recalculation queue (LPUSH / BRPOP)

Losing Redis loses none of the above permanently: events are advisory,
cache entries are rebuilt from PostgreSQL on the next miss, and a lost
recalculation is redone by the next leaf update.

CONNECTION POOLING
------------------
Redis executes one command at a time, but the API serves many requests
concurrently.  A pool lets each handler borrow a connection, send its
command and hand it back, so one slow SCAN during cache invalidation does
not hold up a publish from another request.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from progress_service.core.config import SETTINGS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Conditional Redis client (None when REDIS_URL is not set)
# ---------------------------------------------------------------------------
# Checked once at import time, like the engine.  Every consumer of
# redis_pool checks for None and picks its in-memory counterpart.

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,  # str, not bytes: cached JSON and task payloads
        max_connections=20,  # API concurrency plus the worker's blocking BRPOP
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for Redis; mirrors lifespan_db().

    Pings on startup so a bad REDIS_URL shows up in the first log lines
    rather than on the first publish, and closes the pool on shutdown.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured; Redis features use in-memory fallbacks")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except Exception:
        logger.exception("Redis connection failed on startup")
        # Start anyway so /health can report redis as degraded.  Publishes
        # fail and are logged per event; progress records live in PostgreSQL.
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
