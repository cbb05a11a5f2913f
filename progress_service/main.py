from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from progress_service.api.health import router as health_router
from progress_service.api.metrics_endpoint import router as metrics_router
from progress_service.api.progress import router as progress_router
from progress_service.core.config import SETTINGS
from progress_service.core.logging import setup_logging
from progress_service.db.engine import lifespan_db
from progress_service.db.redis import lifespan_redis
from progress_service.middleware.metrics import MetricsMiddleware
from progress_service.middleware.request_context import RequestContextMiddleware

setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Torn down in reverse order: Redis first, then the database.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="progress-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Last added runs first: RequestContext -> Metrics -> route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(progress_router)

logger.info(
    "progress-service started  env=%s log_level=%s port=%d database=%s redis=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.database_url else "in-memory",
    "on" if SETTINGS.redis_url else "in-memory",
)
