"""Prometheus metric inventory for progress-service.

All metrics are declared here and incremented by the module that owns the
behavior.  Counters only go up, so tests assert on deltas.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP (MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # A leaf update fans out into several reads/writes, so the upper
    # buckets matter more here than for a plain CRUD endpoint.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Progress engine
# ---------------------------------------------------------------------------

PROGRESS_UPDATES = Counter(
    "progress_updates_total",
    "Progress updates evaluated by the monotonicity gate",
    ["item_type", "outcome"],  # outcome: applied|rejected
)

PROGRESS_EVENTS_EMITTED = Counter(
    "progress_events_emitted_total",
    "Progress-changed notifications handed to the notifier",
    ["item_type"],
)

PROGRESS_EVENT_FAILURES = Counter(
    "progress_event_failures_total",
    "Progress-changed notifications the transport failed to publish",
    ["item_type"],
)

CASCADE_SKIPS = Counter(
    "progress_cascade_skips_total",
    "Cascade steps skipped because no target could be resolved",
    ["reason"],  # not_enrolled|base_class_mismatch
)

# ---------------------------------------------------------------------------
# Cache and queue
# ---------------------------------------------------------------------------

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # hit|miss
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)
