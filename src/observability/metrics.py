"""Prometheus metric definitions for historian service self-instrumentation.

All metrics are module-level singletons registered with the default
prometheus_client registry.  Import them wherever instrumentation is needed.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# ---------------------------------------------------------------------------
# Histogram bucket definitions
# ---------------------------------------------------------------------------

REQUEST_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0)
QUERY_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0)
ENTRIES_BUCKETS = (0, 1, 10, 50, 100, 500, 1000, 5000)

# ---------------------------------------------------------------------------
# Request-level metrics
# ---------------------------------------------------------------------------

REQUEST_DURATION = Histogram(
    "alert_historian_request_duration_seconds",
    "End-to-end request duration in seconds",
    labelnames=["endpoint"],
    buckets=REQUEST_DURATION_BUCKETS,
)

REQUESTS_TOTAL = Counter(
    "alert_historian_requests_total",
    "Total number of requests",
    labelnames=["endpoint", "status"],
)

REQUESTS_IN_PROGRESS = Gauge(
    "alert_historian_requests_in_progress",
    "Number of requests currently being processed",
    labelnames=["endpoint"],
)

# ---------------------------------------------------------------------------
# Historian query metrics (populated by the query handler)
# ---------------------------------------------------------------------------

HISTORIAN_QUERIES_TOTAL = Counter(
    "alert_historian_queries_total",
    "Total number of alert state queries by outcome",
    labelnames=["status"],
)

HISTORIAN_QUERY_DURATION = Histogram(
    "alert_historian_engine_query_duration_seconds",
    "Duration of historian engine calls in seconds",
    buckets=QUERY_DURATION_BUCKETS,
)

HISTORIAN_ENTRIES_RETURNED = Histogram(
    "alert_historian_entries_returned",
    "Number of alert state entries returned per query",
    buckets=ENTRIES_BUCKETS,
)

# ---------------------------------------------------------------------------
# Health / info metrics
# ---------------------------------------------------------------------------

COMPONENT_HEALTHY = Gauge(
    "alert_historian_component_healthy",
    "Whether a dependency component is healthy (1=healthy, 0=unhealthy)",
    labelnames=["component"],
)

APP_INFO = Info(
    "alert_historian",
    "Alert historian service build information",
)
