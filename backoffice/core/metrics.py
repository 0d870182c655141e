"""Prometheus metric inventory.

Every metric the service exports is declared here.  Modules import the
one they own and increment it where the event happens:

  HTTP metrics           -> backoffice/middleware/metrics.py
  users_registered_total -> backoffice/services/users_service.py
  registration_rejections_total
                         -> backoffice/services/users_service.py
  cache_operations_total -> backoffice/services/user_cache.py

Useful queries:
  rate(users_registered_total[5m])
  sum by (field) (rate(registration_rejections_total[1h]))
  histogram_quantile(0.95, rate(http_request_duration_seconds_bucket[5m]))
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "HTTP requests by method, route name and status code",
    ["method", "route", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds, by route name",
    ["method", "route"],
    # argon2 hashing dominates POST /users, hence the 250ms-1s range
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Registration metrics
# ---------------------------------------------------------------------------

USERS_REGISTERED = Counter(
    "users_registered_total",
    "Users created through the registration form",
)

REGISTRATION_REJECTIONS = Counter(
    "registration_rejections_total",
    "Registration attempts rejected, by offending field",
    ["field"],  # one increment per field with at least one error
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache operations by kind",
    ["operation"],  # "write", "hit", "miss"
)
