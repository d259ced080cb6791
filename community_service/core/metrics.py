"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own
the behaviour import the metric and increment or observe it in place.
Prometheus scrapes ``/metrics`` (see api/metrics_endpoint.py).
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
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
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Membership metrics
# ---------------------------------------------------------------------------

MEMBERSHIP_TRANSITIONS = Counter(
    "membership_transitions_total",
    "Membership workflow calls by transition and outcome",
    # transition: request|invite|join|process|remove
    # outcome: created|existing|accepted|declined|removed|rejected
    ["transition", "outcome"],
)

ADMISSION_REJECTIONS = Counter(
    "admission_rejections_total",
    "Membership requests refused because the plan quota is full",
    ["plan"],
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["key_type"],  # "user" or "ip"
)
