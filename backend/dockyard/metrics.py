"""Prometheus metrics for the API server.

The module bundles all counters in one place so importing side-effects
(metric registration) happen exactly once per process.  Handlers and the
bootstrap code simply ``from dockyard.metrics import …`` and increment.
"""

from __future__ import annotations

from prometheus_client import Counter

http_error_responses_total = Counter(
    "http_error_responses_total",
    "Failure responses rendered by the error normalizer",
    labelnames=("status",),
)

bootstrap_failures_total = Counter(
    "bootstrap_failures_total",
    "Server bootstraps that ended in the failed state",
    labelnames=("phase",),
)
