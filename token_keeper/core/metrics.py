"""
Prometheus metrics for credential refresh monitoring
"""

from prometheus_client import Counter, Histogram

# Refresh executions by kind and outcome
credential_refresh_total = Counter(
    "credential_refresh_total",
    "Total number of credential refresh executions",
    ["kind", "outcome"],  # outcome values: see RefreshOutcome
)

# Issuer round-trip latency
credential_issuer_latency_seconds = Histogram(
    "credential_issuer_latency_seconds",
    "Latency of upstream credential fetches in seconds",
    ["kind"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
)
