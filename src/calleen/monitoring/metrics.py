"""Prometheus metrics for outbound HTTP calls.

Registered on the default prometheus_client registry; expose them with
prometheus_client.start_http_server or the host application's /metrics
endpoint. Suggested alerts:
- http_retries_total (high retry rate indicates an unstable upstream)
- http_retries_exhausted_total (calls failing after spending their budget)
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

http_attempts_total = Counter(
    "calleen_http_attempts_total",
    "Total HTTP attempts by method and outcome",
    ["method", "outcome"],
)
"""
Attempts counter, one increment per transport round trip.

Labels:
- method: HTTP method (GET, POST, ...)
- outcome: success, http_error, timeout, network_error, deserialization_error
"""

# === Retry Metrics ===

http_retries_total = Counter(
    "calleen_http_retries_total",
    "Total retries scheduled by delay source",
    ["reason"],
)
"""
Retries counter.

Labels:
- reason: rate_limit (delay taken from response headers), backoff (strategy delay)
"""

http_retries_exhausted_total = Counter(
    "calleen_http_retries_exhausted_total",
    "Calls that failed after spending their retry budget",
    ["method"],
)

# === Latency Metrics ===

http_call_latency_seconds = Histogram(
    "calleen_http_call_latency_seconds",
    "End-to-end call latency in seconds, retries and waits included",
    ["method", "success"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0],
)
"""
Call latency histogram.

Labels:
- method: HTTP method
- success: true (call returned a Response), false (call raised)
"""
