"""
Monitoring components for calleen.

Components:
- metrics: Prometheus counters and histograms for attempts, retries and latency
"""

from calleen.monitoring.metrics import (
    http_attempts_total,
    http_call_latency_seconds,
    http_retries_exhausted_total,
    http_retries_total,
)

__all__ = [
    "http_attempts_total",
    "http_call_latency_seconds",
    "http_retries_exhausted_total",
    "http_retries_total",
]
