"""
Prometheus metrics collection for record-reformer

Counts emitted and suppressed events, per-field expansion failures and
malformed input, and times batches.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    start_http_server,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# REFORM METRICS
# =======================

# Events by outcome
events_total = Counter(
    name="reformer_events_total",
    documentation="Total number of events handled by the reformer",
    labelnames=["status"],  # status: emitted, suppressed
    registry=REGISTRY,
)

# Template expansion failures
field_failures_total = Counter(
    name="reformer_field_failures_total",
    documentation="Total number of templates that failed to expand",
    labelnames=["field"],
    registry=REGISTRY,
)

# Input lines that could not be turned into events
invalid_input_total = Counter(
    name="reformer_invalid_input_total",
    documentation="Total number of input lines that were not valid events",
    registry=REGISTRY,
)

# Batch duration
batch_duration_seconds = Histogram(
    name="reformer_batch_duration_seconds",
    documentation="Time spent reforming a batch of events",
    labelnames=["mode"],  # mode: stream, spark
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
    registry=REGISTRY,
)


# =======================
# METRICS HELPERS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus exposition format
    """
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start the Prometheus HTTP endpoint

    Args:
        port: Port to listen on (METRICS_PORT env var, default 9108)
    """
    port = port or int(os.getenv("METRICS_PORT", "9108"))
    start_http_server(port, registry=REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment
        **labels: Label values for the metric
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """Observe a value in a histogram metric"""
    histogram.labels(**labels).observe(value)


# =======================
# METRICS COLLECTOR CLASS
# =======================

class MetricsCollector:
    """
    Metrics collector for reformer pipelines.

    Wraps the module-level metrics so pipelines record outcomes through
    one object.
    """

    def record_result(self, emitted: bool, failed_fields: list[str]) -> None:
        """
        Record the outcome of reforming one event.

        Args:
            emitted: Whether the event was emitted
            failed_fields: Templates that failed to expand
        """
        increment_counter(events_total, 1, status="emitted" if emitted else "suppressed")
        for field in failed_fields:
            increment_counter(field_failures_total, 1, field=field)

    def record_invalid_input(self, count: int = 1) -> None:
        """Record input lines that were not valid events."""
        if count > 0:
            increment_counter(invalid_input_total, count)

    def record_batch(self, duration_seconds: float, mode: str = "stream") -> None:
        """Record how long a batch took."""
        if duration_seconds > 0:
            observe_histogram(batch_duration_seconds, duration_seconds, mode=mode)
