"""Prometheus metrics for the Helix risk pipeline.

Business Metrics:
- helix_documents_normalized_total: Normalization outcomes by document kind
- helix_profiles_computed_total: Risk profiles persisted by category
- helix_alerts_raised_total: Monitoring alerts by type and severity

Technical Metrics:
- helix_pipeline_stage_latency_seconds: Latency of each pipeline stage
- helix_retry_total: Retries of transient I/O operations
- helix_pipeline_failures_total: Pipeline failures by stage
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics
# =============================================================================

documents_normalized = Counter(
    "helix_documents_normalized_total",
    "Total number of document normalizations",
    ["kind", "status"],  # status: ok, failed
)

profiles_computed = Counter(
    "helix_profiles_computed_total",
    "Total number of risk profiles persisted",
    ["category"],
)

alerts_raised = Counter(
    "helix_alerts_raised_total",
    "Total number of monitoring alerts raised",
    ["alert_type", "severity"],
)


# =============================================================================
# Technical Metrics
# =============================================================================

stage_latency = Histogram(
    "helix_pipeline_stage_latency_seconds",
    "Pipeline stage latency in seconds",
    ["stage"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

retries = Counter(
    "helix_retry_total",
    "Total number of retried I/O operations",
    ["operation"],
)

pipeline_failures = Counter(
    "helix_pipeline_failures_total",
    "Total number of pipeline failures",
    ["stage"],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_normalization(kind: str, succeeded: bool) -> None:
    """Record a normalization outcome."""
    documents_normalized.labels(
        kind=kind,
        status="ok" if succeeded else "failed",
    ).inc()


def record_profile(category: str) -> None:
    """Record a persisted risk profile."""
    profiles_computed.labels(category=category).inc()


def record_alert(alert_type: str, severity: str) -> None:
    """Record a raised monitoring alert."""
    alerts_raised.labels(alert_type=alert_type, severity=severity).inc()


def record_retry(operation: str) -> None:
    """Record a retry of a transient operation."""
    retries.labels(operation=operation).inc()


def record_pipeline_failure(stage: str) -> None:
    """Record a pipeline failure at the given stage."""
    pipeline_failures.labels(stage=stage).inc()


@contextmanager
def track_stage_latency(stage: str) -> Generator[None, None, None]:
    """Context manager to time a pipeline stage."""
    start = time.perf_counter()
    try:
        yield
    finally:
        stage_latency.labels(stage=stage).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
