"""Publish metrics for Prometheus exposition.

Counts segment submissions, retries and failed publishes, and times each
submission, so operators can see how often the sender misbehaves.
"""

from __future__ import annotations

import os
import threading

from prometheus_client import CollectorRegistry, Counter, Histogram

# Thread lock for singleton initialization
_metrics_lock = threading.Lock()


class PublishMetricsCollector:
    """Collects story publishing metrics for Prometheus.

    Attributes:
        segments_submitted_total: Segments accepted by the sender.
        segment_retries_total: Retries by classification reason.
        publish_failures_total: Failed publishes by resumability.
        stories_published_total: Stories fully published.
        segment_submit_seconds: Latency of individual submissions.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize publish metrics collector.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")

        self.segments_submitted_total = Counter(
            name="verum_segments_submitted_total",
            documentation="Story segments accepted by the sender",
            labelnames=["environment"],
            registry=self._registry,
        )

        self.segment_retries_total = Counter(
            name="verum_segment_retries_total",
            documentation="Segment submission retries by failure reason",
            labelnames=["reason", "environment"],
            registry=self._registry,
        )

        self.publish_failures_total = Counter(
            name="verum_publish_failures_total",
            documentation="Story publishes that stopped before completion",
            labelnames=["retryable", "environment"],
            registry=self._registry,
        )

        self.stories_published_total = Counter(
            name="verum_stories_published_total",
            documentation="Stories whose every segment was submitted",
            labelnames=["environment"],
            registry=self._registry,
        )

        self.segment_submit_seconds = Histogram(
            name="verum_segment_submit_seconds",
            documentation="Time spent in one sender submission",
            labelnames=["environment"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
            registry=self._registry,
        )

    def record_segment_submitted(self, duration_seconds: float) -> None:
        """Record one accepted submission and its latency."""
        self.segments_submitted_total.labels(environment=self._environment).inc()
        self.segment_submit_seconds.labels(environment=self._environment).observe(
            duration_seconds
        )

    def record_retry(self, reason: str) -> None:
        """Record a retry scheduled for the given classification reason."""
        self.segment_retries_total.labels(
            reason=reason, environment=self._environment
        ).inc()

    def record_publish_failure(self, retryable: bool) -> None:
        """Record a publish that stopped early."""
        self.publish_failures_total.labels(
            retryable=str(retryable).lower(), environment=self._environment
        ).inc()

    def record_story_published(self) -> None:
        """Record a fully published story."""
        self.stories_published_total.labels(environment=self._environment).inc()

    def get_registry(self) -> CollectorRegistry:
        """Get the collector registry."""
        return self._registry


_publish_metrics_collector: PublishMetricsCollector | None = None


def get_publish_metrics_collector() -> PublishMetricsCollector:
    """Get the singleton PublishMetricsCollector instance (thread-safe).

    Returns:
        The global PublishMetricsCollector instance.
    """
    global _publish_metrics_collector
    if _publish_metrics_collector is None:
        with _metrics_lock:
            if _publish_metrics_collector is None:
                _publish_metrics_collector = PublishMetricsCollector()
    return _publish_metrics_collector


def reset_publish_metrics_collector() -> None:
    """Reset the singleton collector (for testing only)."""
    global _publish_metrics_collector
    with _metrics_lock:
        _publish_metrics_collector = None
