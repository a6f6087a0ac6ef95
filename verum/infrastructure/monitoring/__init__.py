"""Prometheus metrics for the Verum engine."""

from verum.infrastructure.monitoring.publish_metrics import (
    PublishMetricsCollector,
    get_publish_metrics_collector,
    reset_publish_metrics_collector,
)

__all__: list[str] = [
    "PublishMetricsCollector",
    "get_publish_metrics_collector",
    "reset_publish_metrics_collector",
]
