"""Monitoring domain - fallback metrics and alerts."""

from jetai.domains.monitoring.metrics import (
    Alert,
    FallbackMetric,
    MetricCategory,
    MetricsRegistry,
    Outcome,
)

__all__ = ["Alert", "FallbackMetric", "MetricCategory", "MetricsRegistry", "Outcome"]
