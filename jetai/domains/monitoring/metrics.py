"""
JetAI Backend - Fallback Metrics
Counts primary / fallback / error outcomes per category and raises
advisory alerts when a category degrades.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

from pydantic import BaseModel

from jetai.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class MetricCategory(str, Enum):
    WEATHER = "weather"
    GEOCODING = "geocoding"
    ROUTES = "routes"
    MODEL = "model"


class Outcome(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"
    ERROR = "error"


class FallbackMetric(BaseModel):
    """Monotonic counters for one category."""

    primary: int = 0
    fallback: int = 0
    errors: int = 0

    @property
    def served(self) -> int:
        return self.primary + self.fallback

    @property
    def fallback_ratio(self) -> float:
        return self.fallback / self.served if self.served else 0.0


class Alert(BaseModel):
    """An advisory raised by check_alerts."""

    category: MetricCategory
    kind: str  # "error_count" | "fallback_ratio"
    message: str


class MetricsRegistry:
    """Process-wide outcome counters, injected into every caller."""

    def __init__(
        self,
        error_threshold: int | None = None,
        fallback_ratio: float | None = None,
        min_sample: int | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or default_settings
        self.error_threshold = (
            settings.ALERT_ERROR_THRESHOLD if error_threshold is None else error_threshold
        )
        self.fallback_ratio = (
            settings.ALERT_FALLBACK_RATIO if fallback_ratio is None else fallback_ratio
        )
        self.min_sample = settings.ALERT_MIN_SAMPLE if min_sample is None else min_sample
        self._lock = threading.Lock()
        self._metrics: dict[MetricCategory, FallbackMetric] = {
            category: FallbackMetric() for category in MetricCategory
        }

    def record_outcome(self, category: MetricCategory | str, outcome: Outcome | str) -> None:
        """Increment exactly one counter."""
        category = MetricCategory(category)
        outcome = Outcome(outcome)
        with self._lock:
            metric = self._metrics[category]
            if outcome is Outcome.PRIMARY:
                metric.primary += 1
            elif outcome is Outcome.FALLBACK:
                metric.fallback += 1
            else:
                metric.errors += 1

    def get(self, category: MetricCategory | str) -> FallbackMetric:
        with self._lock:
            return self._metrics[MetricCategory(category)].model_copy()

    def check_alerts(self) -> list[Alert]:
        """Log a warning for every degraded category and return the alerts."""
        alerts: list[Alert] = []
        with self._lock:
            metrics = {c: m.model_copy() for c, m in self._metrics.items()}

        for category, metric in metrics.items():
            if metric.errors >= self.error_threshold:
                alerts.append(
                    Alert(
                        category=category,
                        kind="error_count",
                        message=f"{category.value}: {metric.errors} errors recorded",
                    )
                )
            if metric.served > self.min_sample and metric.fallback_ratio > self.fallback_ratio:
                alerts.append(
                    Alert(
                        category=category,
                        kind="fallback_ratio",
                        message=(
                            f"{category.value}: {metric.fallback_ratio:.0%} of "
                            f"{metric.served} calls served by fallback"
                        ),
                    )
                )

        for alert in alerts:
            logger.warning(f"API alert: {alert.message}")
        return alerts

    def snapshot(self) -> dict[str, dict[str, int]]:
        """Current counters keyed by category name."""
        with self._lock:
            return {
                category.value: metric.model_dump()
                for category, metric in self._metrics.items()
            }
