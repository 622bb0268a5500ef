"""
JetAI Backend - Enrichment Fallback Pairs
Calls a primary provider, falls back to a free/open provider on any
failure, and records the outcome.
"""

import logging
from typing import Generic

from jetai.domains.enrichment.base import (
    EnrichmentProvider,
    EnrichmentUnavailable,
    ParamsT,
    ResultT,
    classify_error,
)
from jetai.domains.monitoring import MetricCategory, MetricsRegistry, Outcome

logger = logging.getLogger(__name__)


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__


class EnrichmentPair(Generic[ParamsT, ResultT]):
    """A (primary, fallback) provider pair for one enrichment category."""

    def __init__(
        self,
        category: MetricCategory,
        primary: EnrichmentProvider[ParamsT, ResultT],
        fallback: EnrichmentProvider[ParamsT, ResultT],
        unavailable: type[EnrichmentUnavailable],
        metrics: MetricsRegistry,
    ):
        self.category = MetricCategory(category)
        self.primary = primary
        self.fallback = fallback
        self.unavailable = unavailable
        self.metrics = metrics

    async def fetch(self, params: ParamsT) -> ResultT:
        """Return a normalized result tagged with the provider that served it.

        Raises the pair's *Unavailable error when both providers fail.
        """
        try:
            result = await self.primary.fetch(params)
        except Exception as e:
            primary_error = _describe(e)
            logger.warning(
                f"{self.category.value} primary ({self.primary.source}) failed "
                f"[{classify_error(e)}]: {primary_error}"
            )
        else:
            self._record(Outcome.PRIMARY)
            return result

        try:
            result = await self.fallback.fetch(params)
        except Exception as fallback_error:
            self._record(Outcome.ERROR)
            logger.error(
                f"{self.category.value} fallback ({self.fallback.source}) failed "
                f"[{classify_error(fallback_error)}]: {_describe(fallback_error)}"
            )
            raise self.unavailable(
                primary_error,
                _describe(fallback_error),
                tool_name=f"{self.category.value}_pair",
            ) from fallback_error

        logger.info(f"{self.category.value} served by fallback ({self.fallback.source})")
        self._record(Outcome.FALLBACK)
        return result

    def _record(self, outcome: Outcome) -> None:
        self.metrics.record_outcome(self.category, outcome)
        self.metrics.check_alerts()
