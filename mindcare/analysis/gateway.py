"""
Analysis gateway — the single entry point callers use for mood analysis.

Every call is bounded by a timeout. Any provider failure is absorbed here
and replaced with a neutral fallback result, so analysis problems never
abort saving a journal entry.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, Sequence, TypeVar

from mindcare.analysis.base import (
    AnalysisProvider,
    DayAnalysis,
    DayReport,
    MonthlyInsights,
    PeriodAnalysis,
)
from mindcare.analysis.demo import mean_score
from mindcare.journal.journal_models import JournalEntry, MAX_SCORE, MIN_SCORE, Mood
from mindcare.utils.config import Settings, get_settings
from mindcare.utils.exceptions import AnalysisTimeout, AnalysisUnavailable
from mindcare.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

FALLBACK_TIP = "Take some time to reflect on your day and practice mindfulness."
FALLBACK_SUMMARY = (
    "Your day had varying emotions. Continue to practice self-awareness and mindfulness."
)
FALLBACK_INSIGHTS = (
    "Keep maintaining your journaling habit. Regular self-reflection contributes to "
    "better mental health and self-awareness."
)


def fallback_period() -> PeriodAnalysis:
    return PeriodAnalysis(mood=Mood.NEUTRAL.value, score=5, tip=FALLBACK_TIP)


def fallback_day(results: Sequence[PeriodAnalysis]) -> DayAnalysis:
    return DayAnalysis(
        overall_mood=Mood.NEUTRAL.value,
        overall_score=mean_score([r.score for r in results]),
        daily_summary=FALLBACK_SUMMARY,
    )


def _valid_score(score: object) -> bool:
    return isinstance(score, int) and not isinstance(score, bool) and MIN_SCORE <= score <= MAX_SCORE


class AnalysisGateway:
    def __init__(self, provider: AnalysisProvider, settings: Optional[Settings] = None) -> None:
        self._provider = provider
        self._settings = settings or get_settings()
        self._timeout = self._settings.analysis_timeout

    @property
    def provider(self) -> AnalysisProvider:
        return self._provider

    async def close(self) -> None:
        await self._provider.close()

    def _log_fallback(self, call: str, error: Exception) -> None:
        # CancelledError is a BaseException and still propagates
        logger.warning(
            "analysis_fallback", call=call, provider=self._provider.name,
            error_type=type(error).__name__, error=str(error),
        )

    async def _bounded(self, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise AnalysisTimeout(self._timeout) from e

    async def classify(self, text: str) -> PeriodAnalysis:
        try:
            result = await self._bounded(self._provider.classify(text))
            if not (result.mood and result.tip and _valid_score(result.score)):
                raise AnalysisUnavailable(f"Malformed classification: {result!r}")
            return result
        except Exception as e:
            self._log_fallback("classify", e)
            return fallback_period()

    async def summarize_day(
        self, texts: Sequence[str], results: Sequence[PeriodAnalysis]
    ) -> DayAnalysis:
        try:
            day = await self._bounded(self._provider.summarize_day(texts, results))
            if not (day.overall_mood and day.daily_summary and _valid_score(day.overall_score)):
                raise AnalysisUnavailable(f"Malformed day summary: {day!r}")
            return day
        except Exception as e:
            self._log_fallback("summarize_day", e)
            return fallback_day(results)

    async def monthly_insights(self, entries: Sequence[JournalEntry]) -> MonthlyInsights:
        if not entries:
            return MonthlyInsights(monthly_insights=FALLBACK_INSIGHTS)
        try:
            insights = await self._bounded(self._provider.monthly_insights(entries))
            if not insights.monthly_insights:
                raise AnalysisUnavailable("Empty monthly insights")
            return insights
        except Exception as e:
            self._log_fallback("monthly_insights", e)
            return MonthlyInsights(monthly_insights=FALLBACK_INSIGHTS)

    async def analyze_day(self, morning: str, afternoon: str, evening: str) -> DayReport:
        """Classify the three periods concurrently, then summarize the day."""
        m, a, e = await asyncio.gather(
            self.classify(morning),
            self.classify(afternoon),
            self.classify(evening),
        )
        day = await self.summarize_day((morning, afternoon, evening), (m, a, e))
        logger.info(
            "day_analyzed",
            provider=self._provider.name,
            overall_mood=day.overall_mood,
            overall_score=day.overall_score,
        )
        return DayReport(morning=m, afternoon=a, evening=e, day=day)
