from __future__ import annotations

import asyncio
from typing import Any, Optional, Sequence

import aiohttp
from aiolimiter import AsyncLimiter

from mindcare.analysis.base import (
    AnalysisProvider,
    DayAnalysis,
    MonthlyInsights,
    PeriodAnalysis,
    day_from_dict,
    insights_from_dict,
    parse_json_text,
    period_from_dict,
)
from mindcare.journal.journal_models import KNOWN_MOODS, JournalEntry
from mindcare.utils.config import Settings, get_settings
from mindcare.utils.exceptions import AnalysisUnavailable
from mindcare.utils.logger import get_logger

logger = get_logger(__name__)

CLASSIFY_PROMPT = """
Analyze the following journal entry and provide:
1. A mood classification ({moods})
2. A mood score from 1-10 (1 being very negative, 10 being very positive)
3. A brief personalized tip or suggestion (max 100 words)

Journal entry: "{text}"

Please respond in the following JSON format:
{{
  "mood": "mood_classification",
  "score": mood_score_number,
  "tip": "personalized_tip_here"
}}
"""

DAY_PROMPT = """
Analyze a full day of journal entries and provide:
1. An overall mood for the day
2. An overall mood score (1-10)
3. A comprehensive daily summary and tip (max 150 words)

Morning entry: "{morning}" (Mood: {morning_mood}, Score: {morning_score})
Afternoon entry: "{afternoon}" (Mood: {afternoon_mood}, Score: {afternoon_score})
Evening entry: "{evening}" (Mood: {evening_mood}, Score: {evening_score})

Please respond in the following JSON format:
{{
  "overallMood": "mood_classification",
  "overallScore": average_score_number,
  "dailySummary": "comprehensive_daily_summary_and_tip"
}}
"""

MONTH_PROMPT = """
Analyze the following month of journal data and provide insights:
{summary}

Please provide:
1. Overall behavior patterns observed
2. Mood trends and fluctuations
3. Personalized recommendations for improvement
4. Positive highlights from the month

Respond in JSON format:
{{
  "monthlyInsights": "comprehensive_monthly_analysis_and_recommendations"
}}
"""


class GeminiProvider(AnalysisProvider):
    name = "gemini"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._session: Optional[aiohttp.ClientSession] = None
        self._limiter = AsyncLimiter(self._settings.rate_limit_analysis, 1)

    @property
    def endpoint(self) -> str:
        base = self._settings.gemini_api_url.rstrip("/")
        return f"{base}/{self._settings.gemini_model}:generateContent"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._settings.analysis_timeout),
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def _generate(self, prompt: str) -> str:
        """Send one prompt and return the model's text reply."""
        settings = self._settings
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        params = {"key": settings.gemini_api_key}

        last_error: Optional[Exception] = None
        for attempt in range(settings.max_retries):
            try:
                async with self._limiter:
                    session = await self._get_session()
                    async with session.post(self.endpoint, params=params, json=body) as response:
                        if response.status == 429 or response.status >= 500:
                            wait_time = settings.retry_delay * (2 ** attempt)
                            logger.warning(
                                "gemini_retry", status=response.status, attempt=attempt + 1, wait=wait_time
                            )
                            last_error = AnalysisUnavailable(f"HTTP {response.status}")
                            await asyncio.sleep(wait_time)
                            continue

                        if response.status != 200:
                            text = await response.text()
                            logger.error("gemini_request_failed", status=response.status, body=text[:200])
                            raise AnalysisUnavailable(f"HTTP error! status: {response.status}")

                        try:
                            data = await response.json(content_type=None)
                        except ValueError as e:
                            raise AnalysisUnavailable(f"Response body is not JSON: {e}") from e
                        return self._extract_text(data)

            except aiohttp.ClientError as e:
                last_error = e
                wait_time = settings.retry_delay * (2 ** attempt)
                logger.warning("gemini_network_error", error=str(e), attempt=attempt + 1, wait=wait_time)
                await asyncio.sleep(wait_time)

        raise AnalysisUnavailable(f"Gemini request failed after {settings.max_retries} attempts: {last_error}")

    @staticmethod
    def _extract_text(data: Any) -> str:
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AnalysisUnavailable(f"Unexpected Gemini response shape: {e}") from e

    async def classify(self, text: str) -> PeriodAnalysis:
        prompt = CLASSIFY_PROMPT.format(moods=", ".join(KNOWN_MOODS), text=text)
        reply = await self._generate(prompt)
        return period_from_dict(parse_json_text(reply))

    async def summarize_day(
        self, texts: Sequence[str], results: Sequence[PeriodAnalysis]
    ) -> DayAnalysis:
        morning, afternoon, evening = texts
        m, a, e = results
        prompt = DAY_PROMPT.format(
            morning=morning, morning_mood=m.mood, morning_score=m.score,
            afternoon=afternoon, afternoon_mood=a.mood, afternoon_score=a.score,
            evening=evening, evening_mood=e.mood, evening_score=e.score,
        )
        reply = await self._generate(prompt)
        return day_from_dict(parse_json_text(reply))

    async def monthly_insights(self, entries: Sequence[JournalEntry]) -> MonthlyInsights:
        summary = "\n".join(
            f"Date: {e.created:%a %b %d %Y}, Overall Mood: {e.overall_mood}, Score: {e.overall_score}"
            for e in entries
        )
        reply = await self._generate(MONTH_PROMPT.format(summary=summary))
        return insights_from_dict(parse_json_text(reply))
