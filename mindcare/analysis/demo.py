"""
Demo provider — local pseudo-random analysis used when no API key is set.

Output has the same shape and ranges as the remote provider but is not
reproducible unless a seeded random.Random is injected.
"""

from __future__ import annotations

import asyncio
import random
from collections import Counter
from typing import Optional, Sequence

from mindcare.analysis.base import (
    AnalysisProvider,
    DayAnalysis,
    MonthlyInsights,
    PeriodAnalysis,
)
from mindcare.journal.journal_analytics import round_half_up
from mindcare.journal.journal_models import JournalEntry, Mood
from mindcare.utils.logger import get_logger

logger = get_logger(__name__)

DEMO_MOODS = [
    Mood.HAPPY, Mood.CONTENT, Mood.NEUTRAL, Mood.ANXIOUS,
    Mood.SAD, Mood.EXCITED, Mood.STRESSED,
]

DEMO_TIPS = {
    Mood.HAPPY: "Keep up the positive energy! Consider sharing your joy with others.",
    Mood.CONTENT: "You're in a good place. Practice gratitude for this peaceful state.",
    Mood.NEUTRAL: "Take some time to reflect on what might bring you more joy today.",
    Mood.ANXIOUS: "Try some deep breathing exercises or a short walk to calm your mind.",
    Mood.SAD: "It's okay to feel sad. Consider reaching out to a friend or practicing self-care.",
    Mood.EXCITED: "Channel this energy into something productive or creative!",
    Mood.STRESSED: "Take a break, practice mindfulness, or try some relaxation techniques.",
}

DEMO_SUMMARIES = [
    "Your day showed a nice balance of emotions. The variety in your feelings suggests "
    "you're experiencing life fully and authentically.",
    "Today's emotional journey reflects natural human responses to daily experiences. "
    "Continue practicing mindfulness to stay aware of these patterns.",
    "Your mood progression throughout the day is completely normal. Consider what specific "
    "events or activities influenced your emotional state.",
    "The emotional shifts you experienced today show healthy emotional responsiveness. "
    "Keep journaling to maintain this self-awareness.",
    "Your day's emotional landscape shows resilience and adaptability. These are valuable "
    "traits for mental wellness.",
]

DEMO_INSIGHTS = [
    "Over the past month, you've shown remarkable consistency in your journaling practice. "
    "Your emotional awareness has likely improved through this regular reflection. Consider "
    "scheduling important tasks during your peak energy times.",
    "Your monthly data reveals a healthy range of emotions, indicating you're fully "
    "experiencing life's ups and downs. Try incorporating some weekend activities into your "
    "weekday routine for better overall mood stability.",
    "The past month shows your emotional resilience and adaptability. Your evening "
    "reflections tend to be more thoughtful and grounded. Consider using evening time for "
    "planning and goal-setting activities.",
    "Your journaling reveals strong self-awareness and emotional processing skills. Focus on "
    "maintaining the positive patterns you've established while being gentle with yourself "
    "during challenging periods.",
]


def dominant_mood(moods: Sequence[str]) -> str:
    """Most frequent mood; ties go to the earliest period."""
    counts = Counter(moods)
    best = max(counts.values())
    return next(m for m in moods if counts[m] == best)


def mean_score(scores: Sequence[int]) -> int:
    """Half-up rounded mean, the way the fallback and demo day scores are built."""
    return round_half_up(sum(scores) / len(scores))


class DemoProvider(AnalysisProvider):
    name = "demo"

    def __init__(self, rng: Optional[random.Random] = None, latency: float = 0.0) -> None:
        self._rng = rng or random.Random()
        self._latency = latency

    async def _pause(self, factor: float = 1.0) -> None:
        if self._latency > 0:
            await asyncio.sleep(self._latency * factor)

    async def classify(self, text: str) -> PeriodAnalysis:
        await self._pause()
        mood = self._rng.choice(DEMO_MOODS)
        score = self._rng.randint(1, 10)
        logger.debug("demo_classified", mood=mood.value, score=score, chars=len(text))
        return PeriodAnalysis(mood=mood.value, score=score, tip=DEMO_TIPS[mood])

    async def summarize_day(
        self, texts: Sequence[str], results: Sequence[PeriodAnalysis]
    ) -> DayAnalysis:
        await self._pause(1.5)
        return DayAnalysis(
            overall_mood=dominant_mood([r.mood for r in results]),
            overall_score=mean_score([r.score for r in results]),
            daily_summary=self._rng.choice(DEMO_SUMMARIES),
        )

    async def monthly_insights(self, entries: Sequence[JournalEntry]) -> MonthlyInsights:
        await self._pause(2.0)
        return MonthlyInsights(monthly_insights=self._rng.choice(DEMO_INSIGHTS))
