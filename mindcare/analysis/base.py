"""
Analysis provider interface and result types.

A provider turns journal text into mood classifications. Providers raise
AnalysisUnavailable for every failure (transport, status, unparseable or
out-of-range output); the gateway decides what to do about it.
"""

from __future__ import annotations

import json
import math
import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Sequence

from mindcare.journal.journal_models import JournalEntry, MAX_SCORE, MIN_SCORE
from mindcare.utils.exceptions import AnalysisUnavailable

_FENCE_RE = re.compile(r"```(?:json)?\s*|\s*```")


@dataclass
class PeriodAnalysis:
    mood: str
    score: int
    tip: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DayAnalysis:
    overall_mood: str
    overall_score: int
    daily_summary: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MonthlyInsights:
    monthly_insights: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DayReport:
    """Three period analyses plus the day analysis derived from them."""
    morning: PeriodAnalysis
    afternoon: PeriodAnalysis
    evening: PeriodAnalysis
    day: DayAnalysis

    def entry_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for period in ("morning", "afternoon", "evening"):
            result: PeriodAnalysis = getattr(self, period)
            fields[f"{period}_mood"] = result.mood
            fields[f"{period}_score"] = result.score
            fields[f"{period}_tip"] = result.tip
        fields["overall_mood"] = self.day.overall_mood
        fields["overall_score"] = self.day.overall_score
        fields["daily_summary"] = self.day.daily_summary
        return fields


class AnalysisProvider(ABC):
    name: str = "provider"

    @abstractmethod
    async def classify(self, text: str) -> PeriodAnalysis:
        ...

    @abstractmethod
    async def summarize_day(
        self, texts: Sequence[str], results: Sequence[PeriodAnalysis]
    ) -> DayAnalysis:
        ...

    @abstractmethod
    async def monthly_insights(self, entries: Sequence[JournalEntry]) -> MonthlyInsights:
        ...

    async def close(self) -> None:
        return None


# ─── Response parsing ────────────────────────────────────────

def parse_json_text(text: str) -> dict[str, Any]:
    """Parse a model reply that may be wrapped in ```json fences."""
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise AnalysisUnavailable(f"Response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise AnalysisUnavailable("Response JSON is not an object")
    return data


def _text_field(data: dict[str, Any], name: str) -> str:
    value = data.get(name)
    if not isinstance(value, str) or not value.strip():
        raise AnalysisUnavailable(f"Missing or empty field '{name}'")
    return value.strip()


def _score_field(data: dict[str, Any], name: str) -> int:
    value = data.get(name)
    if isinstance(value, bool):
        raise AnalysisUnavailable(f"Field '{name}' is not a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as e:
            raise AnalysisUnavailable(f"Field '{name}' is not a number") from e
    if isinstance(value, float):
        if not math.isfinite(value):
            raise AnalysisUnavailable(f"Field '{name}' is not a finite number")
        if not value.is_integer():
            value = int(value + 0.5)
        value = int(value)
    if not isinstance(value, int):
        raise AnalysisUnavailable(f"Field '{name}' is not a number")
    if not MIN_SCORE <= value <= MAX_SCORE:
        raise AnalysisUnavailable(f"Field '{name}'={value} outside [{MIN_SCORE}, {MAX_SCORE}]")
    return value


def normalize_mood(mood: str) -> str:
    return mood.strip().capitalize()


def period_from_dict(data: dict[str, Any]) -> PeriodAnalysis:
    return PeriodAnalysis(
        mood=normalize_mood(_text_field(data, "mood")),
        score=_score_field(data, "score"),
        tip=_text_field(data, "tip"),
    )


def day_from_dict(data: dict[str, Any]) -> DayAnalysis:
    return DayAnalysis(
        overall_mood=normalize_mood(_text_field(data, "overallMood")),
        overall_score=_score_field(data, "overallScore"),
        daily_summary=_text_field(data, "dailySummary"),
    )


def insights_from_dict(data: dict[str, Any]) -> MonthlyInsights:
    return MonthlyInsights(monthly_insights=_text_field(data, "monthlyInsights"))
