"""
Shared fixtures for the journal, analysis and web tests.

Storage is a real SQLite file under tmp_path; time is driven by a FakeClock
so ordering and updated_at behaviour are deterministic; analysis uses a
ScriptedProvider that returns queued results instead of calling a model.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

import pytest

from mindcare.analysis.base import (
    AnalysisProvider,
    DayAnalysis,
    MonthlyInsights,
    PeriodAnalysis,
)
from mindcare.analysis.gateway import AnalysisGateway
from mindcare.api.service import JournalService
from mindcare.auth.accounts import AccountService, UserStore
from mindcare.journal.entry_store import EntryStore
from mindcare.journal.journal_analytics import JournalAnalytics
from mindcare.journal.journal_models import JournalEntry
from mindcare.journal.journal_repository import JournalRepository
from mindcare.utils.config import Settings


# ─────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def day_fields(score: int = 7, mood: str = "Happy", **overrides: Any) -> dict[str, Any]:
    """A complete set of entry fields as the journaling flow would save them."""
    fields = {
        "morning": "Slept well and went for a run.",
        "afternoon": "Busy meetings, a bit tired.",
        "evening": "Dinner with friends.",
        "morning_mood": "Happy",
        "afternoon_mood": "Stressed",
        "evening_mood": "Content",
        "morning_score": 8,
        "afternoon_score": 5,
        "evening_score": 8,
        "morning_tip": "Keep the morning routine.",
        "afternoon_tip": "Take short breaks.",
        "evening_tip": "Enjoy the company.",
        "overall_mood": mood,
        "overall_score": score,
        "daily_summary": "A balanced day.",
        "date": "2026-10-01",
    }
    fields.update(overrides)
    return fields


def make_entry(score: int = 7, mood: str = "Happy", created_at: str = "2026-10-01T09:00:00+00:00",
               entry_id: str = "e1", **overrides: Any) -> JournalEntry:
    entry = JournalEntry.from_dict(day_fields(score, mood, **overrides))
    entry.id = entry_id
    entry.user_id = "u1"
    entry.created_at = created_at
    entry.updated_at = created_at
    return entry


class ScriptedProvider(AnalysisProvider):
    """Returns queued period results; records every call it receives."""

    name = "scripted"

    def __init__(self, periods: Optional[Sequence[PeriodAnalysis]] = None,
                 day: Optional[DayAnalysis] = None,
                 insights: str = "You journaled consistently this month.") -> None:
        self._periods = list(periods or [
            PeriodAnalysis("Happy", 8, "Keep it up."),
            PeriodAnalysis("Stressed", 4, "Breathe."),
            PeriodAnalysis("Content", 7, "Rest well."),
        ])
        self._day = day
        self._insights = insights
        self.calls: list[tuple[str, Any]] = []

    async def classify(self, text: str) -> PeriodAnalysis:
        self.calls.append(("classify", text))
        return self._periods[(len([c for c in self.calls if c[0] == "classify"]) - 1) % len(self._periods)]

    async def summarize_day(self, texts: Sequence[str], results: Sequence[PeriodAnalysis]) -> DayAnalysis:
        self.calls.append(("summarize_day", list(results)))
        if self._day is not None:
            return self._day
        return DayAnalysis("Content", round(sum(r.score for r in results) / len(results)), "Steady day.")

    async def monthly_insights(self, entries: Sequence[JournalEntry]) -> MonthlyInsights:
        self.calls.append(("monthly_insights", len(entries)))
        return MonthlyInsights(self._insights)


# ─────────────────────────────────────────────────────────
# Pytest Fixtures
# ─────────────────────────────────────────────────────────

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        gemini_api_key="",
        storage_path=str(tmp_path / "mindcare.db"),
        log_file=str(tmp_path / "logs" / "mindcare.log"),
        analysis_timeout=1.0,
        demo_latency=0.0,
    )


@pytest.fixture
def store(settings):
    s = EntryStore(settings=settings)
    yield s
    s.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo(store, settings, clock) -> JournalRepository:
    return JournalRepository(store, settings, clock=clock)


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def gateway(provider, settings) -> AnalysisGateway:
    return AnalysisGateway(provider, settings)


@pytest.fixture
def service(repo, gateway, store, settings) -> JournalService:
    return JournalService(
        repository=repo,
        gateway=gateway,
        accounts=AccountService(UserStore(store, settings)),
        analytics=JournalAnalytics(repo, settings, tz=timezone.utc),
        settings=settings,
    )
