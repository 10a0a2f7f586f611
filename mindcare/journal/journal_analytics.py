"""
Journal Analytics Engine — dashboard statistics over a journal snapshot
=======================================================================

Pure functions over the newest-first list returned by
JournalRepository.list_entries():
  - Average overall score
  - Mood distribution (count + percentage per overall mood)
  - Daily trend points for charting (oldest -> newest)
  - Weekly activity (entries per calendar day, last 7 days)
  - Morning / afternoon / evening breakdown and averages

No function here defaults a malformed entry to zero: a missing or
non-integer score raises, so a bad record can never skew a chart silently.
"""

from __future__ import annotations
import logging
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Any, Optional, Sequence

import pandas as pd

from mindcare.journal.journal_models import (
    JournalEntry, PERIODS, MIN_SCORE, MAX_SCORE,
)
from mindcare.journal.journal_repository import JournalRepository
from mindcare.utils.config import Settings, get_settings

logger = logging.getLogger("journal_analytics")

SCORE_COLUMNS = ["overall_score", "morning_score", "afternoon_score", "evening_score"]
EXPORT_COLUMNS = [
    "id", "date", "created_at", "updated_at",
    "morning", "morning_mood", "morning_score", "morning_tip",
    "afternoon", "afternoon_mood", "afternoon_score", "afternoon_tip",
    "evening", "evening_mood", "evening_score", "evening_tip",
    "overall_mood", "overall_score", "daily_summary",
]


def round1(value: float) -> float:
    """Round half-up to one decimal (6.65 -> 6.7), as the dashboard displays."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ─── INPUT CHECKS ───────────────────────────────────────────

def _require_entry(entry: Any) -> JournalEntry:
    if not isinstance(entry, JournalEntry):
        raise TypeError(f"Expected JournalEntry, got {type(entry).__name__}")
    return entry


def _require_score(entry: JournalEntry, name: str = "overall_score") -> int:
    score = getattr(entry, name)
    if isinstance(score, bool) or not isinstance(score, int):
        raise TypeError(f"Entry {entry.id}: {name} must be an int, got {score!r}")
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValueError(f"Entry {entry.id}: {name}={score} outside [{MIN_SCORE}, {MAX_SCORE}]")
    return score


def _require_mood(entry: JournalEntry) -> str:
    mood = entry.overall_mood
    if not isinstance(mood, str) or not mood.strip():
        raise ValueError(f"Entry {entry.id}: overall_mood is empty")
    return mood


def _chart_label(ts: datetime, tz: Optional[tzinfo] = None) -> str:
    local = ts.astimezone(tz)
    return f"{local:%b} {local.day}"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CORE STATISTICS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def average_score(entries: Sequence[JournalEntry]) -> float:
    """Mean overall_score to one decimal; 0.0 for no entries."""
    if not entries:
        return 0.0
    scores = [_require_score(_require_entry(e)) for e in entries]
    return round1(sum(scores) / len(scores))


def mood_distribution(entries: Sequence[JournalEntry]) -> List[Dict[str, Any]]:
    """
    Overall moods by count descending (ties keep first-seen order).

    Percentages are apportioned in tenths with the largest-remainder method,
    so every value is its exact share rounded up or down to one decimal and
    the column always totals exactly 100.0.

    This differs from rounding each share on its own: three equal moods give
    33.4 / 33.3 / 33.3 here, not 33.3 three times (which totals 99.9). The
    extra tenth goes to the largest remainder, first-seen on ties.
    """
    if not entries:
        return []
    counts: Dict[str, int] = {}
    for e in entries:
        mood = _require_mood(_require_entry(e))
        counts[mood] = counts.get(mood, 0) + 1

    # sorted() is stable, so equal counts keep insertion order
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    total = len(entries)

    tenths = [count * 1000 // total for _, count in ranked]
    remainders = [count * 1000 % total for _, count in ranked]
    leftover = 1000 - sum(tenths)
    by_remainder = sorted(range(len(ranked)), key=lambda i: remainders[i], reverse=True)
    for i in by_remainder[:leftover]:
        tenths[i] += 1

    return [
        {"mood": mood, "count": count, "percentage": tenths[i] / 10}
        for i, (mood, count) in enumerate(ranked)
    ]


def most_common_mood(entries: Sequence[JournalEntry]) -> Optional[Dict[str, Any]]:
    dist = mood_distribution(entries)
    return dist[0] if dist else None


def daily_trend(entries: Sequence[JournalEntry], window_size: int = 30,
                tz: Optional[tzinfo] = None) -> List[Dict[str, Any]]:
    """Chart points for the newest window_size entries, oldest first."""
    window = list(entries[:max(window_size, 0)])
    points = []
    for e in reversed(window):
        _require_entry(e)
        points.append({
            "date": _chart_label(e.created, tz),
            "full_date": e.created_at,
            "overall_score": _require_score(e),
            "morning_score": e.morning_score,
            "afternoon_score": e.afternoon_score,
            "evening_score": e.evening_score,
            "mood": _require_mood(e),
        })
    return points


def weekly_activity(entries: Sequence[JournalEntry], today: Optional[date] = None,
                    tz: Optional[tzinfo] = None) -> List[Dict[str, Any]]:
    """Entries per calendar day for the last 7 days (today last)."""
    if today is None:
        today = datetime.now(tz).date()
    per_day: Dict[date, int] = {}
    for e in entries:
        day = _require_entry(e).created.astimezone(tz).date()
        per_day[day] = per_day.get(day, 0) + 1

    activity = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        activity.append({"date": day.isoformat(), "entries": per_day.get(day, 0)})
    return activity


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PERIOD BREAKDOWN
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def period_breakdown(entries: Sequence[JournalEntry], days: int = 7,
                     tz: Optional[tzinfo] = None) -> List[Dict[str, Any]]:
    """Morning / afternoon / evening scores of the newest `days` entries, oldest first."""
    rows = []
    for e in reversed(list(entries[:max(days, 0)])):
        _require_entry(e)
        row: Dict[str, Any] = {"date": _chart_label(e.created, tz)}
        for period in PERIODS:
            row[f"{period.value}_score"] = _require_score(e, f"{period.value}_score")
        rows.append(row)
    return rows


def entries_to_frame(entries: Sequence[JournalEntry]) -> pd.DataFrame:
    """Tabular view of entries (export columns, newest first as given)."""
    records = [_require_entry(e).to_dict() for e in entries]
    frame = pd.DataFrame.from_records(records, columns=EXPORT_COLUMNS)
    for col in SCORE_COLUMNS:
        frame[col] = frame[col].astype("Int64")
    return frame


def period_averages(entries: Sequence[JournalEntry]) -> Dict[str, float]:
    """Average score per period and overall, one decimal; 0.0 where no data."""
    for e in entries:
        _require_score(_require_entry(e))
    frame = entries_to_frame(entries)
    averages = {}
    for col in SCORE_COLUMNS:
        values = frame[col].dropna()
        name = col.replace("_score", "")
        averages[name] = round1(float(values.mean())) if len(values) else 0.0
    return averages


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REPOSITORY-BACKED REPORTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class JournalAnalytics:
    """
    Reads a window of entries from the repository and assembles the
    dashboard payload. Holds no state of its own.
    """

    def __init__(self, repository: JournalRepository, settings: Optional[Settings] = None,
                 tz: Optional[tzinfo] = None):
        self._repo = repository
        self._settings = settings or get_settings()
        self._tz = tz

    def journal_stats(self, user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        """Totals, average, 7-entry mood trend and 7-day activity for one user."""
        entries = self._repo.list_entries(user_id)
        return {
            "total_entries": len(entries),
            "average_score": average_score(entries),
            "mood_trend": [
                {"date": p["date"], "score": p["overall_score"]}
                for p in daily_trend(entries, 7, self._tz)
            ],
            "weekly_activity": weekly_activity(entries, today, self._tz),
        }

    def dashboard(self, user_id: str, window: Optional[int] = None,
                  today: Optional[date] = None) -> Dict[str, Any]:
        """Everything the dashboard renders, over the newest `window` entries."""
        window = window or self._settings.dashboard_window
        entries = self._repo.list_entries(user_id, window)
        result = {
            "total_entries": len(entries),
            "average_score": average_score(entries),
            "most_common_mood": most_common_mood(entries),
            "mood_distribution": mood_distribution(entries),
            "daily_trend": daily_trend(entries, window, self._tz),
            "period_breakdown": period_breakdown(entries, 7, self._tz),
            "period_averages": period_averages(entries),
            "weekly_activity": weekly_activity(entries, today, self._tz),
        }
        logger.debug("Dashboard for %s built from %d entries", user_id, len(entries))
        return result
