"""
Journal Persistence & Aggregation
=================================

Architecture:
  journal_models.py      — JournalEntry / User dataclasses, enums, time helpers
  entry_store.py         — SQLite key-value store (the only I/O primitive)
  journal_repository.py  — per-user CRUD over one serialized collection
  journal_analytics.py   — averages, mood distribution, trends, activity
"""

from mindcare.journal.journal_models import (
    JournalEntry,
    User,
    Mood,
    Period,
    KNOWN_MOODS,
    PERIODS,
)

from mindcare.journal.entry_store import EntryStore
from mindcare.journal.journal_repository import JournalRepository
from mindcare.journal.journal_analytics import (
    JournalAnalytics,
    average_score,
    mood_distribution,
    daily_trend,
    weekly_activity,
)

__all__ = [
    # Models
    "JournalEntry", "User", "Mood", "Period", "KNOWN_MOODS", "PERIODS",
    # Engines
    "EntryStore", "JournalRepository", "JournalAnalytics",
    # Aggregations
    "average_score", "mood_distribution", "daily_trend", "weekly_activity",
]
