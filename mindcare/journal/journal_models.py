"""
Journal Data Models
===================

JournalEntry — one day of morning / afternoon / evening writing plus the
               mood, score and tip derived for each period and for the day
User         — the account that owns entries

All models are dataclasses with to_dict()/from_dict() for key-value storage.
Timestamps are timezone-aware ISO-8601 strings (UTC).
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, field, asdict, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List
from urllib.parse import quote


# ── Enums ────────────────────────────────────────────────────

class Period(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class Mood(str, Enum):
    HAPPY = "Happy"
    SAD = "Sad"
    NEUTRAL = "Neutral"
    ANXIOUS = "Anxious"
    EXCITED = "Excited"
    STRESSED = "Stressed"
    ANGRY = "Angry"
    CONTENT = "Content"
    CONFUSED = "Confused"
    HOPEFUL = "Hopeful"


KNOWN_MOODS: List[str] = [m.value for m in Mood]
PERIODS: List[Period] = [Period.MORNING, Period.AFTERNOON, Period.EVENING]

MIN_SCORE = 1
MAX_SCORE = 10

# Set by the repository, never by callers.
PROTECTED_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})

AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=2563eb&color=fff&size=40"


# ── Time helpers ─────────────────────────────────────────────

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def new_entry_id() -> str:
    return uuid.uuid4().hex


def avatar_url(name: str) -> str:
    return AVATAR_URL.format(name=quote(name, safe=""))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# JOURNAL ENTRY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class JournalEntry:
    """
    One day's journal record. Immutable after creation except through
    JournalRepository.update(), which always refreshes updated_at.
    """
    # ── Identification ──
    id: str = ""
    user_id: str = ""
    created_at: str = ""
    updated_at: str = ""
    date: str = ""                   # YYYY-MM-DD, informational only

    # ── Raw writing ──
    morning: str = ""
    afternoon: str = ""
    evening: str = ""

    # ── Per-period analysis ──
    morning_mood: str = ""
    afternoon_mood: str = ""
    evening_mood: str = ""
    morning_score: Optional[int] = None
    afternoon_score: Optional[int] = None
    evening_score: Optional[int] = None
    morning_tip: str = ""
    afternoon_tip: str = ""
    evening_tip: str = ""

    # ── Day analysis ──
    overall_mood: str = ""
    overall_score: Optional[int] = None
    daily_summary: str = ""

    @classmethod
    def field_names(cls) -> frozenset:
        return frozenset(f.name for f in fields(cls))

    @property
    def created(self) -> datetime:
        return parse_iso(self.created_at)

    @property
    def updated(self) -> datetime:
        return parse_iso(self.updated_at)

    def period_text(self, period: Period) -> str:
        return getattr(self, period.value)

    def period_score(self, period: Period) -> Optional[int]:
        return getattr(self, f"{period.value}_score")

    def period_mood(self, period: Period) -> str:
        return getattr(self, f"{period.value}_mood")

    def content(self) -> Dict[str, Any]:
        """Every field except the ones the repository assigns."""
        return {k: v for k, v in self.to_dict().items() if k not in PROTECTED_FIELDS}

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "JournalEntry":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# USER
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class User:
    """Account record. picture is derived from name and follows every rename."""
    id: str = field(default_factory=new_entry_id)
    name: str = ""
    created_at: str = field(default_factory=lambda: to_iso(utc_now()))
    picture: str = ""

    def __post_init__(self):
        if not self.picture and self.name:
            self.picture = avatar_url(self.name)

    def rename(self, name: str) -> None:
        self.name = name
        self.picture = avatar_url(name)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "User":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})
