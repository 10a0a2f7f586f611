from __future__ import annotations

import io
from datetime import date
from typing import Any, Mapping, Optional

from mindcare.analysis import AnalysisGateway, build_gateway
from mindcare.auth.accounts import AccountService, UserStore
from mindcare.auth.session import Session, SessionManager
from mindcare.journal.entry_store import EntryStore
from mindcare.journal.journal_analytics import JournalAnalytics, entries_to_frame
from mindcare.journal.journal_models import (
    JournalEntry, MAX_SCORE, MIN_SCORE, PERIODS, User, utc_now,
)
from mindcare.journal.journal_repository import JournalRepository
from mindcare.utils.config import Settings, get_settings
from mindcare.utils.exceptions import ValidationError
from mindcare.utils.logger import get_logger

logger = get_logger(__name__)

TEXT_FIELDS = {p.value for p in PERIODS} | {
    "morning_tip", "afternoon_tip", "evening_tip", "daily_summary", "date",
}
SCORE_FIELDS = {f"{p.value}_score" for p in PERIODS} | {"overall_score"}
MOOD_FIELDS = {f"{p.value}_mood" for p in PERIODS} | {"overall_mood"}


def validate_period_texts(morning: str, afternoon: str, evening: str) -> tuple[str, str, str]:
    texts = []
    for period, text in zip(PERIODS, (morning, afternoon, evening)):
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValidationError(f"Please write something for the {period.value}", field=period.value)
        texts.append(cleaned)
    return texts[0], texts[1], texts[2]


def validate_patch(patch: Mapping[str, Any]) -> None:
    """Caller-side checks on an edit: scores in range, moods and period texts non-empty."""
    for name, value in patch.items():
        if name in SCORE_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int) or not MIN_SCORE <= value <= MAX_SCORE:
                raise ValidationError(f"{name} must be an integer between {MIN_SCORE} and {MAX_SCORE}", field=name)
        elif name in MOOD_FIELDS or name in {p.value for p in PERIODS}:
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{name} must not be empty", field=name)
        elif name in TEXT_FIELDS and not isinstance(value, str):
            raise ValidationError(f"{name} must be text", field=name)


class JournalService:
    """
    Application layer: one object wiring storage, analysis, analytics,
    accounts and sessions together. Constructed once at startup.
    """

    def __init__(
        self,
        repository: JournalRepository,
        gateway: AnalysisGateway,
        accounts: AccountService,
        sessions: Optional[SessionManager] = None,
        analytics: Optional[JournalAnalytics] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repo = repository
        self._gateway = gateway
        self._accounts = accounts
        self._sessions = sessions or SessionManager()
        self._analytics = analytics or JournalAnalytics(repository, self._settings)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> JournalService:
        settings = settings or get_settings()
        store = EntryStore(settings=settings)
        repository = JournalRepository(store, settings)
        return cls(
            repository=repository,
            gateway=build_gateway(settings),
            accounts=AccountService(UserStore(store, settings)),
            settings=settings,
        )

    @property
    def sessions(self) -> SessionManager:
        return self._sessions

    @property
    def repository(self) -> JournalRepository:
        return self._repo

    @property
    def gateway(self) -> AnalysisGateway:
        return self._gateway

    async def close(self) -> None:
        await self._gateway.close()
        self._repo.store.close()

    # ─── Accounts ───────────────────────────────────────────────

    def sign_up(self, name: str, password: str) -> Session:
        return self._sessions.open(self._accounts.sign_up(name, password))

    def sign_in(self, name: str, password: str) -> Session:
        return self._sessions.open(self._accounts.sign_in(name, password))

    def sign_out(self, token: str) -> bool:
        return self._sessions.close(token)

    def rename(self, session: Session, new_name: str) -> User:
        user = self._accounts.rename(session.user_id, new_name)
        self._sessions.refresh_user(user)
        return user

    # ─── Journal ────────────────────────────────────────────────

    async def record_day(self, session: Session, morning: str, afternoon: str, evening: str) -> JournalEntry:
        """Analyze a day's three entries and persist the combined record."""
        morning, afternoon, evening = validate_period_texts(morning, afternoon, evening)
        report = await self._gateway.analyze_day(morning, afternoon, evening)

        fields: dict[str, Any] = {
            "morning": morning,
            "afternoon": afternoon,
            "evening": evening,
            "date": utc_now().date().isoformat(),
            **report.entry_fields(),
        }
        validate_patch({k: v for k, v in fields.items() if k in SCORE_FIELDS})

        entry_id = self._repo.save(session.user_id, fields)
        entry = self._repo.get(session.user_id, entry_id)
        logger.info("journal_saved", user_id=session.user_id, entry_id=entry_id,
                    overall_mood=report.day.overall_mood, overall_score=report.day.overall_score)
        return entry

    def entries(self, session: Session, limit: Optional[int] = None) -> list[JournalEntry]:
        return self._repo.list_entries(session.user_id, limit)

    def update_entry(self, session: Session, entry_id: str, patch: Mapping[str, Any]) -> JournalEntry:
        validate_patch(patch)
        return self._repo.update(session.user_id, entry_id, patch)

    def delete_entry(self, session: Session, entry_id: str) -> bool:
        deleted = self._repo.delete(session.user_id, entry_id)
        if not deleted:
            logger.info("journal_delete_noop", user_id=session.user_id, entry_id=entry_id)
        return deleted

    # ─── Dashboard ──────────────────────────────────────────────

    def stats(self, session: Session, today: Optional[date] = None) -> dict[str, Any]:
        return self._analytics.journal_stats(session.user_id, today)

    async def dashboard(self, session: Session, window: Optional[int] = None,
                        today: Optional[date] = None) -> dict[str, Any]:
        result = self._analytics.dashboard(session.user_id, window, today)
        monthly = self._repo.list_since(session.user_id, self._settings.monthly_window_days)
        insights = await self._gateway.monthly_insights(monthly)
        result["monthly_insights"] = insights.monthly_insights
        return result

    def export_csv(self, session: Session) -> str:
        frame = entries_to_frame(self._repo.list_entries(session.user_id))
        buffer = io.StringIO()
        frame.to_csv(buffer, index=False)
        return buffer.getvalue()

    # ─── Wipe ───────────────────────────────────────────────────

    def wipe(self, session: Session) -> None:
        """Delete every journal entry and the account, then end all sessions."""
        logger.warning("wipe_requested", user_id=session.user_id)
        self._repo.clear()
        self._sessions.close_all()
