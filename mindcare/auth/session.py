from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Optional

from mindcare.journal.journal_models import User, to_iso, utc_now
from mindcare.utils.exceptions import AuthenticationError
from mindcare.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Session:
    token: str
    user: User
    opened_at: str = field(default_factory=lambda: to_iso(utc_now()))

    @property
    def user_id(self) -> str:
        return self.user.id


class SessionManager:
    """
    Open sessions, keyed by token. Created explicitly on sign-in and torn
    down on sign-out or data wipe; nothing here is process-global.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def open(self, user: User) -> Session:
        session = Session(token=secrets.token_urlsafe(32), user=user)
        self._sessions[session.token] = session
        logger.info("session_opened", user_id=user.id)
        return session

    def get(self, token: str) -> Optional[Session]:
        if not token:
            return None
        return self._sessions.get(token)

    def require(self, token: str) -> Session:
        session = self.get(token)
        if session is None:
            raise AuthenticationError("Not authenticated")
        return session

    def refresh_user(self, user: User) -> None:
        for session in self._sessions.values():
            if session.user.id == user.id:
                session.user = user

    def close(self, token: str) -> bool:
        session = self._sessions.pop(token, None)
        if session is not None:
            logger.info("session_closed", user_id=session.user_id)
        return session is not None

    def close_all(self) -> int:
        count = len(self._sessions)
        self._sessions.clear()
        if count:
            logger.info("sessions_closed", count=count)
        return count
