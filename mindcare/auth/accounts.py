from __future__ import annotations

import hashlib
import hmac
import json
import secrets
from typing import Any, Optional

from mindcare.journal.entry_store import EntryStore
from mindcare.journal.journal_models import User
from mindcare.utils.config import Settings, get_settings
from mindcare.utils.exceptions import AuthenticationError, StorageFailure, ValidationError
from mindcare.utils.logger import get_logger

logger = get_logger(__name__)

PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: Optional[bytes] = None,
                  iterations: int = PBKDF2_ITERATIONS) -> dict[str, Any]:
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return {"salt": salt.hex(), "hash": digest.hex(), "iterations": iterations}


def verify_password(password: str, record: dict[str, Any]) -> bool:
    try:
        salt = bytes.fromhex(record["salt"])
        iterations = int(record["iterations"])
        expected = record["hash"]
    except (KeyError, TypeError, ValueError):
        return False
    candidate = hash_password(password, salt, iterations)["hash"]
    return hmac.compare_digest(candidate, expected)


class UserStore:
    """The single local account, kept under the `user` and `user_auth` keys."""

    def __init__(self, store: EntryStore, settings: Optional[Settings] = None) -> None:
        self._store = store
        self._settings = settings or get_settings()

    def _read_json(self, key: str) -> Optional[dict[str, Any]]:
        raw = self._store.read(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise StorageFailure(f"Corrupt record: {e}", key=key) from e
        if not isinstance(data, dict):
            raise StorageFailure("Record must be an object", key=key)
        return data

    def get(self) -> Optional[User]:
        data = self._read_json(self._settings.user_key)
        return User.from_dict(data) if data else None

    def save(self, user: User) -> None:
        self._store.write(self._settings.user_key, json.dumps(user.to_dict()).encode("utf-8"))

    def get_credentials(self) -> Optional[dict[str, Any]]:
        return self._read_json(self._settings.user_auth_key)

    def save_credentials(self, user_id: str, password: str) -> None:
        record = {"user_id": user_id, **hash_password(password)}
        self._store.write(self._settings.user_auth_key, json.dumps(record).encode("utf-8"))


class AccountService:
    def __init__(self, users: UserStore) -> None:
        self._users = users

    @staticmethod
    def _clean_name(name: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Name is required", field="name")
        return cleaned

    def current_user(self) -> Optional[User]:
        return self._users.get()

    def sign_up(self, name: str, password: str) -> User:
        name = self._clean_name(name)
        if not password:
            raise ValidationError("Password is required", field="password")

        existing = self._users.get()
        if existing and existing.name == name:
            raise AuthenticationError("User already exists with this name", conflict=True)

        user = User(name=name)
        self._users.save(user)
        self._users.save_credentials(user.id, password)
        logger.info("user_signed_up", user_id=user.id)
        return user

    def sign_in(self, name: str, password: str) -> User:
        user = self._users.get()
        credentials = self._users.get_credentials()
        if not user or not credentials:
            raise AuthenticationError("No account found. Please sign up first.")
        if user.name != (name or "").strip():
            raise AuthenticationError("Invalid username")
        if credentials.get("user_id") != user.id or not verify_password(password or "", credentials):
            logger.warning("sign_in_rejected", user_id=user.id)
            raise AuthenticationError("Invalid password")
        logger.info("user_signed_in", user_id=user.id)
        return user

    def rename(self, user_id: str, new_name: str) -> User:
        user = self._users.get()
        if not user or user.id != user_id:
            raise AuthenticationError("Not signed in")
        user.rename(self._clean_name(new_name))
        self._users.save(user)
        logger.info("user_renamed", user_id=user.id)
        return user
