"""
Journal Repository — per-user CRUD over the Entry Store
=======================================================

All users' entries live under one key as a single JSON list. Every
operation reads the full collection, applies its change and writes the full
collection back. The repository is the only place that enforces the
user_id partitioning; nothing below it knows about owners.
"""

from __future__ import annotations
import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Callable, Mapping

from mindcare.journal.entry_store import EntryStore
from mindcare.journal.journal_models import (
    JournalEntry, PROTECTED_FIELDS, new_entry_id, to_iso, utc_now,
)
from mindcare.utils.config import Settings, get_settings
from mindcare.utils.exceptions import NotFoundError, StorageFailure, ValidationError

logger = logging.getLogger("journal_repository")


class JournalRepository:
    """
    Read-modify-write repository for JournalEntry records.
    A re-entrant lock makes each cycle single-writer within the process.
    """

    def __init__(self, store: EntryStore, settings: Optional[Settings] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self._store = store
        self._settings = settings or get_settings()
        self._clock = clock or utc_now
        self._lock = threading.RLock()

    @property
    def store(self) -> EntryStore:
        return self._store

    # ─── COLLECTION I/O ─────────────────────────────────────────

    def _load(self) -> List[Dict[str, Any]]:
        raw = self._store.read(self._settings.journals_key)
        if raw is None:
            return []
        try:
            records = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            logger.error("Journal collection is not valid JSON: %s", e)
            raise StorageFailure(f"Corrupt journal collection: {e}",
                                 key=self._settings.journals_key) from e
        if not isinstance(records, list):
            raise StorageFailure("Journal collection must be a list",
                                 key=self._settings.journals_key)
        return records

    def _persist(self, records: List[Dict[str, Any]]) -> None:
        try:
            payload = json.dumps(records, default=str).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise StorageFailure(f"Failed to serialize journal collection: {e}",
                                 key=self._settings.journals_key) from e
        self._store.write(self._settings.journals_key, payload)

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    @staticmethod
    def _check_fields(values: Mapping[str, Any], allow_protected: bool) -> None:
        known = JournalEntry.field_names()
        unknown = sorted(k for k in values if k not in known)
        if unknown:
            raise ValidationError(f"Unknown journal field(s): {', '.join(unknown)}",
                                  field=unknown[0])
        if not allow_protected:
            protected = sorted(k for k in values if k in PROTECTED_FIELDS)
            if protected:
                raise ValidationError(f"Field(s) cannot be changed: {', '.join(protected)}",
                                      field=protected[0])

    # ─── WRITES ─────────────────────────────────────────────────

    def save(self, user_id: str, fields: Mapping[str, Any]) -> str:
        """Append a new entry for user_id and return its id."""
        self._check_fields(fields, allow_protected=True)
        with self._lock:
            records = self._load()
            taken = {r.get("id") for r in records}
            entry_id = new_entry_id()
            while entry_id in taken:
                entry_id = new_entry_id()

            now = self._now()
            stamp = to_iso(now)
            entry = JournalEntry.from_dict(dict(fields))
            entry.id = entry_id
            entry.user_id = user_id
            entry.created_at = stamp
            entry.updated_at = stamp

            records.append(entry.to_dict())
            self._persist(records)
        logger.info("Saved journal entry %s for user %s", entry_id, user_id)
        return entry_id

    def update(self, user_id: str, entry_id: str, patch: Mapping[str, Any]) -> JournalEntry:
        """Merge patch into the (user_id, entry_id) entry and refresh updated_at."""
        self._check_fields(patch, allow_protected=False)
        with self._lock:
            records = self._load()
            index = self._find(records, user_id, entry_id)
            if index is None:
                raise NotFoundError(f"Journal entry {entry_id} not found", key=entry_id)

            entry = JournalEntry.from_dict(records[index])
            for name, value in patch.items():
                setattr(entry, name, value)

            # updated_at must move forward even if the clock has not
            now = self._now()
            floor = max(entry.created, entry.updated) + timedelta(microseconds=1)
            entry.updated_at = to_iso(max(now, floor))

            records[index] = entry.to_dict()
            self._persist(records)
        logger.info("Updated journal entry %s (%s)", entry_id, ", ".join(sorted(patch)))
        return entry

    def delete(self, user_id: str, entry_id: str) -> bool:
        """Remove at most one entry. Returns False when nothing matched."""
        with self._lock:
            records = self._load()
            index = self._find(records, user_id, entry_id)
            if index is None:
                logger.info("Delete of %s for user %s matched nothing", entry_id, user_id)
                return False
            del records[index]
            self._persist(records)
        logger.info("Deleted journal entry %s", entry_id)
        return True

    def clear(self) -> None:
        """Drop every entry and the user records. Irreversible."""
        with self._lock:
            self._store.remove(self._settings.journals_key)
            self._store.remove(self._settings.user_key)
            self._store.remove(self._settings.user_auth_key)
        logger.warning("All journal and user data cleared")

    @staticmethod
    def _find(records: List[Dict[str, Any]], user_id: str, entry_id: str) -> Optional[int]:
        for i, r in enumerate(records):
            if r.get("user_id") == user_id and r.get("id") == entry_id:
                return i
        return None

    # ─── READS ──────────────────────────────────────────────────

    def _user_entries(self, user_id: str) -> List[JournalEntry]:
        """Entries owned by user_id, newest first; later insertions win ties."""
        owned = [(i, JournalEntry.from_dict(r)) for i, r in enumerate(self._load())
                 if r.get("user_id") == user_id]
        owned.sort(key=lambda pair: (pair[1].created, pair[0]), reverse=True)
        return [e for _, e in owned]

    def get(self, user_id: str, entry_id: str) -> Optional[JournalEntry]:
        for r in self._load():
            if r.get("user_id") == user_id and r.get("id") == entry_id:
                return JournalEntry.from_dict(r)
        return None

    def list_entries(self, user_id: str, limit: Optional[int] = None) -> List[JournalEntry]:
        entries = self._user_entries(user_id)
        if limit is not None:
            entries = entries[:max(limit, 0)]
        return entries

    def list_since(self, user_id: str, days: int = 30) -> List[JournalEntry]:
        """Entries from the last `days` days, oldest first."""
        cutoff = self._now() - timedelta(days=days)
        recent = [e for e in self._user_entries(user_id) if e.created >= cutoff]
        recent.reverse()
        return recent

    def count(self, user_id: str) -> int:
        return sum(1 for r in self._load() if r.get("user_id") == user_id)

    def export_all(self) -> List[Dict[str, Any]]:
        """Every record of every user, in storage order (for backup)."""
        return self._load()
