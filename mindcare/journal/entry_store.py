"""
Entry Store — SQLite-backed key-value storage
=============================================

The only I/O primitive of the journal layer. Each key maps to one opaque
serialized value (bytes); reads and writes are all-or-nothing per key.

Table:
  kv_store — key TEXT PRIMARY KEY, value BLOB, updated_at TEXT

A byte quota caps the total size of all stored values, the same way a
browser caps localStorage. Writes past the quota raise StorageFailure.
"""

from __future__ import annotations
import os
import sqlite3
import threading
import logging
from typing import Optional, List

from mindcare.journal.journal_models import to_iso, utc_now
from mindcare.utils.config import Settings, get_settings
from mindcare.utils.exceptions import StorageFailure

logger = logging.getLogger("entry_store")


class EntryStore:
    """
    Durable key -> bytes mapping.
    Thread-safe via per-thread connections; no cross-key transactions.
    """

    def __init__(self, db_path: Optional[str] = None,
                 quota_bytes: Optional[int] = None,
                 settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self._db_path = db_path or settings.storage_path
        self._quota = settings.storage_quota_bytes if quota_bytes is None else quota_bytes
        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        self._local = threading.local()
        self._init_db()
        logger.info("EntryStore initialized: %s (quota %d bytes)", self._db_path, self._quota)

    @property
    def quota_bytes(self) -> int:
        return self._quota

    def _get_conn(self) -> sqlite3.Connection:
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self._db_path, timeout=10)
            self._local.conn.row_factory = sqlite3.Row
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
        return self._local.conn

    def _init_db(self):
        conn = self._get_conn()
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key         TEXT PRIMARY KEY,
                value       BLOB NOT NULL,
                updated_at  TEXT DEFAULT ''
            );
        """)
        conn.commit()

    # ─── KEY OPERATIONS ─────────────────────────────────────────

    def read(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None when the key is absent."""
        try:
            row = self._get_conn().execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            logger.error("Read failed for key %s: %s", key, e)
            raise StorageFailure(f"Failed to read from storage: {e}", key=key) from e
        if row is None:
            return None
        return bytes(row["value"])

    def write(self, key: str, value: bytes) -> None:
        """Replace the value under key. Raises StorageFailure if rejected."""
        if not isinstance(value, (bytes, bytearray)):
            raise StorageFailure(f"Value for key must be bytes, got {type(value).__name__}", key=key)
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT COALESCE(SUM(LENGTH(value)), 0) AS used FROM kv_store WHERE key != ?",
                (key,)).fetchone()
            projected = row["used"] + len(value)
            if projected > self._quota:
                logger.error("Quota exceeded writing %s: %d > %d bytes", key, projected, self._quota)
                raise StorageFailure(
                    f"Storage quota exceeded ({projected} > {self._quota} bytes)", key=key)
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                (key, sqlite3.Binary(bytes(value)), to_iso(utc_now())))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Write failed for key %s: %s", key, e)
            raise StorageFailure(f"Failed to write to storage: {e}", key=key) from e

    def remove(self, key: str) -> None:
        """Delete key. Removing an absent key is not an error."""
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Remove failed for key %s: %s", key, e)
            raise StorageFailure(f"Failed to remove from storage: {e}", key=key) from e

    # ─── INSPECTION ─────────────────────────────────────────────

    def keys(self) -> List[str]:
        rows = self._get_conn().execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [r["key"] for r in rows]

    def size_bytes(self) -> int:
        row = self._get_conn().execute(
            "SELECT COALESCE(SUM(LENGTH(value)), 0) AS used FROM kv_store").fetchone()
        return row["used"]

    def close(self) -> None:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None
