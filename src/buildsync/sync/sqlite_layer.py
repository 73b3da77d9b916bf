"""SQLite-backed durable layer for actors in separate processes."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from .layers import ChangeHandler, DurableLayerError

logger = logging.getLogger(__name__)


class SqliteDurableLayer:
    """
    Key/value table with a change sequence.

    Every write stamps the row with the next sequence number and the writer's
    origin. :meth:`poll` hands each subscriber the rows that changed since
    its last poll and were written by somebody else, oldest first. Several
    writes to one key between polls are delivered once, with the latest
    value, since every value is a full collection snapshot.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._subscribers: list[tuple[str, ChangeHandler]] = []
        self._cursors: dict[int, int] = {}
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=10.0)

    def _init_db(self) -> None:
        """Initialize database schema"""
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise DurableLayerError(f"Cannot open {self.db_path}: {exc}") from exc
        try:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    origin TEXT NOT NULL,
                    seq INTEGER NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')
            conn.execute('CREATE INDEX IF NOT EXISTS idx_seq ON kv(seq)')
            conn.commit()
        except sqlite3.Error as exc:
            raise DurableLayerError(f"Cannot initialize {self.db_path}: {exc}") from exc
        finally:
            conn.close()

    def read(self, key: str) -> str | None:
        conn = self._connect()
        try:
            row = conn.execute('SELECT value FROM kv WHERE key = ?', (key,)).fetchone()
        except sqlite3.Error as exc:
            raise DurableLayerError(f"Failed to read {key}: {exc}") from exc
        finally:
            conn.close()
        return row[0] if row else None

    def write(self, key: str, raw: str, *, origin: str) -> None:
        conn = self._connect()
        try:
            conn.execute(
                '''
                INSERT INTO kv (key, value, origin, seq, updated_at)
                VALUES (?, ?, ?, (SELECT COALESCE(MAX(seq), 0) + 1 FROM kv), ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    origin = excluded.origin,
                    seq = excluded.seq,
                    updated_at = excluded.updated_at
                ''',
                (key, raw, origin, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise DurableLayerError(f"Failed to write {key}: {exc}") from exc
        finally:
            conn.close()

    def subscribe(self, origin: str, handler: ChangeHandler) -> None:
        """Register ``handler`` for changes made after this call."""
        index = len(self._subscribers)
        self._subscribers.append((origin, handler))
        self._cursors[index] = self.current_seq()

    def current_seq(self) -> int:
        conn = self._connect()
        try:
            row = conn.execute('SELECT COALESCE(MAX(seq), 0) FROM kv').fetchone()
        except sqlite3.Error as exc:
            raise DurableLayerError(f"Failed to read change sequence: {exc}") from exc
        finally:
            conn.close()
        return int(row[0])

    def poll(self) -> int:
        """Deliver pending external changes. Returns the number delivered."""
        if not self._subscribers:
            return 0

        since = min(self._cursors.values())
        conn = self._connect()
        try:
            rows = conn.execute(
                'SELECT seq, key, value, origin FROM kv WHERE seq > ? ORDER BY seq ASC',
                (since,),
            ).fetchall()
        except sqlite3.Error as exc:
            logger.warning("Polling %s failed: %s", self.db_path, exc)
            return 0
        finally:
            conn.close()

        delivered = 0
        for index, (origin, handler) in enumerate(self._subscribers):
            for seq, key, value, writer in rows:
                if seq <= self._cursors[index]:
                    continue
                self._cursors[index] = seq
                if writer == origin:
                    continue
                handler(key, value)
                delivered += 1
        return delivered

    def keys(self) -> list[str]:
        conn = self._connect()
        try:
            return [row[0] for row in conn.execute('SELECT key FROM kv ORDER BY key')]
        finally:
            conn.close()
