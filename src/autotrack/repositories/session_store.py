from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from autotrack.domain.errors import SessionStoreError


class SqliteSessionStore:
    """Durable client-local key/value store backed by a single sqlite table."""

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def init_db(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = self._conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS session_kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
                """
            )
            conn.commit()
        except sqlite3.Error as e:
            raise SessionStoreError(f"Could not initialise session store: {e}") from e
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM session_kv WHERE key=?", (key,))
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise SessionStoreError(f"Could not read '{key}': {e}") from e
        finally:
            conn.close()
        return None if row is None else str(row[0])

    def set(self, key: str, value: str) -> None:
        conn = self._conn()
        try:
            conn.execute(
                """
                INSERT INTO session_kv (key, value, updated_at) VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise SessionStoreError(f"Could not write '{key}': {e}") from e
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM session_kv WHERE key=?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise SessionStoreError(f"Could not remove '{key}': {e}") from e
        finally:
            conn.close()
