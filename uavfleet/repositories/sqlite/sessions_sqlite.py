from __future__ import annotations

import sqlite3
from typing import Optional

from ..sessions import SessionRepo, StoredSession


class SessionRepoSqlite(SessionRepo):
    """SQLite implementation of :class:`SessionRepo`.

    Keeps a single row (``id = 1``); saving overwrites it.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS auth_session (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                token TEXT NOT NULL,
                refresh_token TEXT,
                expires_at REAL,
                user_json TEXT
            )
            """
        )
        self._conn.commit()

    def load(self) -> Optional[StoredSession]:
        cur = self._conn.execute(
            "SELECT token, refresh_token, expires_at, user_json FROM auth_session WHERE id = 1"
        )
        row = cur.fetchone()
        if row:
            return StoredSession(*row)
        return None

    def save(self, session: StoredSession) -> None:
        self._conn.execute(
            """
            INSERT INTO auth_session (id, token, refresh_token, expires_at, user_json)
            VALUES (1, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                token = excluded.token,
                refresh_token = excluded.refresh_token,
                expires_at = excluded.expires_at,
                user_json = excluded.user_json
            """,
            (session.token, session.refresh_token, session.expires_at, session.user_json),
        )
        self._conn.commit()

    def clear(self) -> None:
        self._conn.execute("DELETE FROM auth_session WHERE id = 1")
        self._conn.commit()
