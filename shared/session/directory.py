"""Session directory: active agent and title per session."""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from .models import UNKNOWN_AGENT, Session

LOGGER = logging.getLogger(__name__)


class SessionDirectory(Protocol):
    """Maps a session to its active agent and title.

    Lookups create the session (with ``active_agent == "unknown"``) when it
    does not exist yet.
    """

    def get_session(self, session_id: str, user_id: str, tenant_id: str) -> Session:
        ...

    def get_active_agent(self, session_id: str, user_id: str, tenant_id: str) -> str:
        ...

    def set_active_agent(self, session_id: str, user_id: str, tenant_id: str, agent_name: str) -> None:
        ...

    def compare_and_set_active_agent(
        self, session_id: str, user_id: str, tenant_id: str, expected: str, agent_name: str
    ) -> bool:
        ...

    def patch_title(self, session_id: str, user_id: str, tenant_id: str, title: str) -> None:
        ...

    def list_sessions(self, user_id: Optional[str] = None, tenant_id: Optional[str] = None) -> List[Session]:
        ...


class InMemorySessionDirectory:
    """Process-local session directory."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._guard = threading.Lock()

    def _ensure(self, session_id: str, user_id: str, tenant_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id=session_id, user_id=user_id, tenant_id=tenant_id)
            self._sessions[session_id] = session
            LOGGER.info(f"Created session {session_id} (user={user_id}, tenant={tenant_id})")
        return session

    def get_session(self, session_id: str, user_id: str, tenant_id: str) -> Session:
        with self._guard:
            session = self._ensure(session_id, user_id, tenant_id)
            return Session(**vars(session))

    def get_active_agent(self, session_id: str, user_id: str, tenant_id: str) -> str:
        with self._guard:
            return self._ensure(session_id, user_id, tenant_id).active_agent

    def set_active_agent(self, session_id: str, user_id: str, tenant_id: str, agent_name: str) -> None:
        with self._guard:
            session = self._ensure(session_id, user_id, tenant_id)
            session.active_agent = agent_name
            session.touch()

    def compare_and_set_active_agent(
        self, session_id: str, user_id: str, tenant_id: str, expected: str, agent_name: str
    ) -> bool:
        with self._guard:
            session = self._ensure(session_id, user_id, tenant_id)
            if session.active_agent != expected:
                return False
            session.active_agent = agent_name
            session.touch()
            return True

    def patch_title(self, session_id: str, user_id: str, tenant_id: str, title: str) -> None:
        with self._guard:
            session = self._ensure(session_id, user_id, tenant_id)
            session.title = title
            session.touch()

    def list_sessions(self, user_id: Optional[str] = None, tenant_id: Optional[str] = None) -> List[Session]:
        with self._guard:
            sessions = [
                Session(**vars(s)) for s in self._sessions.values()
                if (user_id is None or s.user_id == user_id)
                and (tenant_id is None or s.tenant_id == tenant_id)
            ]
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)


class SqliteSessionDirectory:
    """SQLite-backed session directory."""

    def __init__(self, db_path: str = "data/sessions.db"):
        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)

        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    tenant_id TEXT NOT NULL,
                    active_agent TEXT NOT NULL,
                    title TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _ensure(self, conn: sqlite3.Connection, session_id: str, user_id: str, tenant_id: str) -> None:
        now = self._now()
        cursor = conn.execute(
            """INSERT OR IGNORE INTO chat_sessions
               (session_id, user_id, tenant_id, active_agent, title, created_at, updated_at)
               VALUES (?, ?, ?, ?, '', ?, ?)""",
            (session_id, user_id, tenant_id, UNKNOWN_AGENT, now, now)
        )
        if cursor.rowcount:
            LOGGER.info(f"Created session {session_id} (user={user_id}, tenant={tenant_id})")

    def get_session(self, session_id: str, user_id: str, tenant_id: str) -> Session:
        conn = sqlite3.connect(self.db_path)
        try:
            self._ensure(conn, session_id, user_id, tenant_id)
            conn.commit()
            row = conn.execute(
                """SELECT session_id, user_id, tenant_id, active_agent, title, created_at, updated_at
                   FROM chat_sessions WHERE session_id = ?""",
                (session_id,)
            ).fetchone()
            return Session(*row)
        finally:
            conn.close()

    def get_active_agent(self, session_id: str, user_id: str, tenant_id: str) -> str:
        return self.get_session(session_id, user_id, tenant_id).active_agent

    def set_active_agent(self, session_id: str, user_id: str, tenant_id: str, agent_name: str) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            self._ensure(conn, session_id, user_id, tenant_id)
            conn.execute(
                "UPDATE chat_sessions SET active_agent = ?, updated_at = ? WHERE session_id = ?",
                (agent_name, self._now(), session_id)
            )
            conn.commit()
        finally:
            conn.close()

    def compare_and_set_active_agent(
        self, session_id: str, user_id: str, tenant_id: str, expected: str, agent_name: str
    ) -> bool:
        conn = sqlite3.connect(self.db_path)
        try:
            self._ensure(conn, session_id, user_id, tenant_id)
            cursor = conn.execute(
                """UPDATE chat_sessions SET active_agent = ?, updated_at = ?
                   WHERE session_id = ? AND active_agent = ?""",
                (agent_name, self._now(), session_id, expected)
            )
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def patch_title(self, session_id: str, user_id: str, tenant_id: str, title: str) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            self._ensure(conn, session_id, user_id, tenant_id)
            conn.execute(
                "UPDATE chat_sessions SET title = ?, updated_at = ? WHERE session_id = ?",
                (title, self._now(), session_id)
            )
            conn.commit()
        finally:
            conn.close()

    def list_sessions(self, user_id: Optional[str] = None, tenant_id: Optional[str] = None) -> List[Session]:
        query = """SELECT session_id, user_id, tenant_id, active_agent, title, created_at, updated_at
                   FROM chat_sessions WHERE 1 = 1"""
        params: list = []
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        if tenant_id is not None:
            query += " AND tenant_id = ?"
            params.append(tenant_id)
        query += " ORDER BY updated_at DESC"

        conn = sqlite3.connect(self.db_path)
        try:
            return [Session(*row) for row in conn.execute(query, params).fetchall()]
        finally:
            conn.close()


__all__ = ["SessionDirectory", "InMemorySessionDirectory", "SqliteSessionDirectory"]
