"""Session-scoped conversation logs.

A conversation log only supports read-all, append and clear. Editing history
(re-tagging a turn, dropping or reordering turns) therefore goes through
``rewrite_log``, which clears the session and re-appends the full sequence.
That rewrite is NOT atomic: a concurrent turn on the same session can lose
updates, so callers must serialize per session (see ``SessionLocks``).
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from typing import Dict, Iterable, List, Protocol

from .models import Turn, TurnRole

LOGGER = logging.getLogger(__name__)


class ConversationLog(Protocol):
    """Append-only, ordered turn store keyed by session id."""

    def get_all(self, session_id: str) -> List[Turn]:
        ...

    def append(self, session_id: str, turn: Turn) -> None:
        ...

    def clear(self, session_id: str) -> None:
        ...


def rewrite_log(log: ConversationLog, session_id: str, turns: Iterable[Turn]) -> None:
    """Replace a session's whole log with ``turns`` (clear + re-append)."""
    turns = list(turns)
    log.clear(session_id)
    for turn in turns:
        log.append(session_id, turn)
    LOGGER.debug(f"Rewrote log for session {session_id} ({len(turns)} turns)")


class InMemoryConversationLog:
    """Process-local conversation log.

    ``get_all`` hands out copies so callers can mutate the result and write it
    back through ``rewrite_log`` without aliasing stored turns.
    """

    def __init__(self):
        self._turns: Dict[str, List[Turn]] = {}
        self._guard = threading.Lock()

    def get_all(self, session_id: str) -> List[Turn]:
        with self._guard:
            return [turn.copy() for turn in self._turns.get(session_id, [])]

    def append(self, session_id: str, turn: Turn) -> None:
        with self._guard:
            self._turns.setdefault(session_id, []).append(turn.copy())

    def clear(self, session_id: str) -> None:
        with self._guard:
            self._turns.pop(session_id, None)


class SqliteConversationLog:
    """SQLite-backed conversation log (one row per turn, insertion ordered)."""

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
                CREATE TABLE IF NOT EXISTS turns (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    metadata_json TEXT NOT NULL DEFAULT '{}'
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_turns_session ON turns (session_id, seq)"
            )
            conn.commit()
        finally:
            conn.close()

    def get_all(self, session_id: str) -> List[Turn]:
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT role, content, metadata_json FROM turns WHERE session_id = ? ORDER BY seq",
                (session_id,)
            )
            return [
                Turn(TurnRole(role), content, json.loads(metadata_json or "{}"))
                for role, content, metadata_json in cursor.fetchall()
            ]
        finally:
            conn.close()

    def append(self, session_id: str, turn: Turn) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                "INSERT INTO turns (session_id, role, content, metadata_json) VALUES (?, ?, ?, ?)",
                (session_id, turn.role.value, turn.content, json.dumps(turn.metadata, ensure_ascii=False))
            )
            conn.commit()
        finally:
            conn.close()

    def clear(self, session_id: str) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("DELETE FROM turns WHERE session_id = ?", (session_id,))
            conn.commit()
        finally:
            conn.close()


__all__ = [
    "ConversationLog",
    "rewrite_log",
    "InMemoryConversationLog",
    "SqliteConversationLog",
]
