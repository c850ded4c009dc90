"""Session directory, conversation log and their data model."""

from .models import (
    AGENT_KEY,
    KIND_KEY,
    TRANSFER_KIND,
    TRANSFER_TO_KEY,
    UNKNOWN_AGENT,
    Session,
    Turn,
    TurnRole,
)
from .conversation_log import (
    ConversationLog,
    InMemoryConversationLog,
    SqliteConversationLog,
    rewrite_log,
)
from .directory import InMemorySessionDirectory, SessionDirectory, SqliteSessionDirectory
from .locks import SessionLocks

__all__ = [
    "AGENT_KEY",
    "KIND_KEY",
    "TRANSFER_KIND",
    "TRANSFER_TO_KEY",
    "UNKNOWN_AGENT",
    "Session",
    "Turn",
    "TurnRole",
    "ConversationLog",
    "InMemoryConversationLog",
    "SqliteConversationLog",
    "rewrite_log",
    "SessionDirectory",
    "InMemorySessionDirectory",
    "SqliteSessionDirectory",
    "SessionLocks",
]
