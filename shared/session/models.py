"""Session and conversation data model shared by stores and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

UNKNOWN_AGENT = "unknown"

# Metadata keys written on ASSISTANT turns
AGENT_KEY = "agent"
KIND_KEY = "kind"
TRANSFER_TO_KEY = "transfer_to"
TRANSFER_KIND = "transfer"


class TurnRole(str, Enum):
    """Who produced a turn."""
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class Turn:
    """One message-like unit of a conversation.

    Attributes:
        role: USER / ASSISTANT / TOOL
        content: Message text
        metadata: String key/value pairs (``agent`` names the agent that
            produced an ASSISTANT turn; ``kind == "transfer"`` marks a
            transfer marker)
    """

    role: TurnRole
    content: str
    metadata: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def user(cls, content: str, **metadata: str) -> "Turn":
        return cls(TurnRole.USER, content, dict(metadata))

    @classmethod
    def assistant(cls, content: str, **metadata: str) -> "Turn":
        return cls(TurnRole.ASSISTANT, content, dict(metadata))

    @property
    def agent(self) -> Optional[str]:
        return self.metadata.get(AGENT_KEY)

    @property
    def is_transfer(self) -> bool:
        return self.role == TurnRole.ASSISTANT and self.metadata.get(KIND_KEY) == TRANSFER_KIND

    def copy(self) -> "Turn":
        return Turn(self.role, self.content, dict(self.metadata))

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content, "metadata": dict(self.metadata)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        return cls(
            role=TurnRole(data["role"]),
            content=data.get("content", ""),
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
        )


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Session:
    """Directory record of one conversation."""

    session_id: str
    user_id: str
    tenant_id: str
    active_agent: str = UNKNOWN_AGENT
    title: str = ""
    created_at: str = field(default_factory=_utcnow)
    updated_at: str = field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()


__all__ = [
    "UNKNOWN_AGENT",
    "AGENT_KEY",
    "KIND_KEY",
    "TRANSFER_TO_KEY",
    "TRANSFER_KIND",
    "TurnRole",
    "Turn",
    "Session",
]
