"""Turn orchestration and conversation log repair."""

from .orchestrator import AgentOrchestrator
from .log_repair import drop_pending_user_turn, move_user_before_markers, tag_last_turn

__all__ = [
    "AgentOrchestrator",
    "tag_last_turn",
    "drop_pending_user_turn",
    "move_user_before_markers",
]
