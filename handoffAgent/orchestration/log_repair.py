"""Read-modify-rewrite edits of a session's conversation log.

Every edit reads the full log, changes the list in memory and writes it back
with ``rewrite_log``. Callers must hold the session lock.

When the log does not have the shape an edit expects, the edit is skipped
and an anomaly is logged; a mismatched log is never reshuffled further.
"""

from __future__ import annotations

import logging
from typing import Sequence

from handoffAgent.utils.logging_utils import log_repair_anomaly
from shared.session.conversation_log import ConversationLog, rewrite_log
from shared.session.models import AGENT_KEY, Turn, TurnRole

LOGGER = logging.getLogger(__name__)


def _roles(turns: Sequence[Turn]) -> list:
    return [t.role.value for t in turns]


def tag_last_turn(log: ConversationLog, session_id: str, agent: str, **metadata: str) -> bool:
    """Set ``agent`` (plus any extra metadata) on the most recent turn.

    Re-tagging with identical values leaves the log untouched.

    Returns:
        False when the log is empty
    """
    turns = log.get_all(session_id)
    if not turns:
        LOGGER.warning(f"[{session_id}] Nothing to tag: conversation log is empty")
        return False

    updates = {AGENT_KEY: agent, **metadata}
    last = turns[-1]
    if all(last.metadata.get(key) == value for key, value in updates.items()):
        return True

    last.metadata.update(updates)
    rewrite_log(log, session_id, turns)
    return True


def drop_pending_user_turn(log: ConversationLog, session_id: str) -> bool:
    """Remove the USER turn sitting before a transfer marker.

    ``[..., USER, TRANSFER]`` becomes ``[..., TRANSFER]`` so the next agent's
    call can append the same USER turn again. Only a USER turn in
    second-to-last position is removed.
    """
    turns = log.get_all(session_id)
    if len(turns) < 2 or turns[-2].role != TurnRole.USER:
        log_repair_anomaly(
            LOGGER, session_id, "drop pending user turn",
            expected=[TurnRole.USER.value, TurnRole.ASSISTANT.value],
            actual=_roles(turns[-2:]),
        )
        return False

    del turns[-2]
    rewrite_log(log, session_id, turns)
    return True


def move_user_before_markers(log: ConversationLog, session_id: str, marker_count: int) -> bool:
    """Put the USER turn back in front of the transfer markers it caused.

    ``[..., T1..Tk, USER, X]`` becomes ``[..., USER, T1..Tk, X]`` where
    ``k == marker_count`` and every ``Ti`` is an ASSISTANT turn. With one
    marker this is the swap of the third- and second-to-last turns.
    """
    if marker_count <= 0:
        return False

    turns = log.get_all(session_id)
    window = marker_count + 2
    if len(turns) < window:
        log_repair_anomaly(
            LOGGER, session_id, "move user before transfer markers",
            expected=[TurnRole.ASSISTANT.value] * marker_count + [TurnRole.USER.value, "*"],
            actual=_roles(turns),
        )
        return False

    markers = turns[-window:-2]
    user_turn = turns[-2]
    if user_turn.role != TurnRole.USER or any(t.role != TurnRole.ASSISTANT for t in markers):
        log_repair_anomaly(
            LOGGER, session_id, "move user before transfer markers",
            expected=[TurnRole.ASSISTANT.value] * marker_count + [TurnRole.USER.value, "*"],
            actual=_roles(turns[-window:]),
        )
        return False

    turns[-window:-1] = [user_turn, *markers]
    rewrite_log(log, session_id, turns)
    return True


__all__ = ["tag_last_turn", "drop_pending_user_turn", "move_user_before_markers"]
