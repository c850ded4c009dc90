"""Conversion between conversation log turns and LangChain messages."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage

from shared.session.models import Turn, TurnRole

LOGGER = logging.getLogger(__name__)


def stringify_content(content: Any) -> str:
    if isinstance(content, list):
        pieces: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if item.get("type", "text") == "text" and "text" in item:
                    pieces.append(str(item["text"]))
            else:
                pieces.append(str(item))
        return "\n".join(pieces)
    return str(content)


def turns_to_messages(turns: Iterable[Turn]) -> List[BaseMessage]:
    """Build model context from the log.

    TOOL turns are only forwarded when they carry a ``tool_call_id``;
    orphaned tool results are rejected by chat APIs.
    """
    messages: List[BaseMessage] = []
    for turn in turns:
        if turn.role == TurnRole.USER:
            messages.append(HumanMessage(content=turn.content))
        elif turn.role == TurnRole.ASSISTANT:
            messages.append(AIMessage(content=turn.content))
        elif turn.role == TurnRole.TOOL:
            tool_call_id = turn.metadata.get("tool_call_id")
            if not tool_call_id:
                LOGGER.debug("Skipping TOOL turn without tool_call_id")
                continue
            messages.append(ToolMessage(content=turn.content, tool_call_id=tool_call_id))
    return messages


def final_ai_text(messages: Iterable[BaseMessage]) -> str:
    """Text of the last AIMessage (the model's final answer)."""
    for message in reversed(list(messages)):
        if isinstance(message, AIMessage):
            return stringify_content(message.content)
    return ""


__all__ = ["stringify_content", "turns_to_messages", "final_ai_text"]
