"""Test doubles for the generation backend and chat models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.tools import BaseTool

from handoffAgent.agents.transfer import TRANSFER_TOOL_NAME
from shared.session.models import Turn


class ToolCallingFakeChatModel(GenericFakeChatModel):
    """GenericFakeChatModel that accepts ``bind_tools`` (tools are ignored)."""

    def bind_tools(self, tools: Sequence[Any], **kwargs: Any):
        return self


@dataclass
class Step:
    """One scripted generation call.

    Attributes:
        text: Response appended as the ASSISTANT turn
        transfer_to: Invoke the transfer tool with this agent name first
        error: Raise this after the (optional) transfer, appending nothing
    """

    text: str = ""
    transfer_to: Optional[str] = None
    error: Optional[Exception] = None


@dataclass
class GenerateCall:
    system_prompt: str
    tool_names: List[str]
    session_id: str
    user_content: str
    transfer_result: Optional[str] = None


@dataclass
class ScriptedGenerator:
    """ChatGenerator that replays ``steps`` and behaves like the memory-backed one.

    On success the USER turn and the response are appended to ``conversation_log``.
    """

    conversation_log: Any
    steps: List[Step] = field(default_factory=list)
    calls: List[GenerateCall] = field(default_factory=list)

    def generate(
        self,
        system_prompt: str,
        tools: Sequence[BaseTool],
        session_id: str,
        user_content: str,
    ) -> str:
        if not self.steps:
            raise AssertionError("ScriptedGenerator ran out of steps")
        step = self.steps.pop(0)
        call = GenerateCall(system_prompt, [t.name for t in tools], session_id, user_content)
        self.calls.append(call)

        if step.transfer_to is not None:
            transfer_tool = next(t for t in tools if t.name == TRANSFER_TOOL_NAME)
            call.transfer_result = transfer_tool.invoke({"agent_name": step.transfer_to})

        if step.error is not None:
            raise step.error

        self.conversation_log.append(session_id, Turn.user(user_content))
        self.conversation_log.append(session_id, Turn.assistant(step.text))
        return step.text
