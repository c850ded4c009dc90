"""Generation backend: one tool-calling model call against the session log.

``MemoryChatGenerator`` plays the part of a chat-memory advisor: the model
sees the session's whole conversation log, and when the call succeeds the
USER turn and the final ASSISTANT answer are appended to the log. Tool calls
(including agent transfers) run to completion inside the call; intermediate
tool traffic is not persisted.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.tools import BaseTool
from langgraph.errors import GraphRecursionError
from langgraph.prebuilt import create_react_agent

from handoffAgent.utils.error_handler import ModelInvocationError, handle_model_error
from handoffAgent.utils.message_utils import final_ai_text, turns_to_messages
from shared.session.conversation_log import ConversationLog
from shared.session.models import Turn

LOGGER = logging.getLogger(__name__)

# Final answer create_react_agent substitutes when it runs out of steps
STEPS_EXHAUSTED_REPLY = "Sorry, need more steps to process this request."


def count_tool_rounds(messages: Sequence[BaseMessage]) -> int:
    return sum(1 for m in messages if isinstance(m, AIMessage) and m.tool_calls)


class ChatGenerator(Protocol):
    """Prompt + tools + session context in, response text out.

    Tool invocations happen as side effects during the call and are fully
    resolved before it returns. Implementations append the USER turn and the
    ASSISTANT response to the session's conversation log on success and
    append nothing on failure.
    """

    def generate(
        self,
        system_prompt: str,
        tools: Sequence[BaseTool],
        session_id: str,
        user_content: str,
    ) -> str:
        ...


class MemoryChatGenerator:
    """ReAct-style tool-calling generator backed by a LangChain chat model."""

    def __init__(
        self,
        model: BaseChatModel,
        conversation_log: ConversationLog,
        max_tool_rounds: int = 8,
    ):
        self.model = model
        self.conversation_log = conversation_log
        self.max_tool_rounds = max_tool_rounds

    @property
    def recursion_limit(self) -> int:
        # Each tool round is a model step plus a tools step; +1 final answer, +1 slack
        return 2 * self.max_tool_rounds + 2

    def _steps_exhausted(self, produced: Sequence[BaseMessage]) -> bool:
        """True when the ReAct loop ran out of steps instead of answering."""
        if count_tool_rounds(produced) > self.max_tool_rounds:
            return True
        last = produced[-1] if produced else None
        if not isinstance(last, AIMessage):
            return True
        return bool(last.tool_calls) or last.content == STEPS_EXHAUSTED_REPLY

    def _rounds_exceeded(self) -> ModelInvocationError:
        return ModelInvocationError(
            f"Generation did not finish within {self.max_tool_rounds} tool rounds",
            user_message="AI 工具调用次数超限，请重试",
        )

    def generate(
        self,
        system_prompt: str,
        tools: Sequence[BaseTool],
        session_id: str,
        user_content: str,
    ) -> str:
        context = turns_to_messages(self.conversation_log.get_all(session_id))
        LOGGER.debug(
            f"[{session_id}] Generating with {len(context)} context messages, "
            f"tools=[{', '.join(t.name for t in tools)}]"
        )

        inputs = [*context, HumanMessage(content=user_content)]
        agent = create_react_agent(self.model, list(tools), prompt=system_prompt)
        try:
            result = agent.invoke(
                {"messages": inputs},
                config={"recursion_limit": self.recursion_limit},
            )
        except GraphRecursionError as e:
            raise self._rounds_exceeded() from e
        except Exception as e:
            raise ModelInvocationError(
                f"Generation failed: {type(e).__name__}: {e}",
                user_message=handle_model_error(e),
            ) from e

        produced = result["messages"][len(inputs):]
        if self._steps_exhausted(produced):
            LOGGER.warning(f"[{session_id}] Generation stopped after {count_tool_rounds(produced)} tool rounds")
            raise self._rounds_exceeded()

        text = final_ai_text(produced)
        self.conversation_log.append(session_id, Turn.user(user_content))
        self.conversation_log.append(session_id, Turn.assistant(text))
        return text


__all__ = ["STEPS_EXHAUSTED_REPLY", "ChatGenerator", "MemoryChatGenerator", "count_tool_rounds"]
