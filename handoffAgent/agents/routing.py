"""Initial agent routing.

The router shows a classification model every candidate agent (name and
system prompt) and asks for the single best name. An answer that does not
resolve to exactly one offered agent is a routing failure; there is no
default agent.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from handoffAgent.utils.error_handler import RoutingError
from handoffAgent.utils.message_utils import stringify_content

LOGGER = logging.getLogger(__name__)

ROUTING_SYSTEM_PROMPT = """You route a user's message to the agent best suited to handle it.

Agents (name, then the instructions that agent runs with):

{agents}

Reply with the agent name only: no punctuation, no explanation."""


def _normalize(text: str) -> str:
    return re.sub(r"[^a-z0-9_\-]+", " ", text.lower()).strip()


class AgentRouter:
    """Classifies free text into one of the offered agent names."""

    def __init__(self, model: BaseChatModel):
        self.model = model

    def build_messages(self, input_text: str, routes: Dict[str, str]) -> list:
        agents = "\n\n".join(
            f"### {name}\n{prompt.strip()}" for name, prompt in routes.items()
        )
        return [
            SystemMessage(content=ROUTING_SYSTEM_PROMPT.format(agents=agents)),
            HumanMessage(content=input_text),
        ]

    def route(self, input_text: str, routes: Dict[str, str]) -> str:
        """Return the key of ``routes`` best suited to ``input_text``.

        Raises:
            RoutingError: No routes offered, the model call failed, or the
                answer does not name exactly one offered agent
        """
        if not routes:
            raise RoutingError("No agents available for routing")

        try:
            response = self.model.invoke(self.build_messages(input_text, routes))
        except Exception as e:
            raise RoutingError(f"Routing model call failed: {e}") from e

        answer = stringify_content(response.content).strip()
        agent_name = self.resolve_answer(answer, routes)
        if agent_name is None:
            raise RoutingError(
                f"Routing answer {answer!r} does not name one of: {', '.join(routes)}",
                answer=answer,
            )

        LOGGER.info(f"Routed to '{agent_name}' (model answered {answer!r})")
        return agent_name

    @staticmethod
    def resolve_answer(answer: str, routes: Dict[str, str]) -> Optional[str]:
        """Map a model answer onto a route name.

        Exact match first (ignoring case, quotes and punctuation), then a
        route name contained in the answer when exactly one is.
        """
        normalized = _normalize(answer)
        if not normalized:
            return None

        by_normalized = {_normalize(name): name for name in routes}
        if normalized in by_normalized:
            return by_normalized[normalized]

        words = set(normalized.split())
        mentioned = [name for key, name in by_normalized.items() if key in words]
        if len(mentioned) == 1:
            return mentioned[0]
        return None


__all__ = ["ROUTING_SYSTEM_PROMPT", "AgentRouter"]
