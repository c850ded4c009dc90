"""Agent definition schema.

An agent is identified by a unique name and carries the system prompt the
generation backend runs with, the tools it may call and the names of the
agents it is told it may hand the conversation to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from langchain_core.tools import BaseTool


@dataclass(frozen=True)
class AgentDefinition:
    """Immutable description of one routable agent.

    Attributes:
        name: Unique registry key (e.g. "sales")
        system_prompt: Prompt the agent runs with; also shown to the router
        tools: LangChain tools the agent may call (the transfer tool is added per turn)
        routable_agents: Agents offered as transfer targets while this agent is active
        description: Short human-readable summary (CLI / catalog)

    Examples:
        >>> sales = AgentDefinition(
        ...     name="sales",
        ...     system_prompt="You help customers choose and buy products.",
        ...     routable_agents=frozenset({"support"}),
        ... )
    """

    name: str
    system_prompt: str
    tools: Tuple[BaseTool, ...] = field(default_factory=tuple)
    routable_agents: FrozenSet[str] = field(default_factory=frozenset)
    description: str = ""

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Agent name must be non-empty")
        # Accept lists/sets from callers while keeping the instance hashable
        object.__setattr__(self, "tools", tuple(self.tools))
        object.__setattr__(self, "routable_agents", frozenset(self.routable_agents))

    @property
    def tool_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.tools)

    def can_route_to(self, agent_name: str) -> bool:
        return agent_name in self.routable_agents

    def get_catalog_text(self) -> str:
        """Markdown description of this agent."""
        lines = [f"## {self.name}"]
        if self.description:
            lines.append(self.description)
        if self.tools:
            lines.append(f"**Tools**: {', '.join(self.tool_names)}")
        if self.routable_agents:
            lines.append(f"**Can transfer to**: {', '.join(sorted(self.routable_agents))}")
        return "\n".join(lines)
