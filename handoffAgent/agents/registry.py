"""Agent Registry - name → AgentDefinition

注册阶段只在启动时发生；``freeze()`` 之后注册表只读，查询无需加锁。
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .schema import AgentDefinition
from handoffAgent.utils.error_handler import UnresolvableAgentError

LOGGER = logging.getLogger(__name__)


class AgentRegistry:
    """Append-only agent registry, read-only once frozen.

    生命周期：
    - register(): 启动时注册 agents（名称唯一）
    - freeze(): 初始化完成，之后任何注册都会报错
    - get()/require()/all()/routes(): 运行时并发只读查询
    """

    def __init__(self, agents: Optional[Iterable[AgentDefinition]] = None):
        self._agents: Dict[str, AgentDefinition] = {}
        self._frozen = False
        if agents:
            for agent in agents:
                self.register(agent)

    # ========== Registration ==========

    def register(self, agent: AgentDefinition) -> None:
        """注册一个 agent

        Raises:
            RuntimeError: 注册表已冻结
            ValueError: 名称重复
        """
        if self._frozen:
            raise RuntimeError(f"Agent registry is frozen; cannot register '{agent.name}'")
        if agent.name in self._agents:
            raise ValueError(f"Agent already registered: {agent.name}")

        self._agents[agent.name] = agent
        LOGGER.debug(f"Registered agent: {agent.name}")

    def freeze(self) -> "AgentRegistry":
        """Finish initialization; returns self for chaining."""
        self._frozen = True
        LOGGER.info(f"Agent registry frozen with {len(self._agents)} agents: {', '.join(self._agents)}")
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ========== Queries ==========

    def get(self, name: str) -> Optional[AgentDefinition]:
        return self._agents.get(name)

    def require(self, name: str) -> AgentDefinition:
        """Like ``get`` but a miss is an unresolvable-agent error."""
        agent = self._agents.get(name)
        if agent is None:
            raise UnresolvableAgentError(name)
        return agent

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def all(self) -> List[AgentDefinition]:
        return list(self._agents.values())

    def names(self) -> List[str]:
        return list(self._agents)

    def routes(self) -> Dict[str, str]:
        """Routing map {agent name → system prompt} for the router."""
        return {agent.name: agent.system_prompt for agent in self._agents.values()}

    # ========== Catalog / Stats ==========

    def get_catalog_text(self, detailed: bool = False) -> str:
        if not self._agents:
            return ""

        lines = ["# Available agents\n"]
        for agent in self._agents.values():
            if detailed:
                lines.append(agent.get_catalog_text())
                lines.append("")
            else:
                lines.append(f"- **{agent.name}**: {agent.description or agent.system_prompt[:80]}")
        return "\n".join(lines)

    def get_stats(self) -> Dict[str, int]:
        return {
            "agents": len(self._agents),
            "tools": sum(len(a.tools) for a in self._agents.values()),
            "frozen": int(self._frozen),
        }
