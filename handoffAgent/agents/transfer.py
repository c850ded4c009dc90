"""Transfer tool - lets the active agent hand the session to another agent.

Each turn builds a fresh ``AgentTransfer`` bound to one
(session_id, user_id, tenant_id); concurrent turns never share one.

The routable-agents set is advisory: it is what the model is told it may
transfer to. ``transfer_agent`` itself accepts any registered agent. Tool
calls outside the advisory set are logged, and only rejected when
``enforce_routable`` is on (ENFORCE_ROUTABLE_AGENTS).
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from langchain_core.tools import BaseTool, StructuredTool, ToolException
from pydantic import BaseModel, Field

from .registry import AgentRegistry
from handoffAgent.utils.error_handler import TransferRejectedError
from shared.session.directory import SessionDirectory

LOGGER = logging.getLogger(__name__)

TRANSFER_TOOL_NAME = "transfer_agent"


class TransferArgs(BaseModel):
    agent_name: str = Field(description="Name of the agent that should take over the conversation")
    reason: str = Field(default="", description="One sentence on why the other agent is a better fit")


class AgentTransfer:
    """Session-bound transfer capability.

    Attributes:
        transfers: Targets committed through this instance, in call order
    """

    def __init__(
        self,
        directory: SessionDirectory,
        session_id: str,
        user_id: str,
        tenant_id: str,
        registry: Optional[AgentRegistry] = None,
        enforce_routable: bool = False,
    ):
        self._directory = directory
        self._registry = registry
        self.session_id = session_id
        self.user_id = user_id
        self.tenant_id = tenant_id
        self.enforce_routable = enforce_routable
        self._routable_agents: frozenset = frozenset()
        self.transfers: List[str] = []

    # ========== Transfer targets ==========

    def set_routable_agents(self, names: Iterable[str]) -> None:
        """Set the transfer targets offered to the model (advisory)."""
        self._routable_agents = frozenset(names)

    @property
    def routable_agents(self) -> frozenset:
        return self._routable_agents

    # ========== Commit ==========

    def transfer_agent(self, target_agent_name: str) -> None:
        """Make ``target_agent_name`` the session's active agent.

        Raises:
            TransferRejectedError: Empty name, or name missing from the registry
        """
        target = (target_agent_name or "").strip()
        if not target:
            raise TransferRejectedError(target, "agent name is empty")
        if self._registry is not None and target not in self._registry:
            raise TransferRejectedError(target, "no such agent is registered")

        self._directory.set_active_agent(self.session_id, self.user_id, self.tenant_id, target)
        self.transfers.append(target)
        LOGGER.info(f"[{self.session_id}] Active agent set to '{target}'")

    @property
    def last_transfer(self) -> Optional[str]:
        return self.transfers[-1] if self.transfers else None

    # ========== LangChain tool ==========

    def _invoke_from_model(self, agent_name: str, reason: str = "") -> str:
        target = (agent_name or "").strip()
        if target and target not in self._routable_agents:
            if self.enforce_routable:
                raise ToolException(
                    f"Cannot transfer to '{target}'. Available agents: {self._targets_text()}"
                )
            # Advisory set is not enforced by default
            LOGGER.warning(
                f"[{self.session_id}] Transfer to '{target}' is outside the offered set "
                f"[{self._targets_text()}]; accepting"
            )

        try:
            self.transfer_agent(target)
        except TransferRejectedError as e:
            raise ToolException(str(e)) from e

        if reason:
            LOGGER.debug(f"[{self.session_id}] Transfer reason: {reason}")
        return f"Transferred to {target}. Tell the user they are being handed over to the {target} agent."

    def _targets_text(self) -> str:
        return ", ".join(sorted(self._routable_agents)) or "none"

    def _description(self) -> str:
        if not self._routable_agents:
            return (
                "Transfer the conversation to another agent. "
                "No other agents are currently offered; do not call this tool."
            )

        lines = [
            "Transfer the conversation to another agent when the user's request is "
            "better handled by it. The other agent sees the full conversation and "
            "answers the user's latest message.",
            "",
            "Available agents:",
        ]
        for name in sorted(self._routable_agents):
            agent = self._registry.get(name) if self._registry is not None else None
            summary = agent.description if agent is not None and agent.description else ""
            lines.append(f"- {name}: {summary}" if summary else f"- {name}")
        return "\n".join(lines)

    def as_tool(self) -> BaseTool:
        """Build the LangChain tool for the current routable set."""
        return StructuredTool.from_function(
            func=self._invoke_from_model,
            name=TRANSFER_TOOL_NAME,
            description=self._description(),
            args_schema=TransferArgs,
            handle_tool_error=True,
        )


__all__ = ["TRANSFER_TOOL_NAME", "TransferArgs", "AgentTransfer"]
