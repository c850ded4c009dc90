"""Turn orchestration across agents with mid-turn transfers.

One ``handle_turn`` call drives a user message end to end:

1. Resolve the session's active agent. A session without one ("unknown")
   gets a title and is routed; the routed agent is committed through the
   transfer tool, the same path as a mid-conversation transfer.
2. Run the active agent once (its tools plus a session-bound transfer tool).
3. Tag the newest turn with the agent that produced it.
4. If the active agent changed during the call, the answer just logged is a
   transfer marker. Drop the USER turn preceding it and run the new agent on
   the same input. Repeat, at most ``max_transfers_per_turn`` times.
5. Move the USER turn back in front of the transfer markers so the log
   reads USER, TRANSFER..., final answer.

The log edits are read-modify-rewrite; the whole turn runs under a
per-session lock. A failing turn restores the log, the title and the
active agent it started with.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from handoffAgent.agents.registry import AgentRegistry
from handoffAgent.agents.routing import AgentRouter
from handoffAgent.agents.transfer import AgentTransfer
from handoffAgent.utils.logging_utils import log_agent_response, log_transfer, log_user_message
from shared.session.conversation_log import ConversationLog, rewrite_log
from shared.session.directory import SessionDirectory
from shared.session.locks import SessionLocks
from shared.session.models import KIND_KEY, TRANSFER_KIND, TRANSFER_TO_KEY, UNKNOWN_AGENT, Turn

from .log_repair import drop_pending_user_turn, move_user_before_markers, tag_last_turn

if TYPE_CHECKING:
    from handoffAgent.runtime.generator import ChatGenerator
    from handoffAgent.runtime.summarizer import TitleSummarizer

LOGGER = logging.getLogger(__name__)


class AgentOrchestrator:
    """Routes turns to agents and keeps the conversation log ordered."""

    def __init__(
        self,
        registry: AgentRegistry,
        directory: SessionDirectory,
        conversation_log: ConversationLog,
        generator: ChatGenerator,
        router: AgentRouter,
        summarizer: TitleSummarizer,
        max_transfers_per_turn: int = 3,
        enforce_routable_agents: bool = False,
        locks: Optional[SessionLocks] = None,
    ):
        self.registry = registry
        self.directory = directory
        self.conversation_log = conversation_log
        self.generator = generator
        self.router = router
        self.summarizer = summarizer
        self.max_transfers_per_turn = max_transfers_per_turn
        self.enforce_routable_agents = enforce_routable_agents
        self.locks = locks or SessionLocks()

    # ========== Entry point ==========

    def handle_turn(self, input_text: str, session_id: str, user_id: str, tenant_id: str) -> List[Turn]:
        """Process one user message.

        Returns:
            An empty list. The turns live in the conversation log; callers
            re-read it to display them

        Raises:
            UnresolvableAgentError: Active or routed agent is not registered
            RoutingError: First-turn routing failed
            ModelInvocationError: A generation call failed
        """
        with self.locks.hold(session_id):
            log_user_message(LOGGER, session_id, input_text)
            snapshot = self.conversation_log.get_all(session_id)
            start_session = self.directory.get_session(session_id, user_id, tenant_id)
            start_agent = start_session.active_agent
            LOGGER.info(f"[{session_id}] Active agent: {start_agent}")

            try:
                active_agent = start_agent
                if active_agent == UNKNOWN_AGENT:
                    active_agent = self._start_session(input_text, session_id, user_id, tenant_id)
                self._run_agents(input_text, session_id, user_id, tenant_id, active_agent)
            except Exception:
                self._restore(session_id, user_id, tenant_id, snapshot, start_agent, start_session.title)
                raise

            return []

    # ========== Steps ==========

    def _new_transfer(self, session_id: str, user_id: str, tenant_id: str) -> AgentTransfer:
        return AgentTransfer(
            self.directory,
            session_id,
            user_id,
            tenant_id,
            registry=self.registry,
            enforce_routable=self.enforce_routable_agents,
        )

    def _start_session(self, input_text: str, session_id: str, user_id: str, tenant_id: str) -> str:
        """Title the session, route it, and commit the routed agent."""
        title = self.summarizer.summarize(input_text)
        self.directory.patch_title(session_id, user_id, tenant_id, title)

        agent_name = self.router.route(input_text, self.registry.routes())
        self.registry.require(agent_name)

        self._new_transfer(session_id, user_id, tenant_id).transfer_agent(agent_name)
        LOGGER.info(f"[{session_id}] New session '{title}' routed to '{agent_name}'")
        return agent_name

    def _run_agents(
        self,
        input_text: str,
        session_id: str,
        user_id: str,
        tenant_id: str,
        active_agent: str,
    ) -> None:
        pending_markers = 0
        hop = 0

        while True:
            agent = self.registry.require(active_agent)
            transfer = self._new_transfer(session_id, user_id, tenant_id)
            transfer.set_routable_agents(agent.routable_agents)

            response = self.generator.generate(
                agent.system_prompt,
                [*agent.tools, transfer.as_tool()],
                session_id,
                input_text,
            )
            log_agent_response(LOGGER, session_id, agent.name, response)

            current_agent = self.directory.get_active_agent(session_id, user_id, tenant_id)
            if current_agent == active_agent:
                tag_last_turn(self.conversation_log, session_id, active_agent)
                break

            hop += 1
            log_transfer(LOGGER, session_id, active_agent, current_agent, hop)
            tag_last_turn(
                self.conversation_log, session_id, active_agent,
                **{KIND_KEY: TRANSFER_KIND, TRANSFER_TO_KEY: current_agent},
            )

            if hop > self.max_transfers_per_turn:
                LOGGER.warning(
                    f"[{session_id}] Transfer limit ({self.max_transfers_per_turn}) reached; "
                    f"'{current_agent}' stays active and answers the next turn"
                )
                break

            if drop_pending_user_turn(self.conversation_log, session_id):
                pending_markers += 1
            active_agent = current_agent

        move_user_before_markers(self.conversation_log, session_id, pending_markers)

    def _restore(
        self,
        session_id: str,
        user_id: str,
        tenant_id: str,
        snapshot: List[Turn],
        start_agent: str,
        start_title: str,
    ) -> None:
        """Undo a failed turn's log edits, title and transfers (best effort)."""
        if self.conversation_log.get_all(session_id) != snapshot:
            rewrite_log(self.conversation_log, session_id, snapshot)
            LOGGER.warning(f"[{session_id}] Conversation log restored after failed turn")

        current_agent = self.directory.get_active_agent(session_id, user_id, tenant_id)
        if current_agent != start_agent:
            if self.directory.compare_and_set_active_agent(
                session_id, user_id, tenant_id, current_agent, start_agent
            ):
                LOGGER.warning(
                    f"[{session_id}] Active agent rolled back {current_agent} → {start_agent} after failed turn"
                )
            else:
                LOGGER.error(f"[{session_id}] Active agent changed concurrently; rollback skipped")

        if self.directory.get_session(session_id, user_id, tenant_id).title != start_title:
            self.directory.patch_title(session_id, user_id, tenant_id, start_title)
            LOGGER.warning(f"[{session_id}] Session title restored after failed turn")


__all__ = ["AgentOrchestrator"]
