"""Interactive CLI for multi-agent conversations."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from handoffAgent.runtime.app import Application
from handoffAgent.utils.error_handler import with_error_boundary
from shared.cli.base_cli import BaseCLI
from shared.session.models import Turn, TurnRole

LOGGER = logging.getLogger(__name__)


def format_turn(turn: Turn) -> str:
    if turn.role == TurnRole.USER:
        return f"You> {turn.content}"
    if turn.role == TurnRole.TOOL:
        return f"[tool] {turn.content}"

    agent = turn.agent or "assistant"
    if turn.is_transfer:
        return f"[{agent} → {turn.metadata.get('transfer_to', '?')}] {turn.content}"
    return f"{agent}> {turn.content}"


class HandoffCLI(BaseCLI):
    """CLI front end that sends every line through the orchestrator."""

    EXTRA_COMMANDS: Dict[str, str] = {
        "/history": "显示当前会话的完整消息记录",
        "/agents": "列出已注册的 agents",
    }

    def __init__(self, app: Application, user_id: str = "local-user", tenant_id: str = "local"):
        super().__init__(app.directory, app.conversation_log, user_id=user_id, tenant_id=tenant_id)
        self.app = app

    def _build_command_handlers(self) -> Dict[str, Callable]:
        handlers = super()._build_command_handlers()
        handlers.update({
            "/history": self._handle_history,
            "/agents": self._handle_agents,
        })
        return handlers

    @property
    def commands(self) -> Dict[str, str]:
        return {**self.BASE_COMMANDS, **self.EXTRA_COMMANDS}

    def print_welcome(self):
        print("=" * 60)
        print("Multi-agent assistant")
        print(f"Agents: {', '.join(self.app.registry.names())}")
        print("输入 /help 查看命令，/quit 退出")
        print("=" * 60)

    async def handle_user_message(self, user_input: str):
        result = await asyncio.to_thread(self.send, user_input)
        if isinstance(result, str):
            print(result)
            return
        for turn in result:
            if turn.role != TurnRole.USER:
                print(format_turn(turn))

    @with_error_boundary("cli")
    def send(self, user_input: str) -> List[Turn]:
        """Run one turn and return the turns it added to the log."""
        seen = len(self.conversation_log.get_all(self.session_id))
        self.app.orchestrator.handle_turn(
            user_input, self.session_id, self.user_id, self.tenant_id
        )
        return self.conversation_log.get_all(self.session_id)[seen:]

    async def _handle_history(self, arg: Optional[str]) -> bool:
        turns = self.conversation_log.get_all(self.session_id)
        if not turns:
            print("（空）\n")
            return True
        print()
        for turn in turns:
            print(format_turn(turn))
        print()
        return True

    async def _handle_agents(self, arg: Optional[str]) -> bool:
        print()
        print(self.app.registry.get_catalog_text(detailed=True))
        return True


__all__ = ["HandoffCLI", "format_turn"]
