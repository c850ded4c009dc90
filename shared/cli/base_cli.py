"""Base CLI framework for conversational agent front ends."""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

from shared.session.conversation_log import ConversationLog
from shared.session.directory import SessionDirectory

LOGGER = logging.getLogger(__name__)


class BaseCLI(ABC):
    """Base CLI class handling common command-line interaction patterns.

    Provides:
    - Command routing (/quit, /help, /sessions, /new, /load, /current)
    - Main input/output loop
    - Current session tracking against a session directory

    Subclasses implement:
    - Welcome message
    - User message processing
    - Custom commands (optional)
    """

    BASE_COMMANDS: Dict[str, str] = {
        "/quit": "退出程序",
        "/exit": "退出程序",
        "/help": "显示帮助信息",
        "/sessions": "列出当前用户的所有会话",
        "/new": "开始新会话",
        "/load <id>": "加载指定会话（使用会话ID前几位）",
        "/current": "显示当前会话信息",
    }

    def __init__(
        self,
        directory: SessionDirectory,
        conversation_log: ConversationLog,
        user_id: str = "local-user",
        tenant_id: str = "local",
    ):
        self.directory = directory
        self.conversation_log = conversation_log
        self.user_id = user_id
        self.tenant_id = tenant_id
        self.session_id = self.new_session_id()
        self._command_handlers = self._build_command_handlers()
        self._running = False

        LOGGER.info(f"{self.__class__.__name__} initialized (session {self.session_id})")

    @staticmethod
    def new_session_id() -> str:
        return str(uuid.uuid4())

    def _build_command_handlers(self) -> Dict[str, Callable]:
        """Subclasses can override to add custom commands."""
        return {
            "/quit": self._handle_quit,
            "/exit": self._handle_quit,
            "/help": self._handle_help,
            "/sessions": self._handle_sessions,
            "/new": self._handle_new,
            "/load": self._handle_load,
            "/current": self._handle_current,
        }

    @property
    def commands(self) -> Dict[str, str]:
        return self.BASE_COMMANDS

    # ========== Main Loop ==========

    async def run(self):
        """Main CLI loop."""
        self._running = True
        self.print_welcome()

        while self._running:
            try:
                user_input = (await self.get_input()).strip()

                if not user_input:
                    continue

                if self.is_command(user_input):
                    should_continue = await self.handle_command(user_input)
                    if not should_continue:
                        break
                else:
                    await self.handle_user_message(user_input)

            except (KeyboardInterrupt, EOFError):
                print("\n再见！")
                LOGGER.info("Session interrupted by user")
                break
            except Exception as e:
                LOGGER.error(f"Unexpected error in main loop: {e}", exc_info=True)
                print(f"❌ 发生错误: {e}")

        await self.on_shutdown()

    async def get_input(self) -> str:
        return await asyncio.to_thread(input, "You> ")

    async def on_shutdown(self):
        LOGGER.info("CLI shutting down")

    # ========== Command Handling ==========

    def is_command(self, text: str) -> bool:
        return text.startswith("/")

    async def handle_command(self, cmd: str) -> bool:
        """Handle command input.

        Returns:
            True to continue main loop, False to exit
        """
        parts = cmd.split(maxsplit=1)
        cmd_name = parts[0].lower()
        cmd_arg = parts[1] if len(parts) > 1 else None

        handler = self._command_handlers.get(cmd_name)
        if handler:
            return await handler(cmd_arg)
        print(f"❌ 未知命令: {cmd_name}")
        print("   输入 /help 查看可用命令")
        return True

    # ========== Built-in Command Handlers ==========

    async def _handle_quit(self, arg: Optional[str]) -> bool:
        print("会话结束。")
        LOGGER.info("Exit requested by /quit command")
        return False

    async def _handle_help(self, arg: Optional[str]) -> bool:
        print("\n可用命令:")
        for cmd, desc in self.commands.items():
            print(f"  {cmd:<20} {desc}")
        print()
        return True

    async def _handle_sessions(self, arg: Optional[str]) -> bool:
        sessions = self.directory.list_sessions(user_id=self.user_id, tenant_id=self.tenant_id)
        if not sessions:
            print("没有找到会话。\n")
            return True

        print(f"\n找到 {len(sessions)} 个会话:\n")
        for i, session in enumerate(sessions, 1):
            marker = "*" if session.session_id == self.session_id else " "
            print(
                f"{marker}{i}. ID: {session.session_id[:8]}... | agent: {session.active_agent} "
                f"| {session.title or '(untitled)'} | 更新: {session.updated_at[:16]}"
            )
        print()
        return True

    async def _handle_new(self, arg: Optional[str]) -> bool:
        self.session_id = self.new_session_id()
        print(f"✓ 新会话: {self.session_id[:8]}...\n")
        return True

    async def _handle_load(self, session_id_prefix: Optional[str]) -> bool:
        if not session_id_prefix:
            print("❌ 请提供会话ID前缀，例如: /load abc123")
            return True

        sessions = self.directory.list_sessions(user_id=self.user_id, tenant_id=self.tenant_id)
        matching = [s for s in sessions if s.session_id.startswith(session_id_prefix)]

        if not matching:
            print(f"❌ 未找到以 '{session_id_prefix}' 开头的会话。")
            return True

        if len(matching) > 1:
            print(f"⚠️  找到 {len(matching)} 个匹配的会话，请提供更长的ID前缀:")
            for session in matching[:5]:
                print(f"   - {session.session_id[:16]}... ({session.title or 'untitled'})")
            print()
            return True

        self.session_id = matching[0].session_id
        print(f"✓ 已加载会话: {self.session_id[:8]}... ({matching[0].title or 'untitled'})\n")
        return True

    async def _handle_current(self, arg: Optional[str]) -> bool:
        session = self.directory.get_session(self.session_id, self.user_id, self.tenant_id)
        turns = self.conversation_log.get_all(self.session_id)
        print(f"\n当前会话: {session.session_id}")
        print(f"  标题: {session.title or '(untitled)'}")
        print(f"  当前 agent: {session.active_agent}")
        print(f"  消息数: {len(turns)}\n")
        return True

    # ========== Abstract Methods ==========

    @abstractmethod
    def print_welcome(self):
        ...

    @abstractmethod
    async def handle_user_message(self, user_input: str):
        ...
