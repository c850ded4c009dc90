"""Runtime assembly: stores, models, registry and the orchestrator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from langchain_core.language_models import BaseChatModel

from handoffAgent.agents import AgentRegistry, AgentRouter, scan_agents_from_config
from handoffAgent.config import Settings, get_settings
from handoffAgent.orchestration import AgentOrchestrator
from shared.session import (
    ConversationLog,
    InMemoryConversationLog,
    InMemorySessionDirectory,
    SessionDirectory,
    SqliteConversationLog,
    SqliteSessionDirectory,
)
from .generator import MemoryChatGenerator
from .model_resolver import build_chat_model, build_router_model
from .summarizer import TitleSummarizer

LOGGER = logging.getLogger(__name__)


@dataclass
class Application:
    """Everything a hosting surface needs to run turns."""

    orchestrator: AgentOrchestrator
    registry: AgentRegistry
    directory: SessionDirectory
    conversation_log: ConversationLog
    settings: Settings


def _create_stores(settings: Settings) -> tuple[SessionDirectory, ConversationLog]:
    db_path = settings.persistence.session_db_path
    if db_path:
        LOGGER.info(f"Using SQLite session storage: {db_path}")
        return SqliteSessionDirectory(db_path), SqliteConversationLog(db_path)

    LOGGER.info("Using in-memory session storage")
    return InMemorySessionDirectory(), InMemoryConversationLog()


def build_application(
    settings: Optional[Settings] = None,
    *,
    model: Optional[BaseChatModel] = None,
    router_model: Optional[BaseChatModel] = None,
    registry: Optional[AgentRegistry] = None,
) -> Application:
    """Wire the orchestrator from settings.

    Args:
        settings: Defaults to ``get_settings()``
        model: Chat model for agents (default: ChatOpenAI from settings)
        router_model: Model for routing and titles (default: ``model`` if given, else from settings)
        registry: Agent registry (default: scanned from agents.yaml)
    """
    settings = settings or get_settings()

    if model is None:
        model = build_chat_model(settings.models)
    if router_model is None:
        router_model = model if settings.models.router is None else build_router_model(settings.models)

    if registry is None:
        registry = scan_agents_from_config(settings.orchestration.agents_config_path)
    elif not registry.frozen:
        registry.freeze()

    directory, conversation_log = _create_stores(settings)

    orchestrator = AgentOrchestrator(
        registry=registry,
        directory=directory,
        conversation_log=conversation_log,
        generator=MemoryChatGenerator(
            model, conversation_log, max_tool_rounds=settings.orchestration.max_tool_rounds
        ),
        router=AgentRouter(router_model),
        summarizer=TitleSummarizer(router_model),
        max_transfers_per_turn=settings.orchestration.max_transfers_per_turn,
        enforce_routable_agents=settings.orchestration.enforce_routable_agents,
    )

    LOGGER.info(f"Application built: {registry.get_stats()}")
    return Application(
        orchestrator=orchestrator,
        registry=registry,
        directory=directory,
        conversation_log=conversation_log,
        settings=settings,
    )


__all__ = ["Application", "build_application"]
