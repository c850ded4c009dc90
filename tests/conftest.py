"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from handoffAgent.agents import AgentDefinition, AgentRouter, build_registry  # noqa: E402
from handoffAgent.orchestration import AgentOrchestrator  # noqa: E402
from handoffAgent.runtime.summarizer import TitleSummarizer  # noqa: E402
from shared.session import InMemoryConversationLog, InMemorySessionDirectory  # noqa: E402
from tests.fakes import ScriptedGenerator  # noqa: E402

SESSION = ("S1", "user-1", "tenant-1")


@pytest.fixture
def conversation_log():
    return InMemoryConversationLog()


@pytest.fixture
def directory():
    return InMemorySessionDirectory()


@pytest.fixture
def registry():
    """sales ↔ support ↔ billing, frozen."""
    return build_registry([
        AgentDefinition(
            name="sales",
            system_prompt="You sell shoes.",
            routable_agents={"support"},
            description="Purchases",
        ),
        AgentDefinition(
            name="support",
            system_prompt="You handle complaints.",
            routable_agents={"sales", "billing"},
            description="Complaints",
        ),
        AgentDefinition(
            name="billing",
            system_prompt="You answer invoice questions.",
            routable_agents={"support"},
        ),
    ])


@pytest.fixture
def generator(conversation_log):
    return ScriptedGenerator(conversation_log)


@pytest.fixture
def router():
    mock = MagicMock(spec=AgentRouter)
    mock.route.return_value = "sales"
    return mock


@pytest.fixture
def summarizer():
    mock = MagicMock(spec=TitleSummarizer)
    mock.summarize.return_value = "Buying shoes"
    return mock


@pytest.fixture
def make_orchestrator(registry, directory, conversation_log, generator, router, summarizer):
    def _make(**kwargs):
        params = dict(
            registry=registry,
            directory=directory,
            conversation_log=conversation_log,
            generator=generator,
            router=router,
            summarizer=summarizer,
        )
        params.update(kwargs)
        return AgentOrchestrator(**params)
    return _make
