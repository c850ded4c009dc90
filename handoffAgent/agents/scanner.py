"""Agent scanner - 从 agents.yaml 构建 AgentRegistry

负责：
1. 读取 agents.yaml
2. 动态导入 agent 工具（"module.path:attr"）
3. 校验 routable_agents 引用的 agent 都存在
4. 返回已冻结的 AgentRegistry
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from langchain_core.tools import BaseTool

from .registry import AgentRegistry
from .schema import AgentDefinition
from handoffAgent.config.project_root import resolve_project_path

LOGGER = logging.getLogger(__name__)

DEFAULT_AGENTS_CONFIG = "handoffAgent/config/agents.yaml"


def import_tool(tool_path: str) -> BaseTool:
    """动态导入工具

    Args:
        tool_path: "module.path:attr"，attr 必须是 BaseTool 实例

    Raises:
        ImportError / AttributeError: 导入失败
        TypeError: attr 不是 BaseTool

    Examples:
        >>> now = import_tool("handoffAgent.tools.builtin.now:now")
    """
    try:
        module_path, attr_name = tool_path.split(":")
        module = importlib.import_module(module_path)
        tool = getattr(module, attr_name)
    except (ValueError, ImportError, AttributeError) as e:
        LOGGER.error(f"Failed to import agent tool '{tool_path}': {e}")
        raise

    if not isinstance(tool, BaseTool):
        raise TypeError(f"'{tool_path}' is not a LangChain tool (got {type(tool).__name__})")
    return tool


def parse_agent_from_config(name: str, config: Dict[str, Any]) -> AgentDefinition:
    """从 YAML 配置解析单个 agent

    Raises:
        KeyError: 缺少 system_prompt
    """
    system_prompt = config["system_prompt"].strip()
    tools = [import_tool(path) for path in config.get("tools") or []]

    return AgentDefinition(
        name=name,
        system_prompt=system_prompt,
        tools=tuple(tools),
        routable_agents=frozenset(config.get("routable_agents") or []),
        description=config.get("description", ""),
    )


def load_agents_config(config_path: Path | str) -> Dict[str, Any]:
    """加载 agents.yaml

    Raises:
        FileNotFoundError: 配置文件不存在
        yaml.YAMLError: YAML 解析错误
    """
    if isinstance(config_path, str):
        config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Agent config not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    LOGGER.debug(f"Loaded agent config from {config_path}")
    return config


def build_registry(agents: List[AgentDefinition]) -> AgentRegistry:
    """Register ``agents``, check transfer targets, and freeze.

    Raises:
        ValueError: Duplicate name, or a routable_agents entry naming an unknown agent
    """
    registry = AgentRegistry(agents)

    for agent in registry.all():
        unknown = sorted(agent.routable_agents - set(registry.names()))
        if unknown:
            raise ValueError(
                f"Agent '{agent.name}' lists unknown routable agents: {', '.join(unknown)}"
            )

    return registry.freeze()


def scan_agents_from_config(config_path: Optional[Path | str] = None) -> AgentRegistry:
    """从 agents.yaml 扫描 agents，返回冻结的注册表

    Args:
        config_path: agents.yaml 路径（可选，默认使用项目内置配置）
    """
    if config_path is None:
        config_path = resolve_project_path(DEFAULT_AGENTS_CONFIG)

    config = load_agents_config(config_path)

    agents: List[AgentDefinition] = []
    for name, agent_config in (config.get("agents") or {}).items():
        if not (agent_config or {}).get("enabled", True):
            LOGGER.info(f"Skipping disabled agent: {name}")
            continue
        try:
            agents.append(parse_agent_from_config(name, agent_config))
        except Exception as e:
            LOGGER.error(f"Failed to load agent '{name}': {e}")
            raise

    registry = build_registry(agents)
    LOGGER.info(f"Loaded {len(registry)} agents from {config_path}")
    return registry


__all__ = [
    "DEFAULT_AGENTS_CONFIG",
    "import_tool",
    "parse_agent_from_config",
    "load_agents_config",
    "build_registry",
    "scan_agents_from_config",
]
