"""Agent definitions, registry, routing and the transfer tool."""

from .schema import AgentDefinition
from .registry import AgentRegistry
from .scanner import build_registry, import_tool, scan_agents_from_config
from .routing import AgentRouter
from .transfer import TRANSFER_TOOL_NAME, AgentTransfer

__all__ = [
    "AgentDefinition",
    "AgentRegistry",
    "build_registry",
    "import_tool",
    "scan_agents_from_config",
    "AgentRouter",
    "TRANSFER_TOOL_NAME",
    "AgentTransfer",
]
