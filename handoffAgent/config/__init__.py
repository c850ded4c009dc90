"""Configuration for handoffAgent."""

from .settings import (
    ModelSettings,
    ObservabilitySettings,
    OrchestrationSettings,
    PersistenceSettings,
    Settings,
    get_settings,
)
from .project_root import get_project_root, resolve_project_path

__all__ = [
    "ModelSettings",
    "ObservabilitySettings",
    "OrchestrationSettings",
    "PersistenceSettings",
    "Settings",
    "get_settings",
    "get_project_root",
    "resolve_project_path",
]
