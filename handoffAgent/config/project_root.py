"""Project root path detection - works regardless of working directory."""

from __future__ import annotations

from pathlib import Path
from functools import lru_cache


@lru_cache(maxsize=1)
def get_project_root() -> Path:
    """Get absolute path to the directory that contains the handoffAgent package.

    Example:
        >>> root = get_project_root()
        >>> agents_file = root / "handoffAgent" / "config" / "agents.yaml"
    """
    # project_root.py -> config/ -> handoffAgent/ -> project root
    project_root = Path(__file__).resolve().parent.parent.parent

    if not (project_root / "handoffAgent").exists():
        raise RuntimeError(
            f"Could not locate project root. Expected 'handoffAgent' directory at {project_root}"
        )

    return project_root


def resolve_project_path(relative_path: str | Path) -> Path:
    """Resolve a path relative to the project root."""
    return get_project_root() / relative_path


__all__ = ["get_project_root", "resolve_project_path"]
