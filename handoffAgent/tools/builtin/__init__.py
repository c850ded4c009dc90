"""Builtin tools referenced from agents.yaml."""

from .now import now

__all__ = ["now"]
