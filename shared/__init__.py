"""Shared building blocks: session stores and CLI base."""
