"""Runtime: generation backend, title summarizer, model wiring."""

from .generator import ChatGenerator, MemoryChatGenerator
from .summarizer import TitleSummarizer
from .app import Application, build_application

__all__ = [
    "ChatGenerator",
    "MemoryChatGenerator",
    "TitleSummarizer",
    "Application",
    "build_application",
]
