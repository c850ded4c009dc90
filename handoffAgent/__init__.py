"""Multi-agent conversation routing with mid-turn agent transfers."""

__version__ = "0.1.0"
