"""Tools available to agents."""
