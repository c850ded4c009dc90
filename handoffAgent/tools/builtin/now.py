"""Current date/time tool shared by the bundled agents."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from langchain_core.tools import ToolException, tool


@tool
def now(tz: str = "UTC") -> str:
    """Return the current date and time in ISO 8601 format.

    Use this when the answer depends on today's date (delivery estimates,
    warranty periods, opening hours).

    Args:
        tz: IANA time zone name, e.g. "UTC" or "Europe/Berlin"
    """
    if tz.upper() == "UTC":
        return datetime.now(timezone.utc).isoformat()
    try:
        return datetime.now(ZoneInfo(tz)).isoformat()
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ToolException(f"Unknown time zone: {tz}") from e


now.handle_tool_error = True

__all__ = ["now"]
