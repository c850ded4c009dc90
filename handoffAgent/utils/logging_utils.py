"""Logging utilities for handoffAgent."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

ROOT_LOGGER_NAME = "handoffAgent"

_preview_length = 100


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = "logs",
    preview_length: int = 100,
) -> logging.Logger:
    """Setup logging for the handoffAgent package.

    Args:
        level: Level of the detailed (file) handler
        log_dir: Directory for the timestamped log file; None disables the file handler
        preview_length: Max characters of message content written to logs

    Returns:
        Configured package logger
    """
    global _preview_length
    _preview_length = preview_length

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # Handlers filter; children inherit DEBUG
    logger.propagate = False

    logger.handlers = []

    if log_dir:
        logs_path = Path(log_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        log_file = logs_path / f"handoff_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("handoffAgent logging started")
    logger.info("=" * 80)

    return logger


def _preview(content: str) -> str:
    if len(content) > _preview_length:
        return content[:_preview_length] + "..."
    return content


def log_user_message(logger: logging.Logger, session_id: str, content: str) -> None:
    """Log user input for a session."""
    logger.info(f"[{session_id}] User input: {_preview(content)}")


def log_agent_response(logger: logging.Logger, session_id: str, agent: str, content: str) -> None:
    """Log the response an agent produced."""
    logger.info(f"[{session_id}] Agent '{agent}' response: {_preview(content)}")


def log_transfer(logger: logging.Logger, session_id: str, from_agent: str, to_agent: str, hop: int) -> None:
    """Log an agent transfer observed after a generation call."""
    logger.info(f"[{session_id}] Agent transfer (hop {hop}): {from_agent} → {to_agent}")


def log_repair_anomaly(
    logger: logging.Logger,
    session_id: str,
    step: str,
    expected: Sequence[str],
    actual: Sequence[str],
) -> None:
    """Log a conversation log that did not match the shape a repair step expects.

    Args:
        logger: Logger instance
        session_id: Session being repaired
        step: Repair step that was skipped
        expected: Expected roles at the inspected positions
        actual: Roles found at those positions
    """
    logger.warning(
        f"[{session_id}] Log repair skipped ({step}): "
        f"expected [{', '.join(expected)}], found [{', '.join(actual)}]"
    )


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context and traceback."""
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    if context:
        logger.error(f"  Context: {context}")
    logger.exception("Full traceback:", exc_info=error)


__all__ = [
    "ROOT_LOGGER_NAME",
    "setup_logging",
    "log_user_message",
    "log_agent_response",
    "log_transfer",
    "log_repair_anomaly",
    "log_error",
]
