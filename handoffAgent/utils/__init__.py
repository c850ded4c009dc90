"""Utilities for handoffAgent."""

from .logging_utils import (
    log_agent_response,
    log_error,
    log_repair_anomaly,
    log_transfer,
    log_user_message,
    setup_logging,
)
from .message_utils import final_ai_text, stringify_content, turns_to_messages
from .error_handler import (
    with_error_boundary,
    handle_model_error,
    HandoffError,
    UnresolvableAgentError,
    RoutingError,
    ModelInvocationError,
    TransferRejectedError,
)

__all__ = [
    "setup_logging",
    "log_user_message",
    "log_agent_response",
    "log_transfer",
    "log_repair_anomaly",
    "log_error",
    "stringify_content",
    "turns_to_messages",
    "final_ai_text",
    "with_error_boundary",
    "handle_model_error",
    "HandoffError",
    "UnresolvableAgentError",
    "RoutingError",
    "ModelInvocationError",
    "TransferRejectedError",
]
