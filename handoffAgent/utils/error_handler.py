"""Error taxonomy for agent handoff turns and a boundary for hosting surfaces."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

LOGGER = logging.getLogger(__name__)


class HandoffError(Exception):
    """Base exception for turn handling errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class UnresolvableAgentError(HandoffError):
    """Active or routed agent name has no registry entry."""

    def __init__(self, agent_name: str, message: str = None):
        super().__init__(
            message or f"Agent '{agent_name}' is not registered",
            user_message="当前会话的 agent 配置无效，请联系管理员",
        )
        self.agent_name = agent_name


class RoutingError(HandoffError):
    """Router could not resolve input to one of the offered agents."""

    def __init__(self, message: str, answer: str = None):
        super().__init__(message, user_message="无法为该请求选择合适的 agent，请换个说法再试")
        self.answer = answer


class ModelInvocationError(HandoffError):
    """Generation backend call failed."""
    pass


class TransferRejectedError(HandoffError):
    """Transfer tool refused the requested target."""

    def __init__(self, target: str, reason: str):
        super().__init__(f"Transfer to '{target}' rejected: {reason}")
        self.target = target
        self.reason = reason


def handle_model_error(error: Exception) -> str:
    """Convert model invocation errors to user-friendly messages."""
    error_str = str(error).lower()

    if "rate_limit" in error_str or "429" in error_str:
        return "请求过于频繁，请稍后再试"

    if "timeout" in error_str:
        return "AI 响应超时，请重试"

    if "context_length" in error_str or "token" in error_str:
        return "对话历史过长，请开启新会话"

    if "invalid_api_key" in error_str or "authentication" in error_str:
        return "API 密钥无效，请联系管理员"

    return f"AI 服务暂时不可用：{str(error)}"


def with_error_boundary(surface_name: str):
    """Decorator for hosting surfaces (CLI handlers) that print errors.

    Turn errors are logged and turned into a user-facing string that the
    wrapped function returns instead of raising. Core code never uses this:
    it lets errors propagate to the caller of ``handle_turn``.

    Example:
        @with_error_boundary("cli")
        def send(text: str) -> str:
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except UnresolvableAgentError as e:
                LOGGER.error(f"{surface_name} unresolvable agent: {e}")
                return f"⚠️ {e.user_message}"
            except RoutingError as e:
                LOGGER.error(f"{surface_name} routing failed: {e}")
                return f"🧭 {e.user_message}"
            except ModelInvocationError as e:
                LOGGER.error(f"{surface_name} model error: {e}")
                return f"🤖 AI 模型调用失败：{e.user_message}"
            except HandoffError as e:
                LOGGER.error(f"{surface_name} error: {e}")
                return f"❌ {e.user_message}"
            except Exception as e:
                LOGGER.exception(f"{surface_name} unexpected error", exc_info=e)
                return "❌ 执行出错，请重试。如果问题持续，请联系支持。"
        return wrapper
    return decorator


__all__ = [
    "HandoffError",
    "UnresolvableAgentError",
    "RoutingError",
    "ModelInvocationError",
    "TransferRejectedError",
    "handle_model_error",
    "with_error_boundary",
]
