"""Chat model construction from settings.

Agents, the router and the title summarizer all talk to OpenAI-compatible
endpoints through ``ChatOpenAI``; ``base_url`` lets any compatible vendor
(DeepSeek, vLLM, Azure gateways) stand in.
"""

from __future__ import annotations

from typing import Dict, Optional

from langchain_openai import ChatOpenAI

from handoffAgent.config import ModelSettings


def _chat_kwargs(
    model: str,
    api_key: Optional[str],
    base_url: Optional[str],
    temperature: float,
) -> Dict[str, object]:
    if not api_key:
        raise RuntimeError(f"缺少模型 {model} 的 API Key，请在 .env 中配置 MODEL_CHAT_API_KEY。")
    kwargs: Dict[str, object] = {"model": model, "api_key": api_key, "temperature": temperature}
    if base_url:
        kwargs["base_url"] = base_url
    return kwargs


def build_chat_model(settings: ModelSettings) -> ChatOpenAI:
    """Model the agents generate with.

    Raises:
        RuntimeError: API key missing
    """
    return ChatOpenAI(**_chat_kwargs(
        settings.chat, settings.chat_api_key, settings.chat_base_url, settings.temperature
    ))


def build_router_model(settings: ModelSettings) -> ChatOpenAI:
    """Model used for routing and titles; deterministic, falls back to the chat model id."""
    return ChatOpenAI(**_chat_kwargs(
        settings.router or settings.chat, settings.chat_api_key, settings.chat_base_url, 0.0
    ))


__all__ = ["build_chat_model", "build_router_model"]
