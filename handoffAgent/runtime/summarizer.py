"""Session title summarization (first turn only)."""

from __future__ import annotations

import logging
import re

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from handoffAgent.utils.error_handler import ModelInvocationError, handle_model_error
from handoffAgent.utils.message_utils import stringify_content

LOGGER = logging.getLogger(__name__)

TITLE_PROMPT = "Summarize this message in 4-6 words as a session title: {message}"


class TitleSummarizer:
    def __init__(self, model: BaseChatModel):
        self.model = model

    def summarize(self, user_message: str) -> str:
        """Short session title for ``user_message`` (quotes and newlines removed)."""
        try:
            response = self.model.invoke([HumanMessage(content=TITLE_PROMPT.format(message=user_message))])
        except Exception as e:
            raise ModelInvocationError(
                f"Title summarization failed: {e}",
                user_message=handle_model_error(e),
            ) from e

        title = re.sub(r"[\"\n]", "", stringify_content(response.content)).strip()
        LOGGER.debug(f"Session title: {title!r}")
        return title


__all__ = ["TITLE_PROMPT", "TitleSummarizer"]
