"""LangChain ChatAnthropic wrapper for design-document generation."""

from __future__ import annotations

import logging

from layoutsvg.config import Settings, settings as default_settings
from layoutsvg.errors import ExternalCallFailure
from layoutsvg.llm.prompts import Prompt

logger = logging.getLogger(__name__)


class LangChainGenerator:
    """Async callable ``Prompt -> str`` backed by ChatAnthropic."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings

    async def __call__(self, prompt: Prompt) -> str:
        if not self.settings.anthropic_api_key:
            raise ExternalCallFailure("LLM not configured, set ANTHROPIC_API_KEY in .env")

        from langchain_anthropic import ChatAnthropic
        from langchain_core.messages import HumanMessage, SystemMessage

        llm = ChatAnthropic(
            model=self.settings.model_generate,
            api_key=self.settings.anthropic_api_key,
            max_tokens=self.settings.model_max_tokens,
            temperature=self.settings.model_temperature,
        )
        messages = [
            SystemMessage(content=prompt.system_text),
            HumanMessage(content=prompt.user_text),
        ]

        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            raise ExternalCallFailure(f"Generation request failed: {e}") from e

        text = response.content if isinstance(response.content, str) else _join_blocks(response.content)
        if not text.strip():
            raise ExternalCallFailure("Generation returned an empty response")
        logger.debug("LLM returned %d characters", len(text))
        return text


def _join_blocks(content: list) -> str:
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
