"""Text-generation client for PiText-Trek.

Wraps OpenAI-compatible Chat Completions behind a one-method interface so the
route proposal stage never touches the SDK directly. Any provider that speaks
the same protocol (OpenAI, Groq, a local gateway) works by pointing
``LLM_BASE_URL`` at it.
"""

from __future__ import annotations

import logging
from typing import Protocol

import openai
from openai import OpenAI

from pitext_trek.api.config import LLMConfig
from pitext_trek.api.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Anything that turns a system + user prompt into raw text."""

    def complete(self, system_prompt: str, user_prompt: str,
                 temperature: float, max_tokens: int) -> str:
        ...


class OpenAITextGenerator:
    """``TextGenerator`` backed by the ``openai`` SDK."""

    def __init__(self, config: LLMConfig, client: OpenAI | None = None):
        self.config = config
        self.model = config.model
        self._client = client or OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
        )

    def complete(self, system_prompt: str, user_prompt: str,
                 temperature: float, max_tokens: int) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        logger.debug(
            "Calling ChatCompletion: model=%s temperature=%.2f max_tokens=%d",
            self.model,
            temperature,
            max_tokens,
        )

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.OpenAIError as exc:
            logger.error("Text-generation call failed: %s", exc)
            raise ExternalServiceError(f"Text-generation service error: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error("Empty response from text-generation service")
            raise ExternalServiceError("No response from text-generation service")

        logger.info(f"LLM response length: {len(content)} characters")
        return content


__all__ = ["TextGenerator", "OpenAITextGenerator"]
