"""OpenAI chat-completions backend."""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

import openai
from openai import OpenAI

from nlstep.errors import BackendError, ConfigurationError

from .client import save_exchange_log

logger = logging.getLogger(__name__)

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"


class OpenAIClient:
    """Wrapper around the OpenAI chat completions API."""

    name = "openai"

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2048,
        temperature: float = 0.2,
        timeout: float = 60.0,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        api_key = api_key or os.environ.get(OPENAI_API_KEY_ENV)
        if not api_key:
            raise ConfigurationError(
                f"{OPENAI_API_KEY_ENV} environment variable is not set. "
                "Please set it before running live translation."
            )
        if base_url:
            self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        else:
            self.client = OpenAI(api_key=api_key, timeout=timeout)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def complete(self, system_prompt: str, user_message: str) -> str:
        """Send a chat completion request and return the message content."""
        self._call_count += 1
        logger.info("Calling OpenAI (call #%d, model=%s)...", self._call_count, self.model)

        try:
            call_start = time.time()
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                temperature=self.temperature,
                max_completion_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            logger.error("OpenAI API error: %s", e)
            save_exchange_log(self._call_count, system_prompt, user_message, "", str(e))
            raise BackendError(f"OpenAI request failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise BackendError("Empty response from OpenAI")
        text = response.choices[0].message.content.strip()
        logger.info("OpenAI response received in %.1fs (%d chars)",
                    time.time() - call_start, len(text))
        if response.choices[0].finish_reason == "length":
            logger.warning("OpenAI response was truncated at max_tokens=%d", self.max_tokens)

        save_exchange_log(self._call_count, system_prompt, user_message, text, None)
        return text
