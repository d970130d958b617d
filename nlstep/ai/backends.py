"""Language-model backend capability and environment-driven selection."""

from __future__ import annotations

import logging
import os
from typing import Protocol

from nlstep.errors import ConfigurationError
from nlstep.models.config import RunnerConfig

from .client import ANTHROPIC_API_KEY_ENV, AIClient
from .openai_client import OPENAI_API_KEY_ENV, OpenAIClient

logger = logging.getLogger(__name__)


class LanguageModelBackend(Protocol):
    name: str
    model: str

    def complete(self, system_prompt: str, user_message: str) -> str:
        ...


def configured_providers() -> dict[str, bool]:
    return {
        "openai": bool(os.environ.get(OPENAI_API_KEY_ENV, "").strip()),
        "anthropic": bool(os.environ.get(ANTHROPIC_API_KEY_ENV, "").strip()),
    }


def create_backend(config: RunnerConfig | None = None) -> LanguageModelBackend:
    """Pick a backend from the credentials present in the environment.

    OpenAI wins when both keys are set. Raises ConfigurationError when
    neither is set.
    """
    config = config or RunnerConfig()
    providers = configured_providers()

    if providers["openai"]:
        logger.info("Using OpenAI (%s) for step translation", config.openai_model)
        return OpenAIClient(
            model=config.openai_model,
            max_tokens=config.ai_max_tokens,
            temperature=config.ai_temperature,
            timeout=config.ai_timeout_seconds,
        )
    if providers["anthropic"]:
        logger.info("Using Anthropic (%s) for step translation", config.anthropic_model)
        return AIClient(
            model=config.anthropic_model,
            max_tokens=config.ai_max_tokens,
            temperature=config.ai_temperature,
            timeout=config.ai_timeout_seconds,
        )
    raise ConfigurationError(
        f"No API keys configured. Set {OPENAI_API_KEY_ENV} or {ANTHROPIC_API_KEY_ENV}."
    )
