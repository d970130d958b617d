"""Claude API client — the Anthropic language-model backend."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Optional

import anthropic

from nlstep.errors import BackendError, ConfigurationError

logger = logging.getLogger(__name__)

ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"

# Exchange logs are only written once a directory is configured.
_debug_dir: Path | None = None


def set_debug_dir(path: Path | str | None) -> None:
    """Set (or clear, with None) the directory for prompt/response dumps."""
    global _debug_dir
    if path is None:
        _debug_dir = None
        return
    _debug_dir = Path(path)
    _debug_dir.mkdir(parents=True, exist_ok=True)


def get_debug_dir() -> Path | None:
    return _debug_dir


def save_exchange_log(
    call_number: int,
    system_prompt: str,
    user_message: str,
    response_text: str,
    error: str | None,
) -> None:
    """Save the full exchange (prompt + response) when a debug dir is set."""
    debug_dir = get_debug_dir()
    if debug_dir is None:
        return
    try:
        ts = time.strftime("%Y%m%d_%H%M%S")
        log_file = debug_dir / f"ai_call_{ts}_{call_number:03d}.log"
        with open(log_file, "w", encoding="utf-8") as f:
            f.write(f"=== AI CALL #{call_number} at {time.strftime('%Y-%m-%d %H:%M:%S')} ===\n\n")
            f.write(f"=== SYSTEM PROMPT ({len(system_prompt)} chars) ===\n")
            f.write(system_prompt)
            f.write(f"\n\n=== USER MESSAGE ({len(user_message)} chars) ===\n")
            f.write(user_message)
            f.write(f"\n\n=== RESPONSE ({len(response_text)} chars) ===\n")
            f.write(response_text if response_text else "(empty)")
            if error:
                f.write(f"\n\n=== ERROR ===\n{error}\n")
        logger.debug("AI exchange logged to %s", log_file)
    except OSError as log_err:
        logger.debug("Failed to save AI exchange log: %s", log_err)


class AIClient:
    """Wrapper around the Anthropic Claude API."""

    name = "anthropic"

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 2048,
        temperature: float = 0.2,
        timeout: float = 60.0,
        api_key: Optional[str] = None,
    ):
        api_key = api_key or os.environ.get(ANTHROPIC_API_KEY_ENV)
        if not api_key:
            raise ConfigurationError(
                f"{ANTHROPIC_API_KEY_ENV} environment variable is not set. "
                "Please set it before running live translation."
            )
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Send a completion request to Claude and return the text response."""
        self._call_count += 1
        tokens = max_tokens or self.max_tokens
        logger.info("Calling Claude (call #%d, model=%s, max_tokens=%d)...",
                    self._call_count, self.model, tokens)
        logger.debug("Prompt length: system=%d chars, user=%d chars",
                     len(system_prompt), len(user_message))

        try:
            call_start = time.time()
            response = self.client.messages.create(
                model=self.model,
                max_tokens=tokens,
                temperature=self.temperature if temperature is None else temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
            )
        except anthropic.APIError as e:
            logger.error("Claude API error: %s", e)
            save_exchange_log(self._call_count, system_prompt, user_message, "", str(e))
            raise BackendError(f"Anthropic request failed: {e}") from e

        if not response.content:
            raise BackendError("Empty response from Anthropic")
        text = response.content[0].text
        logger.info("Claude response received in %.1fs (%d chars)",
                    time.time() - call_start, len(text))

        if response.stop_reason == "max_tokens":
            logger.warning(
                "Claude response was truncated at max_tokens=%d; JSON may be incomplete.",
                tokens,
            )

        save_exchange_log(self._call_count, system_prompt, user_message, text, None)
        return text
