"""Configuration models for the step runner."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_FILE = "nlstep-config.json"


class BridgeConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 37546
    url: Optional[str] = None  # remote bridge used by test runners

    @field_validator("port")
    @classmethod
    def check_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v

    @property
    def base_url(self) -> str:
        if self.url:
            return self.url.rstrip("/")
        return f"http://{self.host}:{self.port}"


class RunnerConfig(BaseModel):
    # Artifacts
    artifacts_dir: str = "./nlstep-artifacts"

    # AI settings (provider is chosen by environment credentials)
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_model: str = "gpt-4o-mini"
    ai_max_tokens: int = 2048
    ai_temperature: float = 0.2
    ai_timeout_seconds: float = 60.0
    translation_cache_enabled: bool = True
    debug_dir: Optional[str] = None  # dump prompt/response exchanges here

    # UI settling
    settle_timeout_ms: int = 5000
    settle_delay_ms: int = 300
    headless: bool = True

    # Translation bridge
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)

    @field_validator("ai_timeout_seconds")
    @classmethod
    def check_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("ai_timeout_seconds must be positive")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "RunnerConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def load_or_default(cls, path: str | Path) -> "RunnerConfig":
        try:
            return cls.load(path)
        except FileNotFoundError:
            return cls()

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
