"""Scenario, step and artifact data structures."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .actions import Action


def utc_timestamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class Step(BaseModel):
    description: str
    actions: list[Action] = Field(default_factory=list)


class Artifact(BaseModel):
    """Resolved actions for every step of one named scenario."""

    model_config = ConfigDict(populate_by_name=True)

    test_name: str = Field(default="", alias="testName")
    created_at: str = Field(
        default_factory=utc_timestamp,
        validation_alias=AliasChoices("createdAt", "timestamp"),
        serialization_alias="createdAt",
    )
    steps: list[Step] = Field(default_factory=list)

    @field_validator("created_at", mode="before")
    @classmethod
    def convert_epoch_millis(cls, v):
        # Older artifacts stored epoch milliseconds under "timestamp".
        if isinstance(v, (int, float)):
            return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(v / 1000))
        return v

    @property
    def descriptions(self) -> list[str]:
        return [s.description for s in self.steps]

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "Artifact":
        return cls.model_validate(json.loads(text))


class Scenario(BaseModel):
    """A named, ordered list of natural-language steps as authored."""

    name: str
    steps: list[str] = Field(default_factory=list)
    description: Optional[str] = None

    def step(self, description: str) -> "Scenario":
        self.steps.append(description)
        return self

    @classmethod
    def load(cls, path: str | Path) -> "Scenario":
        """Load a scenario from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Scenario file not found: {path}")
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if "name" not in data:
            data["name"] = path.stem
        return cls(**data)
