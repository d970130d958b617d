"""Action and locator data structures produced by the translator."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .hierarchy import validate_hierarchy_path


class ActionKind(str, Enum):
    CLICK = "click"
    LONG_CLICK = "longClick"
    DOUBLE_CLICK = "doubleClick"
    TYPE_TEXT = "typeText"
    CLEAR_TEXT = "clearText"
    SCROLL_TO = "scrollTo"
    ASSERT_VISIBLE = "assertVisible"
    ASSERT_TEXT = "assertText"
    ASSERT_CONTAINS = "assertContains"

    @property
    def requires_value(self) -> bool:
        return self in VALUE_REQUIRED_KINDS

    @property
    def is_assertion(self) -> bool:
        return self in (ActionKind.ASSERT_VISIBLE, ActionKind.ASSERT_TEXT, ActionKind.ASSERT_CONTAINS)


VALUE_REQUIRED_KINDS = frozenset({ActionKind.TYPE_TEXT, ActionKind.ASSERT_TEXT, ActionKind.ASSERT_CONTAINS})


class LocatorStrategy(str, Enum):
    STABLE_TAG = "stableTag"
    ACCESSIBILITY_DESCRIPTION = "accessibilityDescription"
    HIERARCHY_PATH = "hierarchyPath"
    TEXT = "text"


# Most stable first.
STRATEGY_PRIORITY: tuple[LocatorStrategy, ...] = (
    LocatorStrategy.STABLE_TAG,
    LocatorStrategy.ACCESSIBILITY_DESCRIPTION,
    LocatorStrategy.HIERARCHY_PATH,
    LocatorStrategy.TEXT,
)

# Names written by older artifacts and prompts.
_LEGACY_STRATEGY_NAMES = {
    "testTag": LocatorStrategy.STABLE_TAG.value,
    "contentDescription": LocatorStrategy.ACCESSIBILITY_DESCRIPTION.value,
    "hierarchy": LocatorStrategy.HIERARCHY_PATH.value,
}


class Locator(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    strategy: LocatorStrategy = Field(
        validation_alias=AliasChoices("strategy", "type"),
        serialization_alias="strategy",
    )
    value: str
    rationale: Optional[str] = None

    @field_validator("strategy", mode="before")
    @classmethod
    def map_legacy_strategy(cls, v):
        if isinstance(v, str):
            return _LEGACY_STRATEGY_NAMES.get(v, v)
        return v

    @model_validator(mode="after")
    def check_hierarchy_path(self) -> "Locator":
        if self.strategy == LocatorStrategy.HIERARCHY_PATH:
            validate_hierarchy_path(self.value)
        return self

    @property
    def priority(self) -> int:
        return STRATEGY_PRIORITY.index(self.strategy)

    def describe(self) -> str:
        return f"{self.strategy.value}={self.value!r}"


class Action(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: ActionKind = Field(alias="action")
    value: Optional[str] = None  # ignored for kinds that take no value
    locator: Locator = Field(
        validation_alias=AliasChoices("locator", "matcher"),
        serialization_alias="locator",
    )

    @model_validator(mode="after")
    def check_value(self) -> "Action":
        if self.kind.requires_value and self.value is None:
            raise ValueError(f"{self.kind.value} action requires a value")
        return self

    def describe(self) -> str:
        if self.kind.requires_value:
            return f"{self.kind.value}({self.value!r}) on {self.locator.describe()}"
        return f"{self.kind.value} on {self.locator.describe()}"

    def to_wire(self) -> dict:
        """JSON-ready mapping in the artifact / wire vocabulary."""
        return self.model_dump(mode="json", by_alias=True)
