"""Scenario run state and results."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class RunState(str, Enum):
    IDLE = "Idle"
    LOADING = "Loading"
    CACHED_REPLAY = "CachedReplay"
    LIVE_TRANSLATION = "LiveTranslation"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED)


ALLOWED_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.IDLE: frozenset({RunState.LOADING}),
    RunState.LOADING: frozenset({RunState.CACHED_REPLAY, RunState.LIVE_TRANSLATION, RunState.FAILED}),
    RunState.CACHED_REPLAY: frozenset({RunState.COMPLETED, RunState.FAILED}),
    RunState.LIVE_TRANSLATION: frozenset({RunState.COMPLETED, RunState.FAILED}),
    RunState.COMPLETED: frozenset(),
    RunState.FAILED: frozenset(),
}


class StepFailure(BaseModel):
    step_index: int  # 0-based
    description: str
    action: Optional[str] = None  # kind + locator of the attempted action
    error_category: str = ""  # TranslationError, ExecutionError, ...
    error_kind: str = ""
    cause: str = ""

    def summary(self) -> str:
        where = f"step {self.step_index + 1} ({self.description!r})"
        attempted = f" while attempting {self.action}" if self.action else ""
        return f"{where} failed{attempted}: {self.error_category}{{{self.error_kind}}} {self.cause}"


class ScenarioResult(BaseModel):
    scenario: str
    state: RunState
    mode: Optional[str] = None  # "cached" | "live"
    steps_total: int = 0
    steps_executed: int = 0
    actions_executed: int = 0
    translator_calls: int = 0
    artifact_path: Optional[str] = None
    failure: Optional[StepFailure] = None
    duration_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        return self.state == RunState.COMPLETED
