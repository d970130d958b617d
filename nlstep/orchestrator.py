"""Scenario orchestrator — cached replay or live translation, step by step."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from nlstep.artifacts.store import ArtifactStore
from nlstep.errors import (
    ArtifactError,
    ConfigurationError,
    ExecutionError,
    NlStepError,
    TranslationError,
)
from nlstep.executor.executor import Executor
from nlstep.executor.ui_adapter import UIAdapter
from nlstep.models.actions import Action
from nlstep.models.artifact import Artifact, Scenario, Step, utc_timestamp
from nlstep.models.run_result import (
    ALLOWED_TRANSITIONS,
    RunState,
    ScenarioResult,
    StepFailure,
)
from nlstep.translator.translator import StepTranslator

logger = logging.getLogger(__name__)


class ScenarioFailedError(AssertionError):
    """Raised by ``run_scenario`` when a run ends in Failed."""

    def __init__(self, result: ScenarioResult):
        message = f"Scenario '{result.scenario}' failed"
        if result.failure:
            message += f": {result.failure.summary()}"
        super().__init__(message)
        self.result = result


class ScenarioRun:
    """State of one run, threaded through the orchestrator loop."""

    def __init__(self, scenario: Scenario):
        self.scenario = scenario
        self.state = RunState.IDLE
        self.mode: Optional[str] = None
        self.steps_executed = 0
        self.actions_executed = 0
        self.translator_calls = 0
        self.artifact_path: Optional[str] = None
        self.failure: Optional[StepFailure] = None
        self.started = time.time()

    def transition(self, new_state: RunState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise ValueError(f"Illegal transition {self.state.value} -> {new_state.value}")
        logger.debug("Scenario '%s': %s -> %s", self.scenario.name, self.state.value, new_state.value)
        self.state = new_state

    def fail(self, failure: StepFailure) -> None:
        self.failure = failure
        self.transition(RunState.FAILED)

    def result(self) -> ScenarioResult:
        return ScenarioResult(
            scenario=self.scenario.name,
            state=self.state,
            mode=self.mode,
            steps_total=len(self.scenario.steps),
            steps_executed=self.steps_executed,
            actions_executed=self.actions_executed,
            translator_calls=self.translator_calls,
            artifact_path=self.artifact_path,
            failure=self.failure,
            duration_seconds=round(time.time() - self.started, 3),
        )


def _failure(index: int, description: str, error: NlStepError, action: Action | None = None) -> StepFailure:
    return StepFailure(
        step_index=index,
        description=description,
        action=action.describe() if action else None,
        error_category=error.category,
        error_kind=error.kind.value,
        cause=error.message,
    )


class Orchestrator:
    """Drives one scenario at a time against a UI adapter."""

    def __init__(
        self,
        adapter: UIAdapter,
        store: ArtifactStore,
        translator: StepTranslator | None = None,
        translator_factory: Callable[[], StepTranslator] | None = None,
        executor: Executor | None = None,
    ):
        self.adapter = adapter
        self.store = store
        self._translator = translator
        self._translator_factory = translator_factory
        self.executor = executor or Executor(adapter)

    def _get_translator(self) -> StepTranslator:
        """The translator, built on first use. Raises ConfigurationError if unavailable."""
        if self._translator is None:
            if self._translator_factory is None:
                raise ConfigurationError("Live translation needed but no translator is configured")
            self._translator = self._translator_factory()
        return self._translator

    def run(self, scenario: Scenario) -> ScenarioResult:
        """Run a scenario to a terminal state."""
        return asyncio.run(self.run_async(scenario))

    async def run_async(self, scenario: Scenario) -> ScenarioResult:
        run = ScenarioRun(scenario)
        logger.info("Scenario '%s' (%d steps)", scenario.name, len(scenario.steps))

        run.transition(RunState.LOADING)
        artifact = self.store.load(scenario.name)

        if artifact is not None and self.store.is_valid(artifact, scenario.steps):
            logger.info("Using cached artifact for '%s'", scenario.name)
            run.transition(RunState.CACHED_REPLAY)
            run.mode = "cached"
            run.artifact_path = str(self.store.path_for(scenario.name))
            await self._replay(run, artifact)
        else:
            if artifact is not None:
                logger.info("Artifact for '%s' is outdated, regenerating", scenario.name)
            else:
                logger.info("No artifact for '%s', generating", scenario.name)
            translator = self._get_translator()
            run.transition(RunState.LIVE_TRANSLATION)
            run.mode = "live"
            await self._translate_live(run, translator)

        if run.state == RunState.FAILED:
            logger.error("Scenario '%s' failed: %s", scenario.name, run.failure.summary())
        else:
            logger.info("Scenario '%s' completed (%s)", scenario.name, run.mode)
        return run.result()

    async def _execute_actions(
        self, run: ScenarioRun, index: int, description: str, actions: list[Action],
    ) -> Optional[StepFailure]:
        for action in actions:
            try:
                await self.executor.execute(action)
            except ExecutionError as e:
                return _failure(index, description, e, action)
            run.actions_executed += 1
        return None

    async def _replay(self, run: ScenarioRun, artifact: Artifact) -> None:
        total = len(artifact.steps)
        for index, step in enumerate(artifact.steps):
            logger.info("[%d/%d] %s", index + 1, total, step.description)
            failure = await self._execute_actions(run, index, step.description, step.actions)
            if failure is not None:
                run.fail(failure)
                return
            run.steps_executed += 1
        run.transition(RunState.COMPLETED)

    async def _translate_live(self, run: ScenarioRun, translator: StepTranslator) -> None:
        steps = run.scenario.steps
        generated: list[Step] = []

        for index, description in enumerate(steps):
            logger.info("[%d/%d] %s", index + 1, len(steps), description)
            try:
                snapshot = await self.executor.capture()
            except ExecutionError as e:
                run.fail(_failure(index, description, e))
                return

            run.translator_calls += 1
            try:
                actions = translator.translate(description, snapshot)
            except TranslationError as e:
                run.fail(_failure(index, description, e))
                return

            failure = await self._execute_actions(run, index, description, actions)
            if failure is not None:
                run.fail(failure)
                return
            run.steps_executed += 1
            generated.append(Step(description=description, actions=actions))

        artifact = Artifact(test_name=run.scenario.name, created_at=utc_timestamp(), steps=generated)
        try:
            path = self.store.save(run.scenario.name, artifact)
        except ArtifactError as e:
            run.fail(_failure(len(steps) - 1, steps[-1] if steps else "", e))
            return
        run.artifact_path = str(path)
        run.transition(RunState.COMPLETED)


def run_scenario(
    scenario: Scenario,
    adapter: UIAdapter,
    store: ArtifactStore,
    translator: StepTranslator | None = None,
    translator_factory: Callable[[], StepTranslator] | None = None,
) -> ScenarioResult:
    """Run a scenario and raise ScenarioFailedError unless it completes."""
    orchestrator = Orchestrator(
        adapter, store, translator=translator, translator_factory=translator_factory,
    )
    result = orchestrator.run(scenario)
    if not result.passed:
        raise ScenarioFailedError(result)
    return result
