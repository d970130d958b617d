"""Translator — natural-language step + semantic tree -> ordered actions."""

from __future__ import annotations

import logging
from typing import Protocol

from nlstep.ai.backends import LanguageModelBackend
from nlstep.ai.parsing import parse_json_response
from nlstep.ai.prompts.translation import TRANSLATION_SYSTEM_PROMPT, build_translation_prompt
from nlstep.errors import (
    BackendError,
    ResolutionError,
    ResolutionErrorKind,
    TranslationError,
    TranslationErrorKind,
)
from nlstep.executor.locator_resolver import choose_stable_locator, find_matches
from nlstep.models.actions import Action, LocatorStrategy
from nlstep.models.semantic_tree import SemanticTreeSnapshot

from .schema_validator import parse_translation_response

logger = logging.getLogger(__name__)

# Strategies the model's choice may be upgraded to. HierarchyPath vs Text
# is left as the model chose it.
_UPGRADE_STRATEGIES = (LocatorStrategy.STABLE_TAG, LocatorStrategy.ACCESSIBILITY_DESCRIPTION)


class StepTranslator(Protocol):
    """Anything that can turn a step and a snapshot into actions."""

    def translate(self, step: str, snapshot: SemanticTreeSnapshot) -> list[Action]:
        ...


class RenderedStepTranslator(StepTranslator, Protocol):
    """A translator that can also work from an already-rendered hierarchy."""

    def translate_rendered(self, step: str, screen_hierarchy: str) -> list[Action]:
        ...


def stabilize_locators(actions: list[Action], snapshot: SemanticTreeSnapshot) -> list[Action]:
    """Check each locator against the snapshot and apply the stability policy.

    Ambiguous locators raise TranslationError{AmbiguousMatch}. A locator
    matching one node is upgraded to a unique stableTag or
    accessibilityDescription of that node when it is not already one.
    Locators matching nothing are kept: a later action of the same step may
    target a node that only appears after an earlier one.
    """
    result: list[Action] = []
    for action in actions:
        locator = action.locator
        try:
            matches = find_matches(locator, snapshot)
        except ResolutionError as e:
            if e.kind == ResolutionErrorKind.INVALID_PATH:
                logger.debug("Locator %s not resolvable in snapshot: %s", locator.describe(), e.message)
                result.append(action)
                continue
            raise

        if len(matches) > 1:
            raise TranslationError(
                TranslationErrorKind.AMBIGUOUS_MATCH,
                f"{len(matches)} nodes match {locator.describe()} for {action.kind.value}",
            )
        if not matches:
            logger.debug("Locator %s has no match in the current snapshot", locator.describe())
            result.append(action)
            continue

        best = choose_stable_locator(matches[0], snapshot, _UPGRADE_STRATEGIES)
        if best is not None and best.priority < locator.priority:
            logger.info("Upgrading locator %s -> %s", locator.describe(), best.describe())
            best.rationale = (
                f"{best.strategy.value} is present on the target node and unique; "
                f"preferred over {locator.strategy.value}"
            )
            action = action.model_copy(update={"locator": best})
        result.append(action)
    return result


class Translator:
    """Translates steps through a language-model backend.

    Holds no cache; wrap it in ``CachingTranslator`` for memoization.
    """

    def __init__(self, backend: LanguageModelBackend):
        self.backend = backend
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def translate(self, step: str, snapshot: SemanticTreeSnapshot) -> list[Action]:
        actions = self.translate_rendered(step, snapshot.render())
        return stabilize_locators(actions, snapshot)

    def translate_rendered(self, step: str, screen_hierarchy: str) -> list[Action]:
        """Ask the backend for the actions of ``step``. Raises TranslationError."""
        self._call_count += 1
        logger.info("Translating step: %s", step)
        prompt = build_translation_prompt(step, screen_hierarchy)

        try:
            text = self.backend.complete(TRANSLATION_SYSTEM_PROMPT, prompt)
        except BackendError as e:
            raise TranslationError(TranslationErrorKind.BACKEND_ERROR, str(e)) from e

        try:
            data = parse_json_response(text)
        except ValueError as e:
            raise TranslationError(TranslationErrorKind.BACKEND_ERROR, str(e)) from e

        actions = parse_translation_response(data)
        logger.info("-> %s", "; ".join(a.describe() for a in actions) or "no actions")
        return actions
