"""Assertion checker — evaluates assertion actions against a resolved node."""

from __future__ import annotations

import logging

from nlstep.models.actions import Action, ActionKind
from nlstep.models.semantic_tree import SemanticNode

from .ui_adapter import UIAdapter

logger = logging.getLogger(__name__)


class AssertionResult:
    def __init__(self, passed: bool, message: str = ""):
        self.passed = passed
        self.message = message

    def __repr__(self) -> str:
        return f"AssertionResult(passed={self.passed}, message={self.message!r})"


async def check_assertion(adapter: UIAdapter, node: SemanticNode, action: Action) -> AssertionResult:
    """Evaluate a single assertion action and return the result."""
    logger.debug("Checking assertion: %s", action.kind.value)
    match action.kind:
        case ActionKind.ASSERT_VISIBLE:
            return await _check_visible(adapter, node)
        case ActionKind.ASSERT_TEXT:
            return await _check_text_equals(adapter, node, action.value or "")
        case ActionKind.ASSERT_CONTAINS:
            return await _check_text_contains(adapter, node, action.value or "")
        case _:
            return AssertionResult(False, f"Not an assertion: {action.kind.value}")


async def _check_visible(adapter: UIAdapter, node: SemanticNode) -> AssertionResult:
    if await adapter.is_displayed(node):
        return AssertionResult(True, f"{node.summary()} is displayed")
    return AssertionResult(False, f"{node.summary()} is not displayed")


async def _check_text_equals(adapter: UIAdapter, node: SemanticNode, expected: str) -> AssertionResult:
    actual = await adapter.read_text(node)
    if actual == expected:
        return AssertionResult(True, f"Text equals {expected!r}")
    return AssertionResult(False, f"Expected text {expected!r}, got {actual!r}")


async def _check_text_contains(adapter: UIAdapter, node: SemanticNode, expected: str) -> AssertionResult:
    actual = await adapter.read_text(node)
    if expected in actual:
        return AssertionResult(True, f"Text contains {expected!r}")
    return AssertionResult(False, f"Expected text containing {expected!r}, got {actual!r}")
