"""Executor — resolves an action's locator on the live tree and performs it."""

from __future__ import annotations

import logging

from nlstep.errors import ExecutionError, ExecutionErrorKind, ResolutionError
from nlstep.models.actions import Action, ActionKind
from nlstep.models.semantic_tree import SemanticNode, SemanticTreeSnapshot

from .assertion_checker import check_assertion
from .locator_resolver import resolve
from .ui_adapter import TextReplacementUnsupported, UIAdapter

logger = logging.getLogger(__name__)


class Executor:
    """Runs actions one at a time against a UI adapter.

    Every action resolves against a freshly captured snapshot and is
    followed by a settle wait, so the next capture sees the post-action UI.
    """

    def __init__(self, adapter: UIAdapter):
        self.adapter = adapter

    async def execute(self, action: Action, tree: SemanticTreeSnapshot | None = None) -> None:
        """Perform ``action``. Raises ExecutionError on any failure.

        ``tree`` is the live tree to resolve against; when omitted a fresh
        snapshot is captured after the UI settles.
        """
        logger.debug("Executing %s", action.describe())

        if tree is None:
            tree = await self.capture(action)
        try:
            node = resolve(action.locator, tree)
        except ResolutionError as e:
            raise ExecutionError(
                ExecutionErrorKind.LOCATOR_FAILED,
                f"{e.kind.value}: {e.message}",
                action_kind=action.kind.value,
                cause=e,
            ) from e

        try:
            await self._dispatch(action, node)
        except ExecutionError:
            raise
        except Exception as e:
            raise ExecutionError(
                ExecutionErrorKind.ACTION_FAILED,
                f"Failed to execute {action.kind.value}: {e}",
                action_kind=action.kind.value,
                cause=e,
            ) from e

        try:
            await self.adapter.settle()
        except Exception as e:
            raise ExecutionError(
                ExecutionErrorKind.ACTION_FAILED,
                f"UI did not settle after {action.kind.value}: {e}",
                action_kind=action.kind.value,
                cause=e,
            ) from e

    async def capture(self, action: Action | None = None) -> SemanticTreeSnapshot:
        """Wait for the UI to settle and capture its tree.

        Adapter failures (a closed page, a destroyed context) surface as
        ExecutionError{ActionFailed}.
        """
        try:
            await self.adapter.settle()
            return await self.adapter.capture_snapshot()
        except Exception as e:
            raise ExecutionError(
                ExecutionErrorKind.ACTION_FAILED,
                f"Failed to capture the UI tree: {e}",
                action_kind=action.kind.value if action else None,
                cause=e,
            ) from e

    async def _dispatch(self, action: Action, node: SemanticNode) -> None:
        match action.kind:
            case ActionKind.CLICK:
                await self.adapter.click(node)
            case ActionKind.LONG_CLICK:
                await self.adapter.long_click(node)
            case ActionKind.DOUBLE_CLICK:
                await self.adapter.double_click(node)
            case ActionKind.TYPE_TEXT:
                await self._type_text(node, action.value or "")
            case ActionKind.CLEAR_TEXT:
                await self.adapter.clear_text(node)
            case ActionKind.SCROLL_TO:
                await self.adapter.scroll_to(node)
            case ActionKind.ASSERT_VISIBLE | ActionKind.ASSERT_TEXT | ActionKind.ASSERT_CONTAINS:
                result = await check_assertion(self.adapter, node, action)
                if not result.passed:
                    raise ExecutionError(
                        ExecutionErrorKind.ACTION_FAILED,
                        f"Assertion {action.kind.value} failed: {result.message}",
                        action_kind=action.kind.value,
                    )
                logger.debug("Assertion passed: %s", result.message)

    async def _type_text(self, node: SemanticNode, text: str) -> None:
        try:
            await self.adapter.replace_text(node, text)
        except TextReplacementUnsupported:
            logger.debug("Text replacement unsupported on %s, inserting instead", node.summary())
            await self.adapter.insert_text(node, text)
