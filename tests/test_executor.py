"""Tests for the executor and assertion checker."""

from unittest.mock import AsyncMock

import pytest

from nlstep.errors import ExecutionError, ExecutionErrorKind, ResolutionError, ResolutionErrorKind
from nlstep.executor.assertion_checker import check_assertion
from nlstep.executor.executor import Executor
from nlstep.models.actions import Action, ActionKind, Locator, LocatorStrategy


def _action(kind: ActionKind, strategy: LocatorStrategy, target: str, value: str | None = None) -> Action:
    return Action(kind=kind, value=value, locator=Locator(strategy=strategy, value=target))


TAG = LocatorStrategy.STABLE_TAG
TEXT = LocatorStrategy.TEXT


@pytest.mark.asyncio
class TestExecutor:
    """Tests for Executor.execute."""

    async def test_click(self, form_adapter):
        await Executor(form_adapter).execute(_action(ActionKind.CLICK, TAG, "submitButton"))
        assert form_adapter.log == [("click", 2)]

    async def test_settles_before_and_after(self, form_adapter):
        await Executor(form_adapter).execute(_action(ActionKind.CLICK, TAG, "submitButton"))
        assert form_adapter.settle_count == 2
        assert form_adapter.capture_count == 1

    async def test_given_tree_skips_capture(self, form_adapter, form_snapshot):
        await Executor(form_adapter).execute(_action(ActionKind.CLICK, TAG, "submitButton"), form_snapshot)
        assert form_adapter.capture_count == 0
        assert form_adapter.settle_count == 1

    @pytest.mark.parametrize("kind, entry", [
        (ActionKind.LONG_CLICK, ("longClick", 2)),
        (ActionKind.DOUBLE_CLICK, ("doubleClick", 2)),
        (ActionKind.SCROLL_TO, ("scrollTo", 2)),
    ])
    async def test_gestures(self, form_adapter, kind, entry):
        await Executor(form_adapter).execute(_action(kind, TAG, "submitButton"))
        assert form_adapter.log == [entry]

    async def test_type_text_replaces(self, form_adapter):
        form_adapter.raw(1)["text"] = "old"
        await Executor(form_adapter).execute(_action(ActionKind.TYPE_TEXT, TAG, "textField", "Hello"))
        assert form_adapter.raw(1)["text"] == "Hello"
        assert form_adapter.log == [("replaceText", 1, "Hello")]

    async def test_type_text_falls_back_to_insert(self, form_adapter):
        form_adapter.read_only.add(1)
        form_adapter.raw(1)["text"] = "ab"
        await Executor(form_adapter).execute(_action(ActionKind.TYPE_TEXT, TAG, "textField", "c"))
        assert form_adapter.raw(1)["text"] == "abc"
        assert form_adapter.log == [("insertText", 1, "c")]

    async def test_clear_text(self, form_adapter):
        form_adapter.raw(1)["text"] = "something"
        await Executor(form_adapter).execute(_action(ActionKind.CLEAR_TEXT, TAG, "textField"))
        assert form_adapter.raw(1)["text"] == ""

    async def test_resolves_against_fresh_snapshot(self, form_adapter):
        executor = Executor(form_adapter)
        await executor.execute(_action(ActionKind.TYPE_TEXT, TAG, "textField", "Hi"))
        await executor.execute(_action(ActionKind.CLICK, TAG, "submitButton"))
        await executor.execute(_action(ActionKind.ASSERT_TEXT, TEXT, "Last submitted: Hi", "Last submitted: Hi"))

    async def test_locator_not_found(self, form_adapter):
        with pytest.raises(ExecutionError) as exc_info:
            await Executor(form_adapter).execute(_action(ActionKind.CLICK, TAG, "missing"))
        error = exc_info.value
        assert error.kind == ExecutionErrorKind.LOCATOR_FAILED
        assert error.action_kind == "click"
        assert isinstance(error.cause, ResolutionError)
        assert error.cause.kind == ResolutionErrorKind.NOT_FOUND
        assert form_adapter.log == []

    async def test_ambiguous_locator(self, make_adapter):
        adapter = make_adapter({"id": 0, "children": [
            {"id": 1, "role": "Button", "text": "OK"},
            {"id": 2, "role": "Button", "text": "OK"},
        ]})
        with pytest.raises(ExecutionError) as exc_info:
            await Executor(adapter).execute(_action(ActionKind.CLICK, TEXT, "OK"))
        assert exc_info.value.kind == ExecutionErrorKind.LOCATOR_FAILED
        assert exc_info.value.message.startswith("Ambiguous")

    async def test_adapter_failure_is_action_failed(self, form_adapter):
        form_adapter.click = AsyncMock(side_effect=RuntimeError("detached"))
        with pytest.raises(ExecutionError) as exc_info:
            await Executor(form_adapter).execute(_action(ActionKind.CLICK, TAG, "submitButton"))
        assert exc_info.value.kind == ExecutionErrorKind.ACTION_FAILED
        assert "detached" in exc_info.value.message
        assert isinstance(exc_info.value.cause, RuntimeError)

    async def test_capture_failure_is_action_failed(self, form_adapter):
        form_adapter.capture_snapshot = AsyncMock(side_effect=RuntimeError("execution context destroyed"))
        with pytest.raises(ExecutionError) as exc_info:
            await Executor(form_adapter).execute(_action(ActionKind.CLICK, TAG, "submitButton"))
        assert exc_info.value.kind == ExecutionErrorKind.ACTION_FAILED
        assert exc_info.value.action_kind == "click"
        assert form_adapter.log == []

    async def test_settle_failure_after_action_is_action_failed(self, form_adapter):
        form_adapter.settle = AsyncMock(side_effect=[None, RuntimeError("page closed")])
        with pytest.raises(ExecutionError) as exc_info:
            await Executor(form_adapter).execute(_action(ActionKind.CLICK, TAG, "submitButton"))
        assert exc_info.value.kind == ExecutionErrorKind.ACTION_FAILED
        assert "page closed" in exc_info.value.message
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert form_adapter.log == [("click", 2)]

    async def test_failed_assertion(self, form_adapter):
        with pytest.raises(ExecutionError) as exc_info:
            await Executor(form_adapter).execute(
                _action(ActionKind.ASSERT_CONTAINS, TAG, "submitButton", "Cancel"),
            )
        assert exc_info.value.kind == ExecutionErrorKind.ACTION_FAILED
        assert exc_info.value.action_kind == "assertContains"

    async def test_assert_visible(self, form_adapter):
        executor = Executor(form_adapter)
        await executor.execute(_action(ActionKind.ASSERT_VISIBLE, TAG, "submitButton"))
        form_adapter.hidden.add(2)
        with pytest.raises(ExecutionError):
            await executor.execute(_action(ActionKind.ASSERT_VISIBLE, TAG, "submitButton"))


@pytest.mark.asyncio
class TestCheckAssertion:
    """Tests for check_assertion."""

    async def _check(self, adapter, snapshot, kind, node_id, value=None):
        action = _action(kind, TAG, "unused", value)
        return await check_assertion(adapter, snapshot.node(node_id), action)

    async def test_text_equals(self, form_adapter, form_snapshot):
        result = await self._check(form_adapter, form_snapshot, ActionKind.ASSERT_TEXT, 2, "Submit")
        assert result.passed is True

    async def test_text_mismatch(self, form_adapter, form_snapshot):
        result = await self._check(form_adapter, form_snapshot, ActionKind.ASSERT_TEXT, 2, "Send")
        assert result.passed is False
        assert "'Submit'" in result.message

    @pytest.mark.parametrize("actual", ["  Submit ", "Submit\n", "submit"])
    async def test_text_equals_is_exact(self, form_adapter, form_snapshot, actual):
        form_adapter.raw(2)["text"] = actual
        result = await self._check(form_adapter, form_snapshot, ActionKind.ASSERT_TEXT, 2, "Submit")
        assert result.passed is False

    async def test_multiline_text(self, form_adapter, form_snapshot):
        form_adapter.raw(3)["text"] = "Total: 3\nPaid: yes"
        result = await self._check(form_adapter, form_snapshot, ActionKind.ASSERT_TEXT, 3, "Total: 3\nPaid: yes")
        assert result.passed is True

    async def test_contains(self, form_adapter, form_snapshot):
        result = await self._check(form_adapter, form_snapshot, ActionKind.ASSERT_CONTAINS, 3, "submitted")
        assert result.passed is True

    async def test_contains_is_case_sensitive(self, form_adapter, form_snapshot):
        result = await self._check(form_adapter, form_snapshot, ActionKind.ASSERT_CONTAINS, 3, "SUBMITTED")
        assert result.passed is False

    async def test_visible(self, form_adapter, form_snapshot):
        form_adapter.hidden.add(1)
        assert (await self._check(form_adapter, form_snapshot, ActionKind.ASSERT_VISIBLE, 2)).passed
        assert not (await self._check(form_adapter, form_snapshot, ActionKind.ASSERT_VISIBLE, 1)).passed

    async def test_non_assertion(self, form_adapter, form_snapshot):
        result = await self._check(form_adapter, form_snapshot, ActionKind.CLICK, 2)
        assert result.passed is False
