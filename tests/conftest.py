"""Pytest configuration and shared fixtures."""

import copy
import json
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from nlstep.artifacts.store import ArtifactStore
from nlstep.errors import BackendError
from nlstep.executor.ui_adapter import TextReplacementUnsupported
from nlstep.models.semantic_tree import SemanticNode, SemanticTreeSnapshot


# ============================================================================
# Screens
# ============================================================================

TEXT_FIELD_ID = 1
SUBMIT_BUTTON_ID = 2
RESULT_LABEL_ID = 3
RESULT_PREFIX = "Last submitted: "


def build_form_screen() -> dict[str, Any]:
    """A text field, a submit button and a label echoing the last submission."""
    return {
        "id": 0,
        "role": "Column",
        "bounds": [0, 0, 400, 800],
        "children": [
            {"id": TEXT_FIELD_ID, "role": "TextField", "tag": "textField", "text": "",
             "bounds": [10, 10, 390, 60]},
            {"id": SUBMIT_BUTTON_ID, "role": "Button", "tag": "submitButton", "text": "Submit",
             "bounds": [10, 70, 200, 120]},
            {"id": RESULT_LABEL_ID, "role": "Text", "text": RESULT_PREFIX,
             "bounds": [10, 130, 390, 160]},
        ],
    }


def build_list_screen() -> dict[str, Any]:
    """Two rows sharing the same 'Delete' text, distinguishable only by position."""
    return {
        "id": 0,
        "role": "Column",
        "children": [
            {"id": 1, "role": "Text", "text": "Inbox", "description": "Inbox header"},
            {
                "id": 2,
                "role": "List",
                "children": [
                    {"id": 3, "role": "Row", "children": [
                        {"id": 4, "role": "Text", "text": "First"},
                        {"id": 5, "role": "Button", "text": "Delete"},
                    ]},
                    {"id": 6, "role": "Row", "children": [
                        {"id": 7, "role": "Text", "text": "Second"},
                        {"id": 8, "role": "Button", "text": "Delete"},
                    ]},
                ],
            },
        ],
    }


# ============================================================================
# Fakes
# ============================================================================


class FakeUIAdapter:
    """In-memory UI: a mutable node dict captured into fresh snapshots."""

    def __init__(self, screen: dict[str, Any], on_click: Optional[dict[int, Callable]] = None):
        self.screen = copy.deepcopy(screen)
        self.on_click = on_click or {}
        self.log: list[tuple] = []
        self.hidden: set[int] = set()
        self.read_only: set[int] = set()
        self.settle_count = 0
        self.capture_count = 0

    def raw(self, node_id: int) -> dict[str, Any]:
        stack = [self.screen]
        while stack:
            node = stack.pop()
            if node.get("id") == node_id:
                return node
            stack.extend(node.get("children", []))
        raise KeyError(node_id)

    async def capture_snapshot(self) -> SemanticTreeSnapshot:
        self.capture_count += 1
        return SemanticTreeSnapshot.from_dict(copy.deepcopy(self.screen))

    async def settle(self) -> None:
        self.settle_count += 1

    async def click(self, node: SemanticNode) -> None:
        self.log.append(("click", node.node_id))
        handler = self.on_click.get(node.node_id)
        if handler:
            handler(self)

    async def long_click(self, node: SemanticNode) -> None:
        self.log.append(("longClick", node.node_id))

    async def double_click(self, node: SemanticNode) -> None:
        self.log.append(("doubleClick", node.node_id))

    async def replace_text(self, node: SemanticNode, text: str) -> None:
        if node.node_id in self.read_only:
            raise TextReplacementUnsupported(f"node {node.node_id} is read-only")
        self.raw(node.node_id)["text"] = text
        self.log.append(("replaceText", node.node_id, text))

    async def insert_text(self, node: SemanticNode, text: str) -> None:
        raw = self.raw(node.node_id)
        raw["text"] = (raw.get("text") or "") + text
        self.log.append(("insertText", node.node_id, text))

    async def clear_text(self, node: SemanticNode) -> None:
        self.raw(node.node_id)["text"] = ""
        self.log.append(("clearText", node.node_id))

    async def scroll_to(self, node: SemanticNode) -> None:
        self.log.append(("scrollTo", node.node_id))

    async def is_displayed(self, node: SemanticNode) -> bool:
        return node.node_id not in self.hidden

    async def read_text(self, node: SemanticNode) -> str:
        return self.raw(node.node_id).get("text") or ""


def _submit_form(adapter: FakeUIAdapter) -> None:
    entered = adapter.raw(TEXT_FIELD_ID).get("text") or ""
    adapter.raw(RESULT_LABEL_ID)["text"] = f"{RESULT_PREFIX}{entered}"


class ScriptedBackend:
    """Language-model backend replaying canned responses in order.

    Items may be a dict (sent as JSON), a raw string, or an exception to raise.
    """

    name = "scripted"
    model = "scripted-model"

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def complete(self, system_prompt: str, user_message: str) -> str:
        self.calls.append((system_prompt, user_message))
        if not self.responses:
            raise BackendError("No scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            return json.dumps(item)
        return item


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def form_screen() -> dict[str, Any]:
    return build_form_screen()


@pytest.fixture
def form_snapshot(form_screen: dict[str, Any]) -> SemanticTreeSnapshot:
    return SemanticTreeSnapshot.from_dict(form_screen)


@pytest.fixture
def list_snapshot() -> SemanticTreeSnapshot:
    return SemanticTreeSnapshot.from_dict(build_list_screen())


@pytest.fixture
def form_adapter(form_screen: dict[str, Any]) -> FakeUIAdapter:
    """Form screen where clicking submit echoes the text field into the label."""
    return FakeUIAdapter(form_screen, on_click={SUBMIT_BUTTON_ID: _submit_form})


@pytest.fixture
def make_adapter() -> Callable[..., FakeUIAdapter]:
    return FakeUIAdapter


@pytest.fixture
def make_form_adapter() -> Callable[[], FakeUIAdapter]:
    def _make() -> FakeUIAdapter:
        return FakeUIAdapter(build_form_screen(), on_click={SUBMIT_BUTTON_ID: _submit_form})
    return _make


@pytest.fixture
def make_backend() -> Callable[..., ScriptedBackend]:
    return ScriptedBackend


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    return tmp_path / "artifacts"


@pytest.fixture
def store(artifacts_dir: Path) -> ArtifactStore:
    return ArtifactStore(artifacts_dir)


@pytest.fixture
def e2e_steps() -> list[str]:
    return [
        "Type text 'Hello World'",
        "Click button",
        "Verify text 'Last submitted: Hello World'",
    ]


@pytest.fixture
def e2e_responses() -> list[dict[str, Any]]:
    """What a well-behaved model answers for the three form steps."""
    return [
        {"status": "OK", "actions": [
            {"action": "typeText", "value": "Hello World",
             "locator": {"strategy": "stableTag", "value": "textField"}},
        ]},
        {"status": "OK", "actions": [
            {"action": "click", "value": None,
             "locator": {"strategy": "stableTag", "value": "submitButton"}},
        ]},
        {"status": "OK", "actions": [
            {"action": "assertText", "value": "Last submitted: Hello World",
             "locator": {"strategy": "text", "value": "Last submitted: Hello World"}},
        ]},
    ]
