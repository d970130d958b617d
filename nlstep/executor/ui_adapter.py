"""UI adapter capability consumed by the executor and orchestrator."""

from __future__ import annotations

from typing import Protocol

from nlstep.models.semantic_tree import SemanticNode, SemanticTreeSnapshot


class TextReplacementUnsupported(Exception):
    """The target node cannot have its whole text replaced."""


class UIAdapter(Protocol):
    """Primitive operations against one running UI.

    Nodes passed in always come from the most recent ``capture_snapshot``.
    """

    async def capture_snapshot(self) -> SemanticTreeSnapshot:
        ...

    async def settle(self) -> None:
        """Wait until the UI is idle."""
        ...

    async def click(self, node: SemanticNode) -> None:
        ...

    async def long_click(self, node: SemanticNode) -> None:
        ...

    async def double_click(self, node: SemanticNode) -> None:
        ...

    async def replace_text(self, node: SemanticNode, text: str) -> None:
        """Replace the node's whole text; raise TextReplacementUnsupported if impossible."""
        ...

    async def insert_text(self, node: SemanticNode, text: str) -> None:
        ...

    async def clear_text(self, node: SemanticNode) -> None:
        ...

    async def scroll_to(self, node: SemanticNode) -> None:
        ...

    async def is_displayed(self, node: SemanticNode) -> bool:
        ...

    async def read_text(self, node: SemanticNode) -> str:
        ...
