"""Semantic tree snapshot — a captured accessibility tree of the running UI."""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Iterator, Optional

from pydantic import BaseModel, Field, PrivateAttr

from .hierarchy import ROOT_MARKER, HierarchySegment, format_hierarchy_path


class Bounds(BaseModel):
    left: float = 0
    top: float = 0
    right: float = 0
    bottom: float = 0


class SemanticNode(BaseModel):
    node_id: int
    role: str = "Node"  # segment name used in hierarchy paths
    tag: Optional[str] = None  # stable test tag
    text: Optional[str] = None
    description: Optional[str] = None  # accessibility description
    bounds: Optional[Bounds] = None
    children: list[SemanticNode] = Field(default_factory=list)
    parent_id: Optional[int] = None  # non-owning back-reference

    def summary(self) -> str:
        parts = [f"{self.role} #{self.node_id}"]
        if self.tag is not None:
            parts.append(f"tag={json.dumps(self.tag)}")
        if self.text is not None:
            parts.append(f"text={json.dumps(self.text)}")
        if self.description is not None:
            parts.append(f"description={json.dumps(self.description)}")
        return " ".join(parts)


class SemanticTreeSnapshot(BaseModel):
    """Immutable capture of one UI state.

    The snapshot owns every node through ``root.children``; parents are
    looked up by id through an index built once at construction.
    """

    root: SemanticNode
    captured_at: str = Field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))

    _index: dict[int, SemanticNode] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        index: dict[int, SemanticNode] = {}
        self.root.parent_id = None
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.node_id in index:
                raise ValueError(f"Duplicate node id {node.node_id} in snapshot")
            index[node.node_id] = node
            for child in node.children:
                child.parent_id = node.node_id
                stack.append(child)
        self._index = index

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], captured_at: Optional[str] = None) -> "SemanticTreeSnapshot":
        """Build a snapshot from a nested mapping of nodes.

        Nodes without an ``id``/``node_id`` are numbered in pre-order.
        ``bounds`` may be a mapping or a ``[left, top, right, bottom]`` list.
        """
        counter = [0]

        def _build(raw: dict[str, Any]) -> SemanticNode:
            node_id = raw.get("node_id", raw.get("id"))
            if node_id is None:
                node_id = counter[0]
            counter[0] = max(counter[0], int(node_id)) + 1

            bounds = raw.get("bounds")
            if isinstance(bounds, (list, tuple)) and len(bounds) == 4:
                bounds = Bounds(left=bounds[0], top=bounds[1], right=bounds[2], bottom=bounds[3])

            node = SemanticNode(
                node_id=int(node_id),
                role=raw.get("role") or "Node",
                tag=raw.get("tag"),
                text=raw.get("text"),
                description=raw.get("description"),
                bounds=bounds,
            )
            node.children = [_build(child) for child in raw.get("children", [])]
            return node

        root = _build(data)
        if captured_at:
            return cls(root=root, captured_at=captured_at)
        return cls(root=root)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def node(self, node_id: int) -> Optional[SemanticNode]:
        return self._index.get(node_id)

    def parent_of(self, node: SemanticNode) -> Optional[SemanticNode]:
        if node.parent_id is None:
            return None
        return self._index.get(node.parent_id)

    def iter_nodes(self) -> Iterator[SemanticNode]:
        """Yield every node in pre-order (document order)."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_all(self, predicate: Callable[[SemanticNode], bool]) -> list[SemanticNode]:
        return [n for n in self.iter_nodes() if predicate(n)]

    def __len__(self) -> int:
        return len(self._index)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> str:
        """Deterministic textual rendering used in prompts and cache keys."""
        lines: list[str] = []

        def _walk(node: SemanticNode, segments: list[HierarchySegment], depth: int) -> None:
            parts = [f"{'  ' * depth}{node.summary()}", f"path={format_hierarchy_path(segments)}"]
            if node.bounds is not None:
                b = node.bounds
                parts.append(f"bounds=({b.left:g}, {b.top:g}, {b.right:g}, {b.bottom:g})")
            lines.append(" ".join(parts))
            for i, child in enumerate(node.children):
                _walk(child, segments + [HierarchySegment(child.role, i)], depth + 1)

        _walk(self.root, [HierarchySegment(ROOT_MARKER)], 0)
        return "\n".join(lines)
