"""Locator resolution against a semantic tree snapshot.

Strategy semantics:
- stableTag / accessibilityDescription / text: every node whose field equals
  the locator value exactly; resolution succeeds only on a single match.
- hierarchyPath: positional walk from the root, one child index per segment.
  Segment names are informational and never compared.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from nlstep.errors import ResolutionError, ResolutionErrorKind
from nlstep.models.actions import STRATEGY_PRIORITY, Locator, LocatorStrategy
from nlstep.models.hierarchy import (
    ROOT_MARKER,
    HierarchySegment,
    format_hierarchy_path,
    parse_hierarchy_path,
)
from nlstep.models.semantic_tree import SemanticNode, SemanticTreeSnapshot

logger = logging.getLogger(__name__)


def _field_for(strategy: LocatorStrategy, node: SemanticNode) -> Optional[str]:
    if strategy == LocatorStrategy.STABLE_TAG:
        return node.tag
    if strategy == LocatorStrategy.ACCESSIBILITY_DESCRIPTION:
        return node.description
    if strategy == LocatorStrategy.TEXT:
        return node.text
    return None


def find_matches(locator: Locator, tree: SemanticTreeSnapshot) -> list[SemanticNode]:
    """All nodes matching the locator. HierarchyPath yields at most one node."""
    if locator.strategy == LocatorStrategy.HIERARCHY_PATH:
        return [resolve_hierarchy_path(locator.value, tree)]
    return tree.find_all(lambda n: _field_for(locator.strategy, n) == locator.value)


def resolve(locator: Locator, tree: SemanticTreeSnapshot) -> SemanticNode:
    """Resolve a locator to exactly one node or raise ResolutionError."""
    matches = find_matches(locator, tree)
    if not matches:
        raise ResolutionError(
            ResolutionErrorKind.NOT_FOUND,
            f"No node matches {locator.describe()}",
        )
    if len(matches) > 1:
        ids = ", ".join(f"#{n.node_id}" for n in matches[:5])
        raise ResolutionError(
            ResolutionErrorKind.AMBIGUOUS,
            f"{len(matches)} nodes match {locator.describe()} ({ids})",
        )
    logger.debug("Resolved %s -> %s", locator.describe(), matches[0].summary())
    return matches[0]


def resolve_hierarchy_path(raw_path: str, tree: SemanticTreeSnapshot) -> SemanticNode:
    """Walk the tree by sibling indices. Raises ResolutionError{InvalidPath}."""
    try:
        segments = parse_hierarchy_path(raw_path)
    except ValueError as e:
        raise ResolutionError(ResolutionErrorKind.INVALID_PATH, str(e)) from e

    if not segments:
        raise ResolutionError(ResolutionErrorKind.INVALID_PATH, "Hierarchy path cannot be empty")
    if segments[0].name.lower() != ROOT_MARKER.lower():
        raise ResolutionError(
            ResolutionErrorKind.INVALID_PATH,
            f"Hierarchy path must start with '{ROOT_MARKER}': {raw_path}",
        )

    current = tree.root
    for depth, segment in enumerate(segments[1:], start=1):
        if segment.index is None:
            raise ResolutionError(
                ResolutionErrorKind.INVALID_PATH,
                f"Segment '{segment.name}' at depth {depth} lacks a sibling index: {raw_path}",
            )
        if segment.index >= len(current.children):
            raise ResolutionError(
                ResolutionErrorKind.INVALID_PATH,
                f"Index {segment.index} out of range at depth {depth} "
                f"({len(current.children)} children): {raw_path}",
            )
        current = current.children[segment.index]
    return current


def compute_hierarchy_indices(node: SemanticNode, tree: SemanticTreeSnapshot) -> list[int]:
    """Sibling indices from the root down to ``node``.

    Returns an empty list for the root and when the node cannot be located
    by identity under its parent.
    """
    indices: list[int] = []
    current = node
    while True:
        parent = tree.parent_of(current)
        if parent is None:
            if current.node_id != tree.root.node_id:
                return []
            break
        index = next(
            (i for i, child in enumerate(parent.children) if child.node_id == current.node_id),
            -1,
        )
        if index == -1:
            return []
        indices.append(index)
        current = parent
    indices.reverse()
    return indices


def compute_hierarchy_path(node: SemanticNode, tree: SemanticTreeSnapshot) -> Optional[str]:
    """The ``Root>Role[i]>...`` path for ``node``, or None when unresolved."""
    if node.node_id == tree.root.node_id:
        return ROOT_MARKER
    indices = compute_hierarchy_indices(node, tree)
    if not indices:
        return None

    segments = [HierarchySegment(ROOT_MARKER)]
    current = tree.root
    for index in indices:
        current = current.children[index]
        segments.append(HierarchySegment(current.role, index))
    return format_hierarchy_path(segments)


def _is_unique(strategy: LocatorStrategy, value: str, tree: SemanticTreeSnapshot) -> bool:
    return len(tree.find_all(lambda n: _field_for(strategy, n) == value)) == 1


def choose_stable_locator(
    node: SemanticNode,
    tree: SemanticTreeSnapshot,
    strategies: Iterable[LocatorStrategy] = STRATEGY_PRIORITY,
) -> Optional[Locator]:
    """Most stable locator, among ``strategies``, that is present on the node
    and unambiguous in the tree. Strategies are tried in priority order."""
    allowed = set(strategies)
    for strategy in STRATEGY_PRIORITY:
        if strategy not in allowed:
            continue
        if strategy == LocatorStrategy.HIERARCHY_PATH:
            path = compute_hierarchy_path(node, tree)
            if path:
                return Locator(strategy=strategy, value=path)
            continue
        value = _field_for(strategy, node)
        if value is not None and value != "" and _is_unique(strategy, value, tree):
            return Locator(strategy=strategy, value=value)
    return None
