"""Hierarchy path syntax: ``Root>Container[2]>Row[0]>Button[1]``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

ROOT_MARKER = "Root"
SEGMENT_SEPARATOR = ">"

_SEGMENT_RE = re.compile(r"^([^\[\]>]+?)(\[(\d+)\])?$")


@dataclass(frozen=True)
class HierarchySegment:
    name: str
    index: Optional[int] = None

    def __str__(self) -> str:
        if self.index is None:
            return self.name
        return f"{self.name}[{self.index}]"


def parse_hierarchy_path(raw_path: str) -> list[HierarchySegment]:
    """Split a path into segments. Raises ValueError on malformed segments.

    Only the syntax is checked here; see ``validate_hierarchy_path`` for the
    root-marker and sibling-index rules.
    """
    if not raw_path or not raw_path.strip():
        return []

    segments: list[HierarchySegment] = []
    for part in raw_path.strip().split(SEGMENT_SEPARATOR):
        trimmed = part.strip()
        if not trimmed:
            continue
        match = _SEGMENT_RE.match(trimmed)
        if not match:
            raise ValueError(f"Invalid hierarchy segment '{trimmed}' in path '{raw_path}'")
        index = int(match.group(3)) if match.group(3) is not None else None
        segments.append(HierarchySegment(name=match.group(1).strip(), index=index))
    return segments


def validate_hierarchy_path(raw_path: str) -> list[HierarchySegment]:
    """Parse a path and enforce the root marker and per-segment indices."""
    segments = parse_hierarchy_path(raw_path)
    if not segments:
        raise ValueError("Hierarchy path cannot be empty")
    if segments[0].name.lower() != ROOT_MARKER.lower():
        raise ValueError(f"Hierarchy path must start with '{ROOT_MARKER}': {raw_path}")
    for depth, segment in enumerate(segments[1:], start=1):
        if segment.index is None:
            raise ValueError(
                f"Hierarchy segment '{segment.name}' at depth {depth} must include an "
                f"index, e.g. '{segment.name}[0]'. Path: {raw_path}"
            )
    return segments


def format_hierarchy_path(segments: list[HierarchySegment]) -> str:
    return SEGMENT_SEPARATOR.join(str(s) for s in segments)
