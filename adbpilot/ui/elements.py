"""
UI elements extracted from a layout tree.
"""

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from adbpilot.ui.layout import HIERARCHY_TAG, LayoutNode

# Bounds format: "[left,top][right,bottom]"
BOUNDS_PATTERN = re.compile(r"^\s*\[(\d+),(\d+)\]\[(\d+),(\d+)\]\s*$")


@dataclass(frozen=True)
class UiElement:
    """
    An on-screen element with its center point and extent.

    x and y are the midpoint of the bounding box, width and height its size.
    """
    text: str
    resource_id: str
    class_name: str
    x: int
    y: int
    width: int
    height: int


def parse_bounds(bounds: str) -> Optional[Tuple[int, int, int, int]]:
    """Parse ``[x1,y1][x2,y2]`` into ``(x1, y1, x2, y2)``, or None if malformed."""
    match = BOUNDS_PATTERN.match(bounds or "")
    if not match:
        return None
    x1, y1, x2, y2 = map(int, match.groups())
    if x2 < x1 or y2 < y1:
        return None
    return x1, y1, x2, y2


def element_from_node(node: LayoutNode) -> Optional[UiElement]:
    box = parse_bounds(node.get("bounds"))
    if box is None:
        return None
    x1, y1, x2, y2 = box
    return UiElement(
        text=node.get("text"),
        resource_id=node.get("resource-id"),
        class_name=node.get("class"),
        x=(x1 + x2) // 2,
        y=(y1 + y2) // 2,
        width=x2 - x1,
        height=y2 - y1,
    )


def extract_elements(tree: Optional[LayoutNode]) -> Iterator[UiElement]:
    """
    Walk the tree in document order and yield an element for every node with valid bounds.

    Nodes without bounds, or with bounds that don't parse, are skipped.
    A missing tree, or one whose root isn't a hierarchy, yields nothing.
    """
    if tree is None or tree.tag != HIERARCHY_TAG:
        return

    pending = list(reversed(tree.children))
    while pending:
        node = pending.pop()
        element = element_from_node(node)
        if element is not None:
            yield element
        pending.extend(reversed(node.children))
