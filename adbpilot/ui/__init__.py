"""
UI Package - Layout acquisition, element extraction and context rendering.
"""

from adbpilot.ui.layout import LayoutFetcher, LayoutNode, parse_layout
from adbpilot.ui.elements import UiElement, extract_elements, parse_bounds
from adbpilot.ui.context import UNKNOWN_CONTEXT, observe_screen, serialize_elements

__all__ = [
    "LayoutFetcher",
    "LayoutNode",
    "parse_layout",
    "UiElement",
    "extract_elements",
    "parse_bounds",
    "UNKNOWN_CONTEXT",
    "observe_screen",
    "serialize_elements",
]
