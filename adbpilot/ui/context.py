"""
Compact text rendering of the current screen for the planner.
"""

import logging
from typing import Iterable

from adbpilot.ui.elements import UiElement, extract_elements
from adbpilot.ui.layout import LayoutFetcher

logger = logging.getLogger("adbpilot")

UNKNOWN_CONTEXT = "Unknown"


def element_label(element: UiElement) -> str:
    return element.text or element.resource_id or element.class_name


def serialize_elements(elements: Iterable[UiElement]) -> str:
    """Render elements as ``"<label> [<x>,<y>]"`` entries joined by ``", "``, in document order."""
    return ", ".join(
        f"{element_label(element)} [{element.x},{element.y}]" for element in elements
    )


async def observe_screen(fetcher: LayoutFetcher) -> str:
    """
    Fetch the layout and return the serialized element list.

    Returns ``"Unknown"`` when no layout could be fetched. An empty string means
    the layout was read but held no element with usable bounds.
    """
    tree = await fetcher.fetch()
    if tree is None:
        return UNKNOWN_CONTEXT
    elements = list(extract_elements(tree))
    logger.debug(f"  - Observed {len(elements)} UI elements.")
    return serialize_elements(elements)
