"""
Layout - Fetches the uiautomator dump from the device and parses it into a typed tree.
"""

import contextlib
import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import aiofiles

from adbpilot.adb import ADBWrapper, AdbError

logger = logging.getLogger("adbpilot")

DEVICE_DUMP_PATH = "/sdcard/ui.xml"
LOCAL_DUMP_PATH = "./ui.xml"
HIERARCHY_TAG = "hierarchy"


@dataclass
class LayoutNode:
    """One element of a layout document: tag, attributes and ordered children."""
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["LayoutNode"] = field(default_factory=list)

    def get(self, name: str, default: str = "") -> str:
        return self.attributes.get(name, default)


def _from_element(element: ET.Element) -> LayoutNode:
    root = LayoutNode(tag=element.tag, attributes=dict(element.attrib))
    # Worklist instead of recursion; dumps of long lists can be deeply nested.
    pending = [(element, root)]
    while pending:
        xml_node, node = pending.pop()
        for xml_child in xml_node:
            child = LayoutNode(tag=xml_child.tag, attributes=dict(xml_child.attrib))
            node.children.append(child)
            pending.append((xml_child, child))
    return root


def parse_layout(xml_content: Union[str, bytes]) -> LayoutNode:
    """
    Parse a uiautomator dump into a LayoutNode tree.

    Expected format:
    <hierarchy rotation="0">
        <node text="" resource-id="" class="android.widget.FrameLayout"
              bounds="[0,0][1080,2400]">
            <node ...>...</node>
        </node>
    </hierarchy>

    Bytes are decoded according to the document's XML declaration
    (UTF-8 when there is none).

    Raises:
        ET.ParseError: If the document is not well-formed XML
    """
    return _from_element(ET.fromstring(xml_content.strip()))


class LayoutFetcher:
    """Triggers a layout dump on the device and pulls it to a local file."""

    def __init__(
        self,
        adb: ADBWrapper,
        device_path: str = DEVICE_DUMP_PATH,
        local_path: str = LOCAL_DUMP_PATH,
    ):
        self.adb = adb
        self.device_path = device_path
        self.local_path = local_path

    async def fetch(self) -> Optional[LayoutNode]:
        """
        Dump, pull and parse the current UI layout.

        Returns:
            The parsed tree, or None if any stage fails. A missing layout is a
            normal condition (e.g. during transitions) and is only logged.
        """
        # Never read a stale dump left over from a previous turn.
        self.cleanup()
        try:
            await self.adb.run(f"shell uiautomator dump {self.device_path}")
            await self.adb.run(f"pull {self.device_path} {self.local_path}")
            if not os.path.exists(self.local_path):
                raise FileNotFoundError(
                    f"Failed to pull {os.path.basename(self.device_path)}: file not found"
                )

            async with aiofiles.open(self.local_path, "rb") as f:
                xml_content = await f.read()

            return parse_layout(xml_content)
        except (AdbError, OSError, ValueError, ET.ParseError) as e:
            logger.warning(f"⚠️ UI dump error: {e}")
            return None

    def cleanup(self) -> None:
        """Remove the local dump file if present."""
        with contextlib.suppress(FileNotFoundError):
            os.remove(self.local_path)
