"""
Step normalization - canonicalizes planner actions before they reach the device.
"""

import re
from dataclasses import dataclass, replace
from typing import Union

from adbpilot.agent.plan import Step

SPACE_ESCAPE = "%s"

_ADB_PREFIX = re.compile(r"^adb\s+")
_TEXT_ACTION = re.compile(r"^shell\s+input\s+text\s+(?P<payload>.+)$", re.DOTALL)
_TAP_KEYWORDS = ["shell", "input", "tap"]


@dataclass(frozen=True)
class Rejected:
    """A step that must not be executed."""
    step: Step
    reason: str


def escape_text(payload: str) -> str:
    """Replace literal spaces with the ``input text`` space token. Applying it twice changes nothing."""
    return payload.replace(" ", SPACE_ESCAPE)


def normalize_step(step: Step) -> Union[Step, Rejected]:
    """
    Canonicalize one step.

    - a redundant leading ``adb`` is stripped
    - ``shell input text <payload>`` gets its spaces escaped
    - ``shell input tap`` without both coordinates is rejected

    Every other action passes through unchanged; the command vocabulary is open.
    """
    action = _ADB_PREFIX.sub("", step.action.strip())
    if not action:
        return Rejected(step=step, reason="empty command")

    text_match = _TEXT_ACTION.match(action)
    if text_match:
        action = f"shell input text {escape_text(text_match.group('payload'))}"

    tokens = action.split()
    if tokens[:3] == _TAP_KEYWORDS and len(tokens) < 5:
        return Rejected(step=step, reason="missing coordinates")

    return replace(step, action=action)
