"""
Plan parsing - turns the planner's free-text reply into ordered steps.

Reply protocol, one directive per line:

    Command: shell input tap 500 500
    Sleep: 2

A reply consisting only of ``DONE`` ends the run. Lines that carry no known
directive are ignored, since the model's output format isn't guaranteed.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Union

logger = logging.getLogger("adbpilot")

COMMAND_PREFIX = "Command:"
SLEEP_PREFIX = "Sleep:"
TERMINAL_KEYWORD = "DONE"

_LEADING_INT = re.compile(r"^(\d+)")


@dataclass
class Step:
    """One device action (without the ``adb`` prefix) plus an optional post-action delay."""
    action: str
    sleep_ms: int = 0


@dataclass(frozen=True)
class CommandDirective:
    action: str


@dataclass(frozen=True)
class SleepDirective:
    seconds: Optional[int]


@dataclass(frozen=True)
class DoneDirective:
    pass


Directive = Union[CommandDirective, SleepDirective, DoneDirective]


def is_terminal_reply(reply: str) -> bool:
    """True if the whole reply is the terminal keyword, in any case."""
    return reply.strip().upper() == TERMINAL_KEYWORD


def parse_directive(line: str) -> Optional[Directive]:
    """Classify a single line. Returns None for lines without a known directive."""
    line = line.strip()
    if line.upper() == TERMINAL_KEYWORD:
        return DoneDirective()
    if line.startswith(COMMAND_PREFIX):
        return CommandDirective(action=line[len(COMMAND_PREFIX):].strip())
    if line.startswith(SLEEP_PREFIX):
        match = _LEADING_INT.match(line[len(SLEEP_PREFIX):].strip())
        return SleepDirective(seconds=int(match.group(1)) if match else None)
    return None


def parse_plan(reply: str) -> List[Step]:
    """
    Parse a reply into steps, in the order they appear.

    ``Command:`` opens a new step; ``Sleep: <seconds>`` sets the delay of the
    step currently open (and is ignored when none is). ``DONE`` lines and
    unrecognized lines are skipped.
    """
    steps: List[Step] = []
    current: Optional[Step] = None

    for line in reply.splitlines():
        directive = parse_directive(line)
        if isinstance(directive, CommandDirective):
            if current is not None:
                steps.append(current)
            current = Step(action=directive.action)
        elif isinstance(directive, SleepDirective):
            if current is None:
                logger.debug("  - Sleep directive without a command, ignoring.")
            elif directive.seconds is None:
                logger.debug(f"  - Unparsable sleep value in {line.strip()!r}, ignoring.")
            else:
                current.sleep_ms = directive.seconds * 1000

    if current is not None:
        steps.append(current)
    return steps
