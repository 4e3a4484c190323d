"""
adbpilot Agent Module.

This module provides the observe/plan/act agent and the pieces it is built from.
"""

from .pilot import PilotAgent, run_pilot
from .plan import Step, is_terminal_reply, parse_plan
from .validation import Rejected, normalize_step
from .executor import SETTLE_DELAY_MS, Failure, StepExecutor, StepOutcome, Success

__all__ = [
    "PilotAgent",
    "run_pilot",
    "Step",
    "is_terminal_reply",
    "parse_plan",
    "Rejected",
    "normalize_step",
    "SETTLE_DELAY_MS",
    "Failure",
    "StepExecutor",
    "StepOutcome",
    "Success",
]
