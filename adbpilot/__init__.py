"""
adbpilot - Drive an Android device over ADB with an LLM planner.
"""

__version__ = "0.1.0"

# Import main classes for easier access
from adbpilot.adb import ADBWrapper
from adbpilot.agent import PilotAgent, run_pilot
from adbpilot.agent.utils import load_llm
from adbpilot.tools import Notifier, TermuxToastNotifier
from adbpilot.ui import LayoutFetcher


# Make main components available at package level
__all__ = [
    "ADBWrapper",
    "PilotAgent",
    "run_pilot",
    "load_llm",
    "Notifier",
    "TermuxToastNotifier",
    "LayoutFetcher",
]
