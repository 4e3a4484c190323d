"""
adbpilot Tools - User-facing side effects of the agent.
"""

from adbpilot.tools.notifier import Notifier, TermuxToastNotifier

__all__ = ["Notifier", "TermuxToastNotifier"]
