"""
adbpilot CLI Module.

This module provides the command-line interface for running the agent.
"""

from .main import cli

__all__ = ["cli"]
