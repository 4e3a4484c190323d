"""
Utility modules for adbpilot agents.
"""

from .llm_picker import load_llm

__all__ = ["load_llm"]
