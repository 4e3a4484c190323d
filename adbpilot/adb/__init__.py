"""
ADB Package - Android Debug Bridge transport.
"""

from adbpilot.adb.wrapper import ADBWrapper, AdbCommandError, AdbError

__all__ = [
    'ADBWrapper',
    'AdbCommandError',
    'AdbError',
]
