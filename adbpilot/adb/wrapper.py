"""
ADB Wrapper - Lightweight wrapper around ADB used as the agent's device transport.
"""

import asyncio
import logging
import shlex
from typing import List, Optional, Tuple

logger = logging.getLogger("adbpilot")


class AdbError(Exception):
    """Base class for transport errors."""


class AdbCommandError(AdbError):
    """Raised when a device command cannot be run or exits with an error."""

    def __init__(self, command: str, message: str):
        super().__init__(f"ADB command failed: {message}")
        self.command = command


class ADBWrapper:
    """Lightweight wrapper around ADB for Android device control."""

    def __init__(self, adb_path: Optional[str] = None, serial: Optional[str] = None):
        """Initialize ADB wrapper.

        Args:
            adb_path: Path to ADB binary (defaults to 'adb' in PATH)
            serial: Optional device serial, passed as ``-s <serial>``
        """
        self.adb_path = adb_path or "adb"
        self.serial = serial

    async def _run_command(
        self,
        args: List[str],
        check: bool = True
    ) -> Tuple[str, str]:
        """Run an ADB command.

        Args:
            args: Command arguments
            check: Whether to check return code

        Returns:
            Tuple of (stdout, stderr)
        """
        cmd = [self.adb_path, *args]

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )

            stdout_bytes, stderr_bytes = await process.communicate()

            stdout = stdout_bytes.decode("utf-8", errors="replace").strip()
            stderr = stderr_bytes.decode("utf-8", errors="replace").strip()

            if check and process.returncode != 0:
                raise AdbCommandError(" ".join(args), stderr or stdout)

            return stdout, stderr

        except FileNotFoundError:
            raise FileNotFoundError(f"ADB not found at {self.adb_path}")

    async def run(self, command: str) -> str:
        """Run a device command given without the ``adb`` prefix.

        Example: ``await adb.run("shell input tap 500 500")``

        Args:
            command: Command string, split with shell quoting rules

        Returns:
            Command output (stdout, stripped)

        Raises:
            AdbCommandError: If the command can't be split, ADB is missing, or
                the command exits with a non-zero status
        """
        try:
            args = shlex.split(command)
        except ValueError as e:
            raise AdbCommandError(command, f"unparsable command ({e})") from e
        if not args:
            raise AdbCommandError(command, "empty command")

        if self.serial:
            args = ["-s", self.serial, *args]

        logger.debug(f"  - adb {' '.join(args)}")
        try:
            stdout, _ = await self._run_command(args)
        except FileNotFoundError as e:
            raise AdbCommandError(command, str(e)) from e
        return stdout

    async def check_connection(self) -> None:
        """Verify that at least one authorized device is attached.

        Raises:
            AdbError: If no device is in the ``device`` state
        """
        try:
            stdout = await self.run("devices")
        except AdbError as e:
            raise AdbError(f"ADB connection failed: {e}") from e

        devices = [
            line for line in stdout.splitlines()[1:]  # Skip first line (header)
            if line.strip().endswith("device")
        ]
        if self.serial:
            devices = [line for line in devices if line.split()[0] == self.serial]
        if not devices:
            raise AdbError(
                "ADB connection failed: No devices found. "
                "Ensure the device is connected and authorized."
            )
        logger.info("🔌 ADB connection verified.")
