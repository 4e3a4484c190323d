"""
User-facing notifications.
"""

import asyncio
import logging

logger = logging.getLogger("adbpilot")


class Notifier:
    """Reports progress to the user. The base implementation only logs."""

    async def notify(self, message: str) -> None:
        logger.info(f"🔔 {message}")


class TermuxToastNotifier(Notifier):
    """Shows notifications as Android toasts through the Termux:API ``termux-toast`` command."""

    def __init__(self, binary: str = "termux-toast", gravity: str = "bottom"):
        self.binary = binary
        self.gravity = gravity

    async def notify(self, message: str) -> None:
        await super().notify(message)
        try:
            process = await asyncio.create_subprocess_exec(
                self.binary, "-g", self.gravity, message,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate()
            if process.returncode != 0:
                logger.warning(f"Toast failed: {stderr.decode('utf-8', errors='replace').strip()}")
        except OSError as e:
            logger.warning(f"Toast failed: {e}")
