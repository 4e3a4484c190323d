"""
Step execution against the device transport.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from adbpilot.adb import ADBWrapper, AdbError
from adbpilot.agent.plan import Step

logger = logging.getLogger("adbpilot")

# Minimum wait after every action; the device gives no "UI ready" signal.
SETTLE_DELAY_MS = 1500


@dataclass(frozen=True)
class Success:
    step: Step
    output: str = ""


@dataclass(frozen=True)
class Failure:
    step: Step
    reason: str


StepOutcome = Union[Success, Failure]


class StepExecutor:
    """Runs one normalized step and applies the settle and requested delays."""

    def __init__(
        self,
        adb: ADBWrapper,
        settle_delay_ms: int = SETTLE_DELAY_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            adb: Device transport
            settle_delay_ms: Fixed wait applied after every successful action
            sleep: Awaitable sleep function, in seconds
        """
        self.adb = adb
        self.settle_delay_ms = settle_delay_ms
        self._sleep = sleep

    async def execute(self, step: Step) -> StepOutcome:
        """
        Send the step's action to the device.

        A transport error gives a Failure and no delay is applied. Failures are
        not retried here; the caller decides what a failure means for the run.
        """
        logger.info(f"⚡ Executing command: {step.action}")
        try:
            output = await self.adb.run(step.action)
        except AdbError as e:
            logger.error(f"💥 Command failed: {e}")
            return Failure(step=step, reason=str(e))

        await self._sleep(self.settle_delay_ms / 1000)
        if step.sleep_ms > 0:
            logger.info(f"💤 Sleeping for {step.sleep_ms}ms")
            await self._sleep(step.sleep_ms / 1000)
        return Success(step=step, output=output)
