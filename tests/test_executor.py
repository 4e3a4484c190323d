from adbpilot.agent import SETTLE_DELAY_MS, Failure, Step, StepExecutor, Success
from conftest import FakeAdb


async def test_success_applies_settle_then_requested_delay(sleeps):
    adb = FakeAdb()
    outcome = await StepExecutor(adb, sleep=sleeps).execute(Step("shell input tap 100 200", sleep_ms=2000))

    assert isinstance(outcome, Success)
    assert adb.commands == ["shell input tap 100 200"]
    assert sleeps.calls == [SETTLE_DELAY_MS / 1000, 2.0]
    assert sum(sleeps.calls) * 1000 >= SETTLE_DELAY_MS + 2000


async def test_settle_delay_applies_without_requested_delay(sleeps):
    await StepExecutor(FakeAdb(), settle_delay_ms=250, sleep=sleeps).execute(Step("shell input keyevent 4"))
    assert sleeps.calls == [0.25]


async def test_transport_error_is_a_failure_without_delay(sleeps):
    adb = FakeAdb(fail_on=["tap"])
    outcome = await StepExecutor(adb, sleep=sleeps).execute(Step("shell input tap 1 2", sleep_ms=5000))

    assert isinstance(outcome, Failure)
    assert "device offline" in outcome.reason
    assert sleeps.calls == []
