from typing import Iterable, List, Optional, Union

import pytest
from llama_index.core.base.llms.types import ChatMessage, ChatResponse

from adbpilot.adb import AdbCommandError
from adbpilot.agent import PilotAgent, StepExecutor
from adbpilot.tools import Notifier
from adbpilot.ui import LayoutFetcher

SAMPLE_LAYOUT = """<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<hierarchy rotation="0">
  <node index="0" text="" resource-id="" class="android.widget.FrameLayout" bounds="[0,0][1080,2400]">
    <node index="0" text="Search" resource-id="com.example:id/search" class="android.widget.EditText" bounds="[40,200][1040,320]" />
    <node index="1" text="" resource-id="com.example:id/send" class="android.widget.Button" bounds="[900,2200][1060,2360]" />
    <node index="2" text="" resource-id="" class="android.widget.ImageView" bounds="[10,20][31,41]" />
  </node>
</hierarchy>
"""


class FakeAdb:
    """Records commands; writes the layout document when asked to pull it."""

    def __init__(self, layout_xml: Optional[Union[str, bytes]] = SAMPLE_LAYOUT, fail_on: Iterable[str] = ()):
        self.layout_xml = layout_xml
        self.fail_on = list(fail_on)
        self.commands: List[str] = []
        self.serial = None
        self.connection_error: Optional[Exception] = None

    async def run(self, command: str) -> str:
        self.commands.append(command)
        for pattern in self.fail_on:
            if pattern in command:
                raise AdbCommandError(command, "error: device offline")
        tokens = command.split()
        if tokens[0] == "pull" and self.layout_xml is not None:
            if isinstance(self.layout_xml, bytes):
                with open(tokens[2], "wb") as f:
                    f.write(self.layout_xml)
            else:
                with open(tokens[2], "w", encoding="utf-8") as f:
                    f.write(self.layout_xml)
        return ""

    async def check_connection(self) -> None:
        if self.connection_error is not None:
            raise self.connection_error

    @property
    def input_commands(self) -> List[str]:
        return [c for c in self.commands if c.startswith("shell input")]


class ScriptedLLM:
    """Planner stub that returns canned replies and records what it was sent."""

    def __init__(self, replies: Iterable[str]):
        self.replies = list(replies)
        self.calls: List[List[ChatMessage]] = []

    @classmethod
    def class_name(cls) -> str:
        return "ScriptedLLM"

    async def achat(self, messages, **kwargs) -> ChatResponse:
        self.calls.append(list(messages))
        reply = self.replies.pop(0) if self.replies else "DONE"
        if isinstance(reply, Exception):
            raise reply
        return ChatResponse(message=ChatMessage(role="assistant", content=reply))


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages: List[str] = []

    async def notify(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture(autouse=True)
def no_telemetry(monkeypatch):
    monkeypatch.delenv("ADBPILOT_TELEMETRY_ENABLED", raising=False)
    monkeypatch.delenv("ADBPILOT_POSTHOG_KEY", raising=False)


@pytest.fixture
def dump_path(tmp_path):
    return str(tmp_path / "ui.xml")


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def make_agent(dump_path, sleeps):
    def _make(replies, adb: Optional[FakeAdb] = None, **kwargs):
        adb = adb or FakeAdb()
        llm = ScriptedLLM(replies)
        notifier = RecordingNotifier()
        agent = PilotAgent(
            llm=llm,
            adb=adb,
            notifier=notifier,
            fetcher=LayoutFetcher(adb, local_path=dump_path),
            executor=StepExecutor(adb, sleep=sleeps),
            **kwargs,
        )
        return agent, adb, llm, notifier

    return _make
