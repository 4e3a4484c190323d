import os

from adbpilot.adb import AdbError
from adbpilot.agent import SETTLE_DELAY_MS, run_pilot
from adbpilot.agent.prompts import DEFAULT_PILOT_SYSTEM_PROMPT, UI_CONTEXT_PREFIX
from conftest import FakeAdb, SAMPLE_LAYOUT


def roles(messages):
    return [m.role.value for m in messages]


def snapshot(messages):
    return [(m.role.value, m.content) for m in messages]


async def test_tap_with_sleep_then_done(make_agent, sleeps):
    agent, adb, llm, notifier = make_agent(["Command: shell input tap 100 200\nSleep: 2", "DONE"])

    result = await agent.run(goal="Open the search bar")

    assert result["status"] == "terminated"
    assert result["success"] is True
    assert adb.input_commands == ["shell input tap 100 200"]
    assert sleeps.calls == [SETTLE_DELAY_MS / 1000, 2.0]
    assert "Executed: shell input tap 100 200" in notifier.messages
    assert notifier.messages[-1] == "Execution complete."

    assert roles(agent.history) == ["system", "user", "system", "assistant", "system", "system", "assistant"]
    assert agent.history[0].content == DEFAULT_PILOT_SYSTEM_PROMPT
    assert agent.history[1].content == "Open the search bar"
    # Observation taken right after the tap
    assert agent.history[4].content.startswith(UI_CONTEXT_PREFIX + "android.widget.FrameLayout [540,1200]")


async def test_rejected_tap_is_skipped_and_loop_continues(make_agent):
    agent, adb, llm, notifier = make_agent(["Command: shell input tap 100\nDONE", "DONE"])

    result = await agent.run(goal="Tap something")

    assert result["status"] == "terminated"
    assert adb.input_commands == []
    assert len(llm.calls) == 2
    assert "Skipping invalid tap command." in notifier.messages


async def test_transport_failure_aborts_remaining_steps(make_agent, sleeps):
    adb = FakeAdb(fail_on=["input tap"])
    agent, adb, llm, notifier = make_agent(
        ["Command: shell input tap 1 2\nCommand: shell input keyevent 3"], adb=adb
    )

    result = await agent.run(goal="Go home")

    assert result["status"] == "aborted"
    assert result["success"] is False
    assert "device offline" in result["reason"]
    assert adb.input_commands == ["shell input tap 1 2"]
    assert len(llm.calls) == 1
    assert sleeps.calls == []
    assert "Command failed: shell input tap 1 2" in notifier.messages
    # The failed step is still followed by a fresh observation
    assert agent.history[-1].content.startswith(UI_CONTEXT_PREFIX)


async def test_done_in_any_case_never_executes(make_agent):
    agent, adb, llm, notifier = make_agent(["done"])

    result = await agent.run(goal="Nothing to do")

    assert result["status"] == "terminated"
    assert result["turns"] == 1
    assert adb.input_commands == []
    assert len(llm.calls) == 1


async def test_reply_without_commands_replans(make_agent):
    agent, adb, llm, notifier = make_agent(["I need to look at the screen first.", "DONE"])

    result = await agent.run(goal="Check the screen")

    assert result["status"] == "terminated"
    assert result["turns"] == 2
    assert roles(llm.calls[1]).count("assistant") == 1
    assert adb.input_commands == []


async def test_text_input_is_escaped_before_execution(make_agent):
    agent, adb, llm, notifier = make_agent(['Command: adb shell input text "open app"', "DONE"])

    await agent.run(goal="Type something")

    assert adb.input_commands == ['shell input text "open%sapp"']


async def test_steps_run_in_reply_order(make_agent):
    reply = "Command: shell input tap 540 260\nSleep: 1\nCommand: shell input text hello\nCommand: shell input keyevent 66"
    agent, adb, llm, notifier = make_agent([reply, "DONE"])

    await agent.run(goal="Search hello")

    assert adb.input_commands == [
        "shell input tap 540 260",
        "shell input text hello",
        "shell input keyevent 66",
    ]


async def test_history_is_append_only(make_agent):
    agent, adb, llm, notifier = make_agent(["Command: shell input keyevent 4", "Command: shell input keyevent 3", "DONE"])

    await agent.run(goal="Back then home")

    first, second, third = (snapshot(call) for call in llm.calls)
    assert second[:len(first)] == first
    assert third[:len(second)] == second
    assert snapshot(agent.history)[:len(third)] == third


async def test_unknown_ui_context_when_dump_fails(make_agent):
    agent, adb, llm, notifier = make_agent(["DONE"], adb=FakeAdb(fail_on=["uiautomator"]))

    await agent.run(goal="Anything")

    assert llm.calls[0][-1].content == UI_CONTEXT_PREFIX + "Unknown"


async def test_undecodable_dump_does_not_abort_the_run(make_agent):
    adb = FakeAdb(layout_xml=b"<hierarchy><node text='\xff\xfe' bounds='[0,0][1,1]'/></hierarchy>")
    agent, adb, llm, notifier = make_agent(["DONE"], adb=adb)

    result = await agent.run(goal="Anything")

    assert result["status"] == "terminated"
    assert llm.calls[0][-1].content == UI_CONTEXT_PREFIX + "Unknown"


async def test_empty_goal_is_a_no_op(make_agent):
    agent, adb, llm, notifier = make_agent(["DONE"])

    result = await agent.run(goal="   ")

    assert result["status"] == "no_goal"
    assert llm.calls == []
    assert notifier.messages == ["No command provided."]


async def test_max_turns_stops_the_run(make_agent):
    agent, adb, llm, notifier = make_agent(["Thinking...", "Still thinking..."], max_turns=1)

    result = await agent.run(goal="Loop")

    assert result["status"] == "aborted"
    assert "maximum number of turns" in result["reason"]
    assert len(llm.calls) == 1
    assert notifier.messages[-1] == "Reached maximum number of turns (1)"


async def test_planner_error_aborts(make_agent):
    agent, adb, llm, notifier = make_agent([RuntimeError("rate limited")])

    result = await agent.run(goal="Anything")

    assert result["status"] == "aborted"
    assert result["reason"] == "rate limited"
    assert notifier.messages[-1] == "Error: rate limited"


async def test_run_pilot_removes_dump_file(make_agent, dump_path):
    agent, adb, llm, notifier = make_agent(["Command: shell input keyevent 3", "DONE"])

    result = await run_pilot(agent, "Go home")

    assert result["status"] == "terminated"
    assert notifier.messages[0] == "AI Agent Starting"
    assert not os.path.exists(dump_path)


async def test_run_pilot_streams_events(make_agent):
    agent, adb, llm, notifier = make_agent(["Command: shell input keyevent 3", "DONE"])
    seen = []

    await run_pilot(agent, "Go home", on_event=lambda ev: seen.append(type(ev).__name__))

    assert "ObservationEvent" in seen
    assert "ReplyEvent" in seen
    assert "StepExecutedEvent" in seen
    assert "FinalizeEvent" in seen


async def test_run_pilot_connection_failure(make_agent, dump_path):
    adb = FakeAdb()
    adb.connection_error = AdbError("ADB connection failed: No devices found.")
    agent, adb, llm, notifier = make_agent(["DONE"], adb=adb)
    with open(dump_path, "w", encoding="utf-8") as f:
        f.write(SAMPLE_LAYOUT)

    result = await run_pilot(agent, "Go home")

    assert result["status"] == "aborted"
    assert "No devices found" in result["reason"]
    assert llm.calls == []
    assert notifier.messages[-1].startswith("Error: ")
    assert not os.path.exists(dump_path)
