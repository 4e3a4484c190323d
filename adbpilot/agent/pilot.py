"""
PilotAgent - The observe/plan/act loop that drives an Android device toward a user's goal.
"""

import logging
import traceback
from typing import Any, Callable, Dict, List, Optional

from llama_index.core.base.llms.types import ChatMessage
from llama_index.core.llms.llm import LLM
from llama_index.core.workflow import Context, Event, StartEvent, StopEvent, Workflow, step

from adbpilot.adb import ADBWrapper
from adbpilot.agent.events import *
from adbpilot.agent.executor import SETTLE_DELAY_MS, Failure, StepExecutor
from adbpilot.agent.plan import is_terminal_reply, parse_plan
from adbpilot.agent.prompts import DEFAULT_PILOT_SYSTEM_PROMPT, UI_CONTEXT_PREFIX
from adbpilot.agent.validation import Rejected, normalize_step
from adbpilot.telemetry import PilotAgentFinalizeEvent, PilotAgentInitEvent, capture, flush
from adbpilot.tools import Notifier
from adbpilot.ui import LayoutFetcher, observe_screen

logger = logging.getLogger("adbpilot")


class PilotAgent(Workflow):
    """
    Alternates between reading the screen and executing the planner's commands.

    Every turn the current UI context is appended to the conversation, the
    planner is asked for the next commands, and those commands are run one by
    one with a fresh observation after each. The run ends when the planner
    replies ``DONE`` (terminated) or a command fails on the device (aborted).

    The conversation is append-only and is kept for the whole run without any
    cap, so very long runs grow the prompt without bound.
    """

    @staticmethod
    def _configure_default_logging(debug: bool = False):
        """
        Configure default logging for PilotAgent if no handlers are present.
        This ensures logs are visible when using PilotAgent directly.
        """
        if not logger.handlers:
            handler = logging.StreamHandler()

            if debug:
                formatter = logging.Formatter("%(asctime)s %(levelname)s: %(message)s", "%H:%M:%S")
            else:
                formatter = logging.Formatter("%(message)s")

            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.setLevel(logging.DEBUG if debug else logging.INFO)
            logger.propagate = False

    def __init__(
        self,
        llm: LLM,
        adb: ADBWrapper,
        notifier: Optional[Notifier] = None,
        fetcher: Optional[LayoutFetcher] = None,
        executor: Optional[StepExecutor] = None,
        system_prompt: Optional[str] = None,
        max_turns: Optional[int] = None,
        settle_delay_ms: int = SETTLE_DELAY_MS,
        enable_tracing: bool = False,
        debug: bool = False,
        timeout: Optional[float] = None,
        *args,
        **kwargs
    ):
        """
        Initialize the PilotAgent.

        Args:
            llm: The language model used as planner
            adb: Device transport
            notifier: Receives user-facing progress messages (defaults to logging only)
            fetcher: Layout fetcher (defaults to one using ``adb`` and ./ui.xml)
            executor: Step executor (defaults to one using ``adb`` and ``settle_delay_ms``)
            system_prompt: Overrides the default system prompt
            max_turns: Optional cap on planning turns; unbounded when None
            settle_delay_ms: Wait after every executed command
            enable_tracing: Whether to enable Arize Phoenix tracing
            debug: Whether to enable verbose debug logging
            timeout: Workflow timeout in seconds; None waits indefinitely
        """
        super().__init__(timeout=timeout, *args, **kwargs)
        self._configure_default_logging(debug=debug)

        if enable_tracing:
            try:
                from llama_index.core import set_global_handler
                set_global_handler("arize_phoenix")
                logger.info("🔍 Arize Phoenix tracing enabled globally")
            except ImportError:
                logger.warning("⚠️ Arize Phoenix package not found, tracing disabled")
                enable_tracing = False

        self.llm = llm
        self.adb = adb
        self.notifier = notifier or Notifier()
        self.fetcher = fetcher or LayoutFetcher(adb)
        self.executor = executor or StepExecutor(adb, settle_delay_ms=settle_delay_ms)
        self.system_prompt = system_prompt or DEFAULT_PILOT_SYSTEM_PROMPT
        self.max_turns = max_turns
        self.debug = debug

        self.goal: Optional[str] = None
        self.history: List[ChatMessage] = []
        self.turns = 0

        capture(
            PilotAgentInitEvent(
                llm=llm.class_name(),
                max_turns=max_turns,
                settle_delay_ms=self.executor.settle_delay_ms,
                enable_tracing=enable_tracing,
                debug=debug,
            )
        )
        logger.info("✅ PilotAgent initialized successfully.")

    def _append(self, role: str, content: str) -> None:
        self.history.append(ChatMessage(role=role, content=content))

    async def _observe(self, ctx: Context) -> str:
        """Read the screen and record it as a system message."""
        context = await observe_screen(self.fetcher)
        self._append("system", UI_CONTEXT_PREFIX + context)
        ctx.write_event_to_stream(ObservationEvent(context=context))
        return context

    async def _abort(self, error: Exception) -> FinalizeEvent:
        logger.error(f"💥 Error: {error}")
        if self.debug:
            logger.error(traceback.format_exc())
        await self.notifier.notify(f"Error: {error}")
        return FinalizeEvent(status=STATUS_ABORTED, reason=str(error))

    @step
    async def start_handler(self, ctx: Context, ev: StartEvent) -> PlanningEvent | FinalizeEvent:
        """Record the goal, or stop right away when there is none."""
        goal = (ev.get("goal", default=None) or "").strip()
        if not goal:
            logger.warning("No command provided.")
            await self.notifier.notify("No command provided.")
            return FinalizeEvent(status=STATUS_NO_GOAL, reason="No command provided.")

        logger.info(f"🚀 Running PilotAgent to achieve goal: {goal}")
        self.goal = goal
        self.turns = 0
        self.history = []
        self._append("system", self.system_prompt)
        self._append("user", goal)
        return PlanningEvent()

    @step
    async def plan(self, ctx: Context, ev: PlanningEvent) -> ReplyEvent | FinalizeEvent:
        """Observe the screen and ask the planner for the next commands."""
        try:
            if self.max_turns is not None and self.turns >= self.max_turns:
                reason = f"Reached maximum number of turns ({self.max_turns})"
                logger.warning(f"⏹️ {reason}")
                await self.notifier.notify(reason)
                return FinalizeEvent(status=STATUS_ABORTED, reason=reason)
            self.turns += 1
            logger.info(f"🧠 Turn {self.turns}: Planning...")

            await self._observe(ctx)

            logger.debug(f"  - Sending {len(self.history)} messages to LLM.")
            response = await self.llm.achat(
                messages=[message.model_copy() for message in self.history]
            )
            reply = (response.message.content or "").strip()
            logger.debug(f"  - AI output:\n{reply}")
            self._append("assistant", reply)

            event = ReplyEvent(reply=reply)
            ctx.write_event_to_stream(event)
            return event

        except Exception as e:
            return await self._abort(e)

    @step
    async def parse_reply(self, ctx: Context, ev: ReplyEvent) -> ExecutePlanEvent | FinalizeEvent:
        """Turn the reply into steps. ``DONE`` ends the run without parsing."""
        if is_terminal_reply(ev.reply):
            logger.info("✅ Planner reports the goal as complete.")
            await self.notifier.notify("Execution complete.")
            return FinalizeEvent(status=STATUS_TERMINATED, reason="Execution complete.")

        steps = parse_plan(ev.reply)
        if not steps:
            logger.warning("🤔 Reply contained no commands, planning again.")
        else:
            logger.debug(f"  - Parsed {len(steps)} step(s).")
        return ExecutePlanEvent(steps=steps)

    @step
    async def execute_plan(self, ctx: Context, ev: ExecutePlanEvent) -> PlanningEvent | FinalizeEvent:
        """
        Run the steps in order, observing the screen after each.

        Invalid steps are skipped. A failed command aborts the run and the
        rest of the plan is dropped, since the screen may no longer be in the
        state the planner assumed.
        """
        try:
            for planned in ev.steps:
                normalized = normalize_step(planned)
                if isinstance(normalized, Rejected):
                    logger.warning(f"⚠️ Skipping {planned.action!r}: {normalized.reason}")
                    if normalized.reason == "missing coordinates":
                        await self.notifier.notify("Skipping invalid tap command.")
                    else:
                        await self.notifier.notify(f"Skipping invalid command: {normalized.reason}")
                    ctx.write_event_to_stream(
                        StepRejectedEvent(action=planned.action, reason=normalized.reason)
                    )
                    continue

                outcome = await self.executor.execute(normalized)
                failed = isinstance(outcome, Failure)
                ctx.write_event_to_stream(
                    StepExecutedEvent(
                        action=normalized.action,
                        success=not failed,
                        reason=outcome.reason if failed else "",
                    )
                )
                await self.notifier.notify(
                    f"Command failed: {normalized.action}" if failed else f"Executed: {normalized.action}"
                )

                await self._observe(ctx)

                if failed:
                    return FinalizeEvent(status=STATUS_ABORTED, reason=outcome.reason)

            return PlanningEvent()

        except Exception as e:
            return await self._abort(e)

    @step
    async def finalize(self, ctx: Context, ev: FinalizeEvent) -> StopEvent:
        ctx.write_event_to_stream(ev)
        capture(
            PilotAgentFinalizeEvent(
                status=ev.status,
                reason=ev.reason,
                turns=self.turns,
            )
        )
        flush()

        result = {
            "success": ev.status == STATUS_TERMINATED,
            "status": ev.status,
            "reason": ev.reason,
            "turns": self.turns,
        }
        return StopEvent(result=result)


async def run_pilot(
    agent: PilotAgent,
    goal: str,
    on_event: Optional[Callable[[Event], Any]] = None,
) -> Dict[str, Any]:
    """
    Run the agent once, from connectivity check to cleanup.

    Unexpected errors (including a failed connectivity check) are logged,
    reported through the notifier and returned as an aborted result. The
    pulled layout file is removed on every exit path.

    Args:
        agent: Configured PilotAgent
        goal: The user's goal
        on_event: Optional callback receiving every streamed workflow event
    """
    try:
        await agent.notifier.notify("AI Agent Starting")
        await agent.adb.check_connection()

        handler = agent.run(goal=goal)
        if on_event is not None:
            async for ev in handler.stream_events():
                on_event(ev)
        return await handler

    except Exception as e:
        logger.error(f"💥 Error: {e}")
        if agent.debug:
            logger.debug(traceback.format_exc())
        await agent.notifier.notify(f"Error: {e}")
        return {
            "success": False,
            "status": STATUS_ABORTED,
            "reason": str(e),
            "turns": agent.turns,
        }
    finally:
        agent.fetcher.cleanup()
