from typing import List

from llama_index.core.workflow import Event

from adbpilot.agent.plan import Step

STATUS_TERMINATED = "terminated"
STATUS_ABORTED = "aborted"
STATUS_NO_GOAL = "no_goal"


class PlanningEvent(Event):
    pass

class ReplyEvent(Event):
    reply: str

class ExecutePlanEvent(Event):
    steps: List[Step]

class FinalizeEvent(Event):
    status: str
    reason: str

# Stream-only events, reported to the caller but never routed between steps

class ObservationEvent(Event):
    context: str

class StepRejectedEvent(Event):
    action: str
    reason: str

class StepExecutedEvent(Event):
    action: str
    success: bool
    reason: str = ""
