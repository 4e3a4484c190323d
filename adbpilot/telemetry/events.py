from typing import Optional

from pydantic import BaseModel

class TelemetryEvent(BaseModel):
    pass

class PilotAgentInitEvent(TelemetryEvent):
    llm: str
    max_turns: Optional[int]
    settle_delay_ms: int
    enable_tracing: bool
    debug: bool


class PilotAgentFinalizeEvent(TelemetryEvent):
    status: str
    reason: str
    turns: int
