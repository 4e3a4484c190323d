from .tracker import capture, flush
from .events import PilotAgentInitEvent, PilotAgentFinalizeEvent

__all__ = ["capture", "flush", "PilotAgentInitEvent", "PilotAgentFinalizeEvent"]
