"""
Event handler for the adbpilot CLI - turns streamed agent events into console output.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from adbpilot.agent.events import (
    STATUS_TERMINATED,
    FinalizeEvent,
    ObservationEvent,
    ReplyEvent,
    StepExecutedEvent,
    StepRejectedEvent,
)


class EventHandler:
    """Handles streaming events from the PilotAgent and prints user-friendly lines."""

    def __init__(self, console: Console, preview_length: int = 150):
        """
        Args:
            console: Rich console to print to
            preview_length: Maximum characters shown for long texts
        """
        self.console = console
        self.preview_length = preview_length
        self.current_step = "Initializing..."
        self.is_completed = False
        self.is_success: Optional[bool] = None

    def _preview(self, text: str) -> str:
        if len(text) > self.preview_length:
            text = text[:self.preview_length] + "..."
        return escape(text)

    def handle_event(self, event):
        """Handle streaming events from the agent workflow."""
        if isinstance(event, ObservationEvent):
            self.current_step = "Reading screen..."
            if event.context:
                self.console.print(f"👀 [dim]{self._preview(event.context)}[/]", highlight=False)
            else:
                self.console.print("👀 [dim](no UI elements)[/]")

        elif isinstance(event, ReplyEvent):
            self.current_step = "Planning..."
            self.console.print(f"🧠 {self._preview(event.reply)}", highlight=False)

        elif isinstance(event, StepRejectedEvent):
            self.console.print(
                f"[yellow]⏭️  Skipped {escape(repr(event.action))}: {escape(event.reason)}[/]",
                highlight=False,
            )

        elif isinstance(event, StepExecutedEvent):
            if event.success:
                self.current_step = f"Executed {event.action}"
                self.console.print(f"[green]⚡ {escape(event.action)}[/]", highlight=False)
            else:
                self.current_step = f"Failed {event.action}"
                self.console.print(
                    f"[red]❌ {escape(event.action)}: {self._preview(event.reason)}[/]",
                    highlight=False,
                )

        elif isinstance(event, FinalizeEvent):
            self.is_completed = True
            self.is_success = event.status == STATUS_TERMINATED
            if self.is_success:
                self.current_step = f"Success: {event.reason}"
                self.console.print(f"[bold green]🎉 {escape(event.reason)}[/]")
            else:
                self.current_step = f"Stopped: {event.reason}"
                self.console.print(
                    f"[bold red]⏹️  Stopped ({event.status}): {escape(event.reason)}[/]",
                    highlight=False,
                )
