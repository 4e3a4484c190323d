"""
adbpilot CLI - Command line interface for driving an Android device with an LLM planner.
"""

import asyncio
import atexit
import logging
import sys
import traceback
from functools import wraps
from typing import Any, Dict, Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from adbpilot.adb import ADBWrapper, AdbError
from adbpilot.agent import PilotAgent, run_pilot
from adbpilot.agent.events import STATUS_ABORTED
from adbpilot.agent.executor import SETTLE_DELAY_MS
from adbpilot.agent.utils import load_llm
from adbpilot.cli.event_handler import EventHandler
from adbpilot.tools import Notifier, TermuxToastNotifier
from adbpilot.ui import LayoutFetcher
from adbpilot.ui.layout import LOCAL_DUMP_PATH

load_dotenv()

console = Console()

DEFAULT_PROVIDER = "Groq"
DEFAULT_MODEL = "llama-3.3-70b-versatile"


def configure_logging(debug: bool) -> logging.Handler:
    logger = logging.getLogger("adbpilot")
    logger.handlers = []  # Remove any existing handlers

    handler = RichHandler(
        console=console,
        show_time=debug,
        show_level=debug,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", "%H:%M:%S"))
    logger.addHandler(handler)

    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    return handler


def coro(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


@coro
async def run_command(
    goal: str,
    device: Optional[str],
    provider: str,
    model: str,
    base_url: Optional[str],
    max_turns: Optional[int],
    settle_ms: int,
    dump_path: str,
    toast: bool,
    tracing: bool,
    debug: bool,
    **kwargs,
) -> Dict[str, Any]:
    """Run a goal on the Android device using natural language."""
    configure_logging(debug)
    logger = logging.getLogger("adbpilot")

    try:
        logger.info(f"🚀 Starting: {goal}")

        adb = ADBWrapper(serial=device)
        if device:
            logger.info(f"📱 Using device: {device}")

        llm = load_llm(provider_name=provider, model=model, base_url=base_url, **kwargs)
        logger.info(f"🧠 LLM ready: {provider}/{model}")

        fetcher = LayoutFetcher(adb, local_path=dump_path)
        # run_pilot cleans up too; this covers exits that never reach it.
        atexit.register(fetcher.cleanup)

        agent = PilotAgent(
            llm=llm,
            adb=adb,
            notifier=TermuxToastNotifier() if toast else Notifier(),
            fetcher=fetcher,
            max_turns=max_turns,
            settle_delay_ms=settle_ms,
            enable_tracing=tracing,
            debug=debug,
        )
    except Exception as e:
        logger.error(f"💥 Setup error: {e}")
        if debug:
            logger.debug(traceback.format_exc())
        return {"success": False, "status": STATUS_ABORTED, "reason": str(e), "turns": 0}

    logger.info("▶️  Starting agent execution...")
    logger.info("Press Ctrl+C to stop")

    event_handler = EventHandler(console)
    try:
        return await run_pilot(agent, goal, on_event=event_handler.handle_event)
    except KeyboardInterrupt:
        logger.info("⏹️ Stopped by user")
        return {"success": False, "status": STATUS_ABORTED, "reason": "Stopped by user", "turns": agent.turns}


class AdbPilotCLI(click.Group):
    def parse_args(self, ctx, args):
        # If the first arg is not an option and not a known command, treat as 'run'
        if args and not args[0].startswith("-") and args[0] not in self.commands:
            args.insert(0, "run")

        return super().parse_args(ctx, args)


@click.group(cls=AdbPilotCLI)
def cli():
    """adbpilot - Drive your Android device through an LLM planner over ADB."""
    pass


@cli.command()
@click.argument("goal", type=str, required=False)
@click.option("--device", "-d", help="Device serial number or IP address", default=None)
@click.option(
    "--provider",
    "-p",
    help="LLM provider class from llama_index.llms (Groq, OpenAI, Ollama, Anthropic, GoogleGenAI, ...)",
    default=DEFAULT_PROVIDER,
)
@click.option("--model", "-m", help="LLM model name", default=DEFAULT_MODEL)
@click.option("--temperature", type=float, help="Temperature for LLM", default=0.175)
@click.option("--max-tokens", type=int, help="Maximum completion tokens per reply", default=500)
@click.option(
    "--base_url",
    "-u",
    help="Base URL for API (e.g., OpenRouter or Ollama)",
    default=None,
)
@click.option(
    "--max-turns",
    type=click.IntRange(min=1),
    help="Stop after this many planning turns (default: no limit)",
    default=None,
)
@click.option(
    "--settle-ms",
    type=click.IntRange(min=0),
    help="Wait after every executed command, in milliseconds",
    default=SETTLE_DELAY_MS,
    show_default=True,
)
@click.option(
    "--dump-path",
    help="Local path for the pulled UI dump (removed on exit)",
    type=click.Path(dir_okay=False),
    default=LOCAL_DUMP_PATH,
    show_default=True,
)
@click.option(
    "--toast/--no-toast",
    help="Show progress as Android toasts via termux-toast",
    default=False,
)
@click.option(
    "--tracing", is_flag=True, help="Enable Arize Phoenix tracing", default=False
)
@click.option(
    "--debug", is_flag=True, help="Enable verbose debug logging", default=False
)
def run(
    goal: Optional[str],
    device: Optional[str],
    provider: str,
    model: str,
    temperature: float,
    max_tokens: int,
    base_url: Optional[str],
    max_turns: Optional[int],
    settle_ms: int,
    dump_path: str,
    toast: bool,
    tracing: bool,
    debug: bool,
):
    """Run a goal on your Android device using natural language."""
    if goal is None:
        goal = click.prompt("Automate", default="", show_default=False)

    result = run_command(
        goal,
        device,
        provider,
        model,
        base_url,
        max_turns,
        settle_ms,
        dump_path,
        toast,
        tracing,
        debug,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    if result.get("status") == STATUS_ABORTED:
        sys.exit(1)


@cli.command()
@click.option("--device", "-d", help="Device serial number or IP address", default=None)
@coro
async def check(device: Optional[str]):
    """Check that a device is connected and authorized."""
    try:
        await ADBWrapper(serial=device).check_connection()
        console.print("[green]Device connected and authorized.[/]")
    except AdbError as e:
        console.print(f"[red]{e}[/]", highlight=False)
        sys.exit(1)


if __name__ == "__main__":
    cli()
