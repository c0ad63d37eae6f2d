# run.py
# Entry point. Config and wiring only - no loop logic lives here.
#
#   stepwise "create a teleport command plugin" --workspace ./workspace
#   stepwise --resume                      # continue a run paused on quota
#
# Swap --model for any OpenRouter-supported model.
# https://openrouter.ai/models

import argparse
import logging
import os
import signal
from pathlib import Path

from dotenv import load_dotenv
from rich.logging import RichHandler

from stepwise import display
from stepwise.ai_client import OpenAIChatClient
from stepwise.config import LoopConfig, default_model
from stepwise.cooldown import CancellationToken
from stepwise.events import ErrorEvent
from stepwise.file_store import LocalFileStore, SessionApi
from stepwise.models import AgentContext
from stepwise.orchestrator import AgentOrchestrator
from stepwise.prompts import AgenticPromptBuilder

DEFAULT_SNAPSHOT = ".stepwise-pause.json"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="stepwise", description="Single-action agentic code generation.")
    parser.add_argument("task", nargs="?", help="Task description (omit with --resume).")
    parser.add_argument("--model", default=None, help="Model id (default: $STEPWISE_MODEL).")
    parser.add_argument("--mode", default="agent", choices=["agent", "plan", "question"])
    parser.add_argument("--workspace", default="./workspace", help="Directory for generated files.")
    parser.add_argument("--session-id", type=int, default=1)
    parser.add_argument("--max-steps", type=int, default=None)
    parser.add_argument("--snapshot", default=DEFAULT_SNAPSHOT, help="Where a paused context is saved.")
    parser.add_argument("--resume", action="store_true", help="Resume the context saved in --snapshot.")
    parser.add_argument("--api-key", default=None, help="Fresh credential to use when resuming.")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)
    if not args.resume and not args.task:
        parser.error("a task is required unless --resume is given")
    return args


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    snapshot = Path(args.snapshot)
    if args.resume:
        context = AgentContext.from_snapshot(snapshot.read_text(encoding="utf-8"))
    else:
        context = AgentContext(
            session_id=args.session_id,
            task=args.task,
            mode=args.mode,
            model_name=args.model or default_model(),
        )

    chat_client = OpenAIChatClient(api_key=args.api_key)
    api_url = os.getenv("STEPWISE_API_URL")
    if api_url:
        api = SessionApi(api_url)
        file_store = api.files(context.session_id)
        prompt_builder = AgenticPromptBuilder(api.system_prompt)
        history = api.messages
    else:
        file_store = LocalFileStore(args.workspace)
        prompt_builder = AgenticPromptBuilder()
        history = None

    orchestrator = AgentOrchestrator(
        chat_client=chat_client,
        file_store=file_store,
        prompt_builder=prompt_builder,
        history=history,
        config=LoopConfig.from_env(max_steps=args.max_steps),
    )

    cancel = CancellationToken()
    signal.signal(signal.SIGINT, lambda *_: cancel.cancel())

    def save_snapshot(paused: AgentContext) -> None:
        snapshot.write_text(paused.to_snapshot(), encoding="utf-8")
        display.snapshot_saved(str(snapshot))

    display.banner(context.model_name, context.task)

    if args.resume:
        events = orchestrator.resume(context, cancel=cancel, on_event=display.render, on_pause=save_snapshot)
    else:
        events = orchestrator.run(context, cancel=cancel, on_event=display.render, on_pause=save_snapshot)

    exit_code = 0
    for event in events:
        if isinstance(event, ErrorEvent) and not event.recoverable:
            exit_code = 130

    if context.is_paused:
        return 2
    if args.resume and snapshot.exists():
        snapshot.unlink()
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
