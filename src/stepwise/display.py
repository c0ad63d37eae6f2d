# display.py
# Terminal rendering of agent events.
#
# This module owns presentation entirely. The orchestrator never formats
# strings for the terminal; the CLI passes render() as the event sink.
#
# Colour language:
#   cyan    - loop scaffolding (thinking, resuming, step boundaries)
#   blue    - planning and analysis
#   green   - file mutations confirmed, completion
#   yellow  - cooldown, pause, auth required
#   red     - errors and cancellation

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from stepwise.events import (
    AgentEvent,
    AuthRequiredEvent,
    CompleteEvent,
    CooldownEvent,
    ErrorEvent,
    FileCreatedEvent,
    FileCreatingEvent,
    FileDeletedEvent,
    FileDeletingEvent,
    FileUpdatedEvent,
    FileUpdatingEvent,
    PausedEvent,
    PlanningEvent,
    ResumingEvent,
    StepCompleteEvent,
    ThinkingEvent,
)

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    # Event text comes from the model; escape so stray [tags] print literally.
    if len(value) > max_len:
        value = value[:max_len] + "…"
    return escape(value)


def _file_list(names: list[str]) -> str:
    return ", ".join(escape(name) for name in names) if names else "[dim]none[/dim]"


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def banner(model: str, task: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Stepwise Agent[/bold cyan]\n"
            "[dim]One action per step · pause on quota · cooperative cancel[/dim]\n\n"
            f"[dim]Model :[/dim] [white]{escape(model)}[/white]\n"
            f"[dim]Task  :[/dim] [white]{_mono(task, 80)}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def snapshot_saved(path: str) -> None:
    console.print(
        _label("PAUSED", "yellow"),
        f"[yellow] Context saved to[/yellow] [bold white]{escape(path)}[/bold white]"
        "[yellow]. Re-run with --resume to continue.[/yellow]",
    )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def _complete(event: CompleteEvent) -> None:
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 1))
    table.add_column("Kind", style="dim", width=9)
    table.add_column("Files", style="white")
    table.add_row("Created", _file_list(event.files_created))
    table.add_row("Updated", _file_list(event.files_updated))
    table.add_row("Deleted", _file_list(event.files_deleted))

    console.print()
    console.print(
        Panel(
            table,
            title=_label("COMPLETE", "green"),
            subtitle=f"[dim]{_mono(event.summary, 100)}[/dim]",
            border_style="green",
            padding=(0, 1),
        )
    )


def render(event: AgentEvent) -> None:
    """Print a single event. Raises TypeError for anything outside the union."""
    match event:
        case ThinkingEvent(message=message):
            console.print(_label("THINKING", "cyan"), f"[cyan] {_mono(message)}[/cyan]")
        case PlanningEvent(message=message):
            console.print(_label("PLAN", "blue"), f"[blue] {_mono(message)}[/blue]")
        case FileCreatingEvent(path=path):
            console.print(f"  [dim]↳ creating[/dim] [white]{escape(path)}[/white]…")
        case FileCreatedEvent(file_name=name):
            console.print(f"  [bold green]✓ created[/bold green] [white]{escape(name)}[/white]")
        case FileUpdatingEvent(path=path):
            console.print(f"  [dim]↳ updating[/dim] [white]{escape(path)}[/white]…")
        case FileUpdatedEvent(file_name=name):
            console.print(f"  [bold green]✓ updated[/bold green] [white]{escape(name)}[/white]")
        case FileDeletingEvent(path=path):
            console.print(f"  [dim]↳ deleting[/dim] [white]{escape(path)}[/white]…")
        case FileDeletedEvent(file_name=name):
            console.print(f"  [bold green]✓ deleted[/bold green] [white]{escape(name)}[/white]")
        case StepCompleteEvent(step_number=number, action=action):
            console.print(Rule(f"[cyan]STEP {number} · {action.value}[/cyan]", style="dim cyan"))
        case CooldownEvent(remaining=remaining):
            console.print(f"  [yellow]⏳ next step in {remaining}s[/yellow]")
        case CompleteEvent():
            _complete(event)
        case ErrorEvent(message=message, recoverable=recoverable):
            tag = "ERROR" if recoverable else "HALT"
            console.print(_label(tag, "red"), f"[red] {_mono(message, 200)}[/red]")
        case PausedEvent(reason=reason, step_number=number):
            console.print(
                _label("PAUSED", "yellow"),
                f"[yellow] at step {number} ({reason.value})[/yellow]",
            )
        case ResumingEvent(step_number=number):
            console.print(_label("RESUMING", "cyan"), f"[cyan] from step {number}[/cyan]")
        case AuthRequiredEvent(message=message):
            console.print(
                Panel(
                    f"[bold yellow]{_mono(message, 500) if message else 'Authentication required.'}[/bold yellow]",
                    title=_label("AUTH REQUIRED", "yellow"),
                    border_style="yellow",
                    padding=(0, 2),
                )
            )
        case _:
            raise TypeError(f"Unknown event: {event!r}")
