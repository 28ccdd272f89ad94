"""Taskwright Command Line Interface.

Usage:
    taskwright run TEXT        Plan and execute a free-text command
    taskwright intent TEXT     Show which intent a command maps to
    taskwright prompt TEXT     Show the prompt that would be sent to the model
    taskwright parse [FILE]    Parse a saved model reply (stdin if omitted)
    taskwright status          Show model and backend status
    taskwright serve           Start the HTTP service
"""

from __future__ import annotations

import json
import sys
import threading
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table
from typer import Argument, Option

from taskwright import __version__
from taskwright.automation import (
    CancelToken,
    CommandPipeline,
    ExecutionResult,
    ParseError,
    UserIntent,
    build_prompt,
    check_intent_contradiction,
    detect_intent,
    normalize_all,
    parse_response,
    validate_actions,
)
from taskwright.logging_setup import configure_logging
from taskwright.models import ExecutionResultResponse
from taskwright.settings import settings

app = typer.Typer(
    name="taskwright",
    help="Taskwright - free-text project and task commands",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def build_pipeline() -> CommandPipeline:
    return CommandPipeline.from_settings()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Taskwright version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        Option("--version", "-V", callback=version_callback, is_eager=True, help="Show version"),
    ] = False,
) -> None:
    """Taskwright - free-text project and task commands."""


# =============================================================================
# Commands
# =============================================================================


@app.command()
def run(
    text: Annotated[str, Argument(help="The instruction, e.g. 'Create a project called Blog'")],
    preview: Annotated[bool, Option("--preview", "-p", help="Plan only, do not execute")] = False,
    json_output: Annotated[bool, Option("--json", "-j", help="JSON output")] = False,
) -> None:
    """Plan and execute a free-text command. Ctrl+C cancels between steps."""
    configure_logging()
    pipeline = build_pipeline()
    cancel = CancelToken()
    outcome: list[ExecutionResult] = []

    worker = threading.Thread(
        target=lambda: outcome.append(
            pipeline.process_command(text, cancel=cancel, preview=preview)
        ),
        daemon=True,
    )
    worker.start()
    _wait_for(worker, cancel)

    result = outcome[0]
    if json_output:
        # Plain echo so long messages are not re-wrapped inside JSON strings.
        typer.echo(ExecutionResultResponse.from_result(result).model_dump_json(indent=2))
    else:
        _print_result(result)

    if not result.success:
        raise typer.Exit(1)


@app.command()
def intent(text: Annotated[str, Argument(help="The instruction to classify")]) -> None:
    """Show which intent a command maps to (no model call)."""
    detected = detect_intent(text)
    style = "red" if detected is UserIntent.UNKNOWN else "cyan"
    console.print(f"[{style}]{detected.value}[/{style}]")


@app.command()
def prompt(text: Annotated[str, Argument(help="The instruction to build a prompt for")]) -> None:
    """Show the prompt that would be sent to the model."""
    detected = detect_intent(text)
    if detected is UserIntent.UNKNOWN:
        console.print("[red]Could not classify the request; no prompt would be sent.[/red]")
        raise typer.Exit(1)
    # Plain print: prompts contain square brackets rich would read as markup.
    console.print(build_prompt(detected, text), markup=False, highlight=False)


@app.command()
def parse(
    file: Annotated[
        Optional[Path],
        Argument(help="File holding a raw model reply (reads stdin if omitted)"),
    ] = None,
    text: Annotated[
        Optional[str],
        Option("--text", "-t", help="Original user text, enables the contradiction check"),
    ] = None,
) -> None:
    """Parse a saved model reply and show the plan it would produce."""
    raw = file.read_text(encoding="utf-8") if file else sys.stdin.read()

    parsed = parse_response(raw)
    if isinstance(parsed, ParseError):
        console.print(parsed.message, markup=False, style="red")
        raise typer.Exit(1)

    actions = normalize_all(parsed.actions)
    console.print("[bold cyan]Parsed command[/bold cyan]")
    console.print(parsed.to_block(), markup=False, highlight=False)

    table = Table(show_header=True)
    table.add_column("#", style="dim")
    table.add_column("Raw action")
    table.add_column("Normalized")
    for i, (raw_action, action) in enumerate(zip(parsed.actions, actions), start=1):
        table.add_row(str(i), raw_action, str(action))
    console.print(table)

    checks = [validate_actions(actions, parsed)]
    if text:
        checks.insert(0, check_intent_contradiction(text, actions))
    for check in checks:
        if not check.is_valid:
            console.print(check.error_message, markup=False, style="red")
            raise typer.Exit(1)
    console.print("[green]✓ valid[/green]")


@app.command()
def status(
    json_output: Annotated[bool, Option("--json", "-j", help="JSON output")] = False,
) -> None:
    """Show model and backend status."""
    from taskwright.providers import OllamaProvider
    from taskwright.repositories import ApiClient, ProjectRepository

    health = OllamaProvider().check_health()
    with ApiClient() as client:
        backend = ProjectRepository(client).list_all()

    status_data = {
        "llm": {
            "url": settings.ollama_url,
            "reachable": health.reachable,
            "model": health.current_model,
            "error": health.error,
        },
        "backend": {
            "url": settings.api_url,
            "reachable": backend.ok,
            "projects": len(backend.value or []) if backend.ok else None,
            "error": backend.error,
        },
        "preview_mode": settings.preview_mode,
    }

    if json_output:
        console.print_json(json.dumps(status_data))
        return

    console.print("[bold cyan]Taskwright Status[/bold cyan]\n")

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("Data Directory", str(settings.data_dir))
    if health.reachable and health.current_model:
        ollama_row = f"✓ {health.current_model}"
    else:
        ollama_row = f"✗ {health.error or 'no model'}"
    table.add_row("Ollama", ollama_row)
    table.add_row(
        "Backend",
        f"✓ {status_data['backend']['projects']} projects" if backend.ok else f"✗ {backend.error}",
    )
    table.add_row("Preview Mode", "on" if settings.preview_mode else "off")
    console.print(table)


@app.command()
def serve(
    port: Annotated[int, Option("--port", "-p", help="HTTP port")] = settings.port,
    host: Annotated[str, Option("--host", "-H", help="Bind address")] = settings.host,
) -> None:
    """Start the HTTP service."""
    import uvicorn

    configure_logging()
    console.print(f"[cyan]Starting Taskwright on {host}:{port}...[/cyan]")
    uvicorn.run("taskwright.app:app", host=host, port=port, log_level="info")


def _wait_for(worker: threading.Thread, cancel: CancelToken) -> None:
    """Join the worker; Ctrl+C requests cancellation and waiting continues.

    The worker always returns a result once cancelled, so repeated Ctrl+C
    presses are absorbed instead of abandoning it mid-action.
    """
    while worker.is_alive():
        try:
            worker.join(timeout=0.1)
        except KeyboardInterrupt:
            if not cancel.cancelled:
                console.print("\n[yellow]Cancelling...[/yellow]")
                cancel.cancel()


def _print_result(result: ExecutionResult) -> None:
    if result.cancelled:
        header = "[yellow]Cancelled[/yellow]"
    elif result.preview:
        header = "[cyan]Preview[/cyan]"
    elif result.success:
        header = "[green]✓ Done[/green]"
    else:
        header = "[red]✗ Failed[/red]"
    console.print(header)
    console.print(result.message, markup=False, highlight=False)

    if result.created_project_id:
        console.print(f"[dim]Project id: {result.created_project_id}[/dim]")
    if result.created_task_ids:
        console.print(f"[dim]Task ids: {', '.join(result.created_task_ids)}[/dim]")
