"""
mediascribe.cli - Typer CLI entry point.

The presentation layer: validates user-supplied paths, runs the pipeline on
a background worker while showing progress, and prints the outcome.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from mediascribe import __version__
from mediascribe.config import (
    CONFIG_FILENAME,
    MediascribeConfig,
    create_default_config,
    load_config_or_default,
    write_config,
)
from mediascribe.exceptions import ConfigError, ValidationError
from mediascribe.io import write_text
from mediascribe.locator import default_transcriber
from mediascribe.logging import configure_logging
from mediascribe.pipeline import (
    PipelineOutcome,
    PipelineRequest,
    PipelineState,
    TranscriptionPipeline,
)
from mediascribe.reporter import PipelineWorker, ResultReporter
from mediascribe.utils import format_duration, format_size
from mediascribe.validation import run_preflight_checks, validate_input_file

app = typer.Typer(
    name="mediascribe",
    help="Offline media transcription.\n\n"
    "Normalizes audio with FFmpeg and transcribes it with whisper.cpp.",
    add_completion=False,
)
console = Console()

EXIT_CANCELLED = 130

STATE_MESSAGES = {
    PipelineState.NORMALIZING: "Preparing audio...",
    PipelineState.TRANSCRIBING: "Transcribing...",
    PipelineState.READING_RESULT: "Reading transcript...",
    PipelineState.DONE: "Done",
    PipelineState.FAILED: "Failed",
    PipelineState.CANCELLED: "Cancelled",
}


def version_callback(value: bool) -> None:
    if value:
        console.print(f"mediascribe {__version__}")
        raise typer.Exit()


def _load_config(config_file: Path | None) -> MediascribeConfig:
    try:
        return load_config_or_default(config_file)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """mediascribe - Offline media transcription."""
    pass


@app.command("transcribe")
def transcribe(
    input_file: Path = typer.Argument(..., help="Audio or video file to transcribe"),
    model: str | None = typer.Option(
        None, "--model", "-m", help="whisper.cpp model file (defaults to model_path in config)"
    ),
    transcriber: str | None = typer.Option(
        None, "--transcriber", "-t", help="whisper.cpp binary (auto-detected if not set)"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Also write the transcript to this file"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the outcome as JSON"),
    cleanup: bool = typer.Option(
        False, "--cleanup", help="Remove temporary work files after the run"
    ),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help=f"Config file (default: nearest {CONFIG_FILENAME})"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Transcribe a media file.

    Press Ctrl-C while running to cancel the external tools.
    """
    configure_logging(verbose)
    config = _load_config(config_file)
    if cleanup:
        config = config.model_copy(update={"cleanup_temp_files": True})

    model_path = model or (str(config.model_path) if config.model_path else None)
    if not model_path:
        console.print("[red]Error: No model given. Use --model or set model_path in config[/red]")
        raise typer.Exit(1)

    try:
        validate_input_file(input_file, "Input media")
        validate_input_file(Path(model_path), "Model")
    except ValidationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    request = PipelineRequest(
        model_path=model_path,
        input_media_path=str(input_file),
        transcriber_path=transcriber or default_transcriber(config),
    )

    outcome = run_with_progress(TranscriptionPipeline(config), request)

    if as_json:
        typer.echo(json.dumps(outcome.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        print_outcome(outcome)

    if outcome.ok and output is not None:
        write_text(output, outcome.transcript_text)
        if not as_json:
            console.print(f"[dim]  Saved transcript to {output} ({format_size(output)})[/dim]")

    if outcome.cancelled:
        raise typer.Exit(EXIT_CANCELLED)
    if not outcome.ok:
        raise typer.Exit(1)


def run_with_progress(
    pipeline: TranscriptionPipeline,
    request: PipelineRequest,
) -> PipelineOutcome:
    """Run request on a background worker behind a status spinner.

    Ctrl-C cancels the run; the cancelled outcome is still returned.
    """
    with console.status(STATE_MESSAGES[PipelineState.NORMALIZING]) as status:
        reporter = ResultReporter(
            on_progress=lambda state: status.update(STATE_MESSAGES.get(state, state.value))
        )
        worker = PipelineWorker(pipeline, reporter)
        worker.submit(request)
        return worker.wait(on_interrupt=lambda: status.update("Cancelling..."))


def print_outcome(outcome: PipelineOutcome) -> None:
    elapsed = format_duration(outcome.elapsed_seconds)
    message = escape(outcome.status_message)

    if outcome.ok:
        console.print(f"[green]✓[/green] {message} [dim]({elapsed})[/dim]")
        console.print(Rule("Transcript"))
        console.print(outcome.transcript_text, markup=False, highlight=False)
    elif outcome.cancelled:
        stage = outcome.stage.value if outcome.stage else "run"
        console.print(f"[yellow]Cancelled during {stage}[/yellow]")
    else:
        console.print(f"[red]✗ {message}[/red]")

    if outcome.work_file is not None and outcome.work_file.exists():
        console.print(f"[dim]  Work file kept at {outcome.work_file}[/dim]")


@app.command("doctor")
def doctor(
    transcriber: str | None = typer.Option(
        None, "--transcriber", "-t", help="whisper.cpp binary to check"
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Check that FFmpeg, whisper.cpp and scratch space are available."""
    config = _load_config(config_file)
    results = run_preflight_checks(config, transcriber or default_transcriber(config))
    checks = results["checks"]

    table = Table(title="Preflight Checks")
    table.add_column("Check", style="cyan")
    table.add_column("Details")
    table.add_column("Status", style="yellow")

    for name in ("ffmpeg", "whisper"):
        check = checks[name]
        if "error" in check:
            details = escape(check["error"])
            if check.get("install_hint"):
                details += f"\n[dim]{escape(check['install_hint'])}[/dim]"
            table.add_row(name, details, "[red]Missing[/red]")
        else:
            details = escape(check["path"])
            if check.get("version"):
                details += f" [dim]({escape(check['version'])})[/dim]"
            table.add_row(name, details, "[green]✓ OK[/green]")

    disk = checks["disk_space"]
    if "error" in disk:
        table.add_row("scratch", escape(disk["error"]), "[red]Error[/red]")
    else:
        details = f"{escape(disk['path'])} ({disk['available_mb']} MB free)"
        status = "[green]✓ OK[/green]" if disk["sufficient"] else "[red]Low space[/red]"
        table.add_row("scratch", details, status)

    console.print(table)

    if not results["passed"]:
        raise typer.Exit(1)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path(CONFIG_FILENAME), help="Where to write the config"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a starter mediascribe.yaml."""
    if path.exists() and not force:
        console.print(f"[red]Error: '{path}' already exists (use --force)[/red]")
        raise typer.Exit(1)

    write_config(create_default_config(), path)
    console.print(f"[green]✓[/green] Wrote {path}")
