"""
CLI Interface
=============
Command-line interface for the exam importer.

Usage:
    python -m exam_import parse <file> [options]
    python -m exam_import batch <directory> [options]
    python -m exam_import submit <file>... --api-url URL
    python -m exam_import cache list|show|delete|clear|stats|retry
    python -m exam_import serve [options]
"""

from __future__ import annotations

import json
import os
import sys
import uuid
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from . import __version__
from . import cache
from .engine import ImportEngine, ImporterConfig, guess_media_type
from .exceptions import ExamImportError
from .gateway import HttpExamGateway
from .models import ImportFile
from .report import ImportReporter
from .service import ExamImportService

console = Console()

_IMPORTABLE_SUFFIXES = (".txt", ".text", ".json")


@click.group()
@click.version_option(version=__version__, prog_name="exam-import")
def cli():
    """Exam Importer — turns JSON and plain-text exams into exam records."""
    pass


@cli.command()
@click.argument("exam_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--media-type", "-m",
    default=None,
    help="Media type of the file (guessed from the extension by default)",
)
@click.option(
    "--output", "-o",
    default=None,
    help="Write the exam JSON to this file",
)
@click.option(
    "--exam-name", "-n",
    default=None,
    help="Name for exams imported from text",
)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    exam_path: str,
    media_type: str,
    output: str,
    exam_name: str,
    log_level: str,
    json_output: bool,
):
    """Import a single exam file and show the result."""

    if json_output:
        log_level = "ERROR"

    config = ImporterConfig(log_level=log_level)
    if exam_name:
        config.exam_name = exam_name

    try:
        exam = ImportEngine(config).import_file(exam_path, media_type)
    except ExamImportError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    data = exam.to_json_dict()

    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    if json_output:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Exam Importer v{__version__}[/]\n"
            f"[dim]Importing: {os.path.basename(exam_path)}[/]",
            border_style="cyan",
        )
    )
    _display_exam(exam)
    _display_report(ImportReporter().summarize(exam).model_dump())
    if output:
        console.print(f"[dim]Exam JSON written to: {output}[/]")


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--output", "-o", default="output", help="Output directory")
@click.option("--log-level", default="WARNING", help="Logging level")
def batch(directory: str, output: str, log_level: str):
    """Import every .txt and .json exam in a directory."""

    exam_files = sorted(
        p for p in Path(directory).iterdir()
        if p.suffix.lower() in _IMPORTABLE_SUFFIXES
    )

    if not exam_files:
        console.print(f"[yellow]No exam files found in: {directory}[/]")
        return

    output_dir = Path(output)
    output_dir.mkdir(parents=True, exist_ok=True)
    engine = ImportEngine(ImporterConfig(log_level=log_level))

    results = []
    errors = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Importing exams...", total=len(exam_files))

        for exam_file in exam_files:
            progress.update(task, description=f"Importing: {exam_file.name}")

            try:
                exam = engine.import_file(str(exam_file))
                target = output_dir / f"{exam_file.stem}_exam.json"
                with open(target, "w", encoding="utf-8") as f:
                    json.dump(exam.to_json_dict(), f, indent=2, ensure_ascii=False)
                results.append((exam_file.name, exam))
            except ExamImportError as e:
                errors.append((exam_file.name, str(e)))

            progress.advance(task)

    _display_batch_summary(results, errors)


@cli.command()
@click.argument("exam_paths", nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False))
@click.option("--api-url", required=True, envvar="EXAM_API_URL",
              help="Base URL of the exam service")
@click.option("--token", default=None, envvar="EXAM_API_TOKEN",
              help="Bearer token for the exam service")
@click.option("--log-level", default="WARNING", help="Logging level")
def submit(exam_paths: tuple, api_url: str, token: str, log_level: str):
    """Import exams and store them through the exam service."""

    files = []
    for path in exam_paths:
        with open(path, "rb") as f:
            files.append(ImportFile(
                id=str(uuid.uuid4()),
                name=os.path.basename(path),
                media_type=guess_media_type(path),
                data=f.read(),
            ))

    service = ExamImportService(
        HttpExamGateway(api_url, token=token),
        engine=ImportEngine(ImporterConfig(log_level=log_level)),
    )
    results = service.import_exams(files)

    table = Table(title="Import Results", border_style="cyan")
    table.add_column("File", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Cache ID", justify="right")

    for file, result in zip(files, results):
        if result.success:
            status = "[green]✓ stored[/]"
        elif result.error_type and result.error_type.value == "validation-error":
            status = "[yellow]⚠ rejected[/]"
        else:
            status = "[red]✗ FAILED[/]"
        table.add_row(
            file.name,
            status,
            str(result.invalid_cache_id or "-"),
        )

    console.print()
    console.print(table)
    console.print()

    if not all(r.success for r in results):
        sys.exit(1)


# ─── Rejected Import Cache ───────────────────────────────────────────────────


@cli.group(name="cache")
def cache_group():
    """Inspect and manage rejected imports."""
    pass


@cache_group.command(name="list")
def cache_list():
    """List rejected imports."""
    entries = cache.get_all_invalid_exams()
    if not entries:
        console.print("[green]No rejected imports cached.[/]")
        return

    table = Table(title="Rejected Imports", border_style="yellow")
    table.add_column("ID", justify="right", style="bold")
    table.add_column("Exam")
    table.add_column("Questions", justify="right")
    table.add_column("Error Type")
    table.add_column("Cached At")

    for entry in entries:
        try:
            data = json.loads(entry.exam)
        except ValueError:
            data = {}
        table.add_row(
            str(entry.id),
            str(data.get("name", "(unreadable)")),
            str(len(data.get("questions", []))),
            entry.error_type.value,
            str(entry.cached_at or ""),
        )

    console.print(table)


@cache_group.command(name="show")
@click.argument("cache_id", type=int)
def cache_show(cache_id: int):
    """Print the JSON of one rejected import."""
    entry = cache.load_invalid_exam(cache_id)
    if entry is None:
        console.print(f"[red]Error:[/] cached import {cache_id} not found")
        sys.exit(1)
    click.echo(entry.exam)


@cache_group.command(name="delete")
@click.argument("cache_id", type=int)
def cache_delete(cache_id: int):
    """Delete one rejected import."""
    if not cache.delete_invalid_exam(cache_id):
        console.print(f"[red]Error:[/] cached import {cache_id} not found")
        sys.exit(1)
    console.print(f"[green]Deleted cached import {cache_id}[/]")


@cache_group.command(name="clear")
def cache_clear():
    """Delete all rejected imports."""
    removed = cache.clear_invalid_exams()
    console.print(f"[green]Deleted {removed} cached imports[/]")


@cache_group.command(name="stats")
def cache_stats():
    """Show rejected-import statistics."""
    stats = cache.get_statistics()

    table = Table(title="Rejected Import Statistics", border_style="yellow")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Total", str(stats.total))
    table.add_row("Validation Errors", str(stats.validation_errors))
    table.add_row("General Errors", str(stats.general_errors))
    table.add_row("Most Recent", str(stats.most_recent_date or "-"))
    console.print(table)


@cache_group.command(name="retry")
@click.argument("cache_id", type=int)
@click.option("--api-url", required=True, envvar="EXAM_API_URL",
              help="Base URL of the exam service")
@click.option("--token", default=None, envvar="EXAM_API_TOKEN",
              help="Bearer token for the exam service")
def cache_retry(cache_id: int, api_url: str, token: str):
    """Submit a rejected import to the exam service again."""
    service = ExamImportService(HttpExamGateway(api_url, token=token))
    result = service.retry_cached(cache_id)

    if result.success:
        console.print(f"[green]✓ Cached import {cache_id} stored[/]")
        return

    if result.invalid_cache_id:
        console.print(
            f"[yellow]⚠ Still rejected, cached again as "
            f"{result.invalid_cache_id}[/]"
        )
    else:
        console.print(f"[red]✗ Retry of cached import {cache_id} failed[/]")
    sys.exit(1)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP import service."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Exam Import Service[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_exam(exam):
    """Display exam metadata and its questions."""
    console.print()

    table = Table(title="Exam Information", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Name", exam.name)
    table.add_row("Description", exam.description or "(none)")
    table.add_row("Status", exam.status_type.value if exam.status_type else "-")
    table.add_row("Duration", f"{exam.duration} min" if exam.duration else "-")
    table.add_row("Points To Succeed", str(exam.points_to_succeeded))
    table.add_row("Max Questions", str(exam.max_questions_real_exam))
    console.print(table)
    console.print()

    questions = Table(title="Questions", border_style="cyan")
    questions.add_column("#", justify="right", style="bold")
    questions.add_column("Type")
    questions.add_column("Points", justify="right")
    questions.add_column("Answers", justify="right")
    questions.add_column("Text")

    for position, q in enumerate(exam.questions, start=1):
        text = q.question_text
        if len(text) > 60:
            text = text[:57] + "..."
        questions.add_row(
            str(position),
            q.type.value,
            str(q.points_total),
            str(len(q.answers)),
            text,
        )

    console.print(questions)
    console.print()


def _display_report(report: dict):
    """Display the import report as a rich table."""
    table = Table(title="Import Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    def status_icon(count):
        if count == 0:
            return "[green]✓[/]"
        return "[yellow]⚠[/]"

    total = report.get("total_questions", 0)
    table.add_row(
        "Total Questions",
        str(total),
        "[green]✓[/]" if total > 0 else "[red]✗[/]",
    )
    table.add_row("Total Points", str(report.get("total_points", 0)), "")
    table.add_row(
        "Points To Succeed", str(report.get("points_to_succeeded")), ""
    )

    for question_type, count in sorted(report.get("questions_by_type", {}).items()):
        table.add_row(f"  {question_type}", str(count), "")

    without_answers = report.get("questions_without_answers", [])
    table.add_row(
        "Questions Without Answers",
        str(len(without_answers)),
        status_icon(len(without_answers)),
    )

    without_correct = report.get("questions_without_correct_answer", [])
    table.add_row(
        "Questions Without Correct Answer",
        str(len(without_correct)),
        status_icon(len(without_correct)),
    )

    unassigned = report.get("unassigned_answers", 0)
    table.add_row(
        "Unassigned Answers",
        str(unassigned),
        status_icon(unassigned),
    )

    console.print(table)
    console.print()


def _display_batch_summary(results, errors):
    """Display batch import summary."""
    console.print()

    table = Table(title="Batch Import Summary", border_style="cyan")
    table.add_column("File", style="bold")
    table.add_column("Questions", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Pass At", justify="right")
    table.add_column("Status", justify="center")

    total_questions = 0

    for name, exam in results:
        total_questions += len(exam.questions)
        table.add_row(
            name,
            str(len(exam.questions)),
            str(exam.points_total),
            str(exam.points_to_succeeded),
            "[green]✓[/]",
        )

    for name, error in errors:
        table.add_row(name, "-", "-", "-", "[red]✗ FAILED[/]")

    console.print(table)
    console.print()
    console.print(
        f"[bold]Total:[/] {total_questions} questions from "
        f"{len(results)} files, {len(errors)} failures"
    )
    for name, error in errors:
        console.print(f"[red]{name}:[/] {error}")
    console.print()


# ─── Entry point (for python -m exam_import.cli) ─────────────────────────────


if __name__ == "__main__":
    cli()
