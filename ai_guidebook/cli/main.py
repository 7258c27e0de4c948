"""
CLI interface for AI Guidebook.

Log AI tool usage, browse and edit entries, view the usage dashboard and
export the usage declaration.
"""

import sys
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ai_guidebook.config.loader import AppConfig, load_app_config
from ai_guidebook.config.log_setup import configure_logging
from ai_guidebook.core.aggregator import ALL, FilterSpec, TimeRange, aggregate
from ai_guidebook.core.declaration import generate_declaration
from ai_guidebook.core.errors import (
    EmptyDeclarationError,
    GuidebookError,
    PartialBatchError,
    InvalidRecordIdError,
    ValidationError,
)
from ai_guidebook.core.service import RecordService
from ai_guidebook.core.titles import build_assignment_title, parse_assignment_title
from ai_guidebook.demo.seed_demo_data import seed_demo_records
from ai_guidebook.storage.models import AI_TOOLS, PURPOSE_CATEGORIES, UsageRecord
from ai_guidebook.storage.repository import get_repository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

NO_VALUE = "—"


def get_service(config: AppConfig) -> RecordService:
    """Build the record service for the configured database."""
    return RecordService(get_repository(config.storage.db_path))


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj if isinstance(ctx.obj, AppConfig) else load_app_config()


def _fail(error: Exception) -> None:
    """Print an error and exit with the failing code."""
    if isinstance(error, InvalidRecordIdError):
        console.print(f"[red]Error:[/] {escape(str(error))}")
    elif isinstance(error, ValidationError):
        console.print("[red]Error:[/] Invalid entry")
        for name, message in error.field_errors.items():
            console.print(f"  [red]•[/] {name} {message}")
    elif isinstance(error, PartialBatchError):
        console.print(f"[red]Error:[/] {escape(str(error))}")
        for key, failure in error.failures.items():
            console.print(f"  [red]•[/] {key}: {escape(str(failure))}")
    else:
        console.print(f"[red]Error:[/] {escape(str(error))}")
    sys.exit(EXIT_CODE_FAIL)


def _optional(value: Optional[str]) -> Optional[str]:
    """Blank form input means "no value"."""
    if value is None or not value.strip():
        return None
    return value


def _build_payload(
    title: str,
    course: str,
    task_type: str,
    date_of_use: str,
    tool: Optional[str],
    purpose: str,
    explanation: Optional[str],
    prompt: Optional[str],
    output: Optional[str],
    modified: Optional[str],
) -> Dict[str, Optional[str]]:
    assignment_title = build_assignment_title(course, task_type, title) if title.strip() else ""
    return {
        "assignment_title": assignment_title,
        "date_of_use": date_of_use,
        "tool": tool,
        "purpose_category": purpose,
        "optional_explanation": _optional(explanation),
        "prompt_query_used": _optional(prompt),
        "output_received": _optional(output),
        "modified_output": _optional(modified),
    }


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML configuration file"
    )
):
    """AI Guidebook CLI."""
    try:
        app_config = load_app_config(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    configure_logging(app_config.logging.level)
    ctx.obj = app_config

    if ctx.invoked_subcommand is None:
        console.print("AI Guidebook - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Initialize the AI Guidebook database."""
    db_path = _config(ctx).storage.db_path
    try:
        initialize_schema(db_path)
        console.print(f"[green]✓[/] Database initialized at {db_path}")
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def health(ctx: typer.Context):
    """Check that the record service is up."""
    try:
        status = get_service(_config(ctx)).health()["status"]
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] status: {status}")


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Option("", "--title", help="Assignment name"),
    course: str = typer.Option("", "--course", help="Course code, e.g. TDT4242"),
    task_type: str = typer.Option("", "--task-type", help="Task type, e.g. Essay"),
    date_of_use: Optional[str] = typer.Option(
        None,
        "--date",
        "-d",
        help="Date the tool was used (YYYY-MM-DD, defaults to today)"
    ),
    tools: Optional[List[str]] = typer.Option(
        None,
        "--tool",
        "-t",
        help=f"AI tool used; repeat for several tools. Suggested: {', '.join(AI_TOOLS)}"
    ),
    purpose: str = typer.Option(
        "",
        "--purpose",
        "-p",
        help=f"Purpose category. Suggested: {', '.join(PURPOSE_CATEGORIES)}"
    ),
    explanation: Optional[str] = typer.Option(None, "--explanation", help="Purpose details"),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Prompt or query used"),
    output: Optional[str] = typer.Option(None, "--output", help="Output received"),
    modified: Optional[str] = typer.Option(None, "--modified", help="How the output was modified"),
):
    """Log AI tool usage. One entry is created per --tool."""
    date_of_use = date_of_use or date.today().isoformat()
    payloads = [
        _build_payload(title, course, task_type, date_of_use, tool, purpose,
                       explanation, prompt, output, modified)
        for tool in (tools or [None])
    ]

    try:
        records = get_service(_config(ctx)).create_batch(payloads)
    except GuidebookError as e:
        _fail(e)

    for record in records:
        console.print(f"[green]✓[/] Logged entry {record.id}: {escape(record.tool)} for {escape(record.assignment_title)}")


@app.command(name="list")
def list_entries(ctx: typer.Context):
    """List all entries, most recent first."""
    try:
        records = get_service(_config(ctx)).list()
    except GuidebookError as e:
        _fail(e)

    if not records:
        console.print("\n[dim]No entries yet. Use `ai-guidebook add` to log AI usage.[/]")
        return

    noun = "entry" if len(records) == 1 else "entries"
    table = Table(title=f"{len(records)} {noun}")
    for column in ("ID", "Date", "Assignment", "Course", "Task Type", "Tool", "Purpose"):
        table.add_column(column)
    for record in records:
        parsed = parse_assignment_title(record.assignment_title)
        table.add_row(
            str(record.id),
            escape(record.date_of_use),
            escape(parsed.assignment_name),
            escape(parsed.course) or NO_VALUE,
            escape(parsed.task_type) or NO_VALUE,
            escape(record.tool),
            escape(record.purpose_category),
        )
    console.print(table)


@app.command()
def show(ctx: typer.Context, record_id: str = typer.Argument(..., metavar="ID")):
    """Show every field of one entry."""
    try:
        record = get_service(_config(ctx)).get(record_id)
    except GuidebookError as e:
        _fail(e)
    _display_record(record)


@app.command()
def edit(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., metavar="ID"),
    title: Optional[str] = typer.Option(None, "--title", help="Assignment name"),
    course: Optional[str] = typer.Option(None, "--course", help="Course code"),
    task_type: Optional[str] = typer.Option(None, "--task-type", help="Task type"),
    date_of_use: Optional[str] = typer.Option(None, "--date", "-d", help="Date of use (YYYY-MM-DD)"),
    tool: Optional[str] = typer.Option(None, "--tool", "-t", help="AI tool used"),
    purpose: Optional[str] = typer.Option(None, "--purpose", "-p", help="Purpose category"),
    explanation: Optional[str] = typer.Option(None, "--explanation", help="Purpose details"),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Prompt or query used"),
    output: Optional[str] = typer.Option(None, "--output", help="Output received"),
    modified: Optional[str] = typer.Option(None, "--modified", help="How the output was modified"),
):
    """Edit an entry. Options left out keep their current value; pass "" to clear optional text."""
    service = get_service(_config(ctx))
    try:
        current = service.get(record_id)
        parsed = parse_assignment_title(current.assignment_title)
        payload = _build_payload(
            title if title is not None else parsed.assignment_name,
            course if course is not None else parsed.course,
            task_type if task_type is not None else parsed.task_type,
            date_of_use if date_of_use is not None else current.date_of_use,
            tool if tool is not None else current.tool,
            purpose if purpose is not None else current.purpose_category,
            explanation if explanation is not None else current.optional_explanation,
            prompt if prompt is not None else current.prompt_query_used,
            output if output is not None else current.output_received,
            modified if modified is not None else current.modified_output,
        )
        record = service.update(current.id, payload)
    except GuidebookError as e:
        _fail(e)

    console.print(f"[green]✓[/] Entry {record.id} updated")


@app.command()
def delete(ctx: typer.Context, record_id: str = typer.Argument(..., metavar="ID")):
    """Delete one entry."""
    try:
        get_service(_config(ctx)).delete(record_id)
    except GuidebookError as e:
        _fail(e)
    console.print("[green]✓[/] Entry deleted")


@app.command(name="delete-all")
def delete_all(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")
):
    """Delete every entry."""
    service = get_service(_config(ctx))
    try:
        records = service.list()
        if not records:
            console.print("[dim]No entries to delete.[/]")
            return
        if not yes and not typer.confirm(f"Delete all {len(records)} entries? This cannot be undone."):
            console.print("Aborted")
            return
        count = service.delete_all()
    except GuidebookError as e:
        _fail(e)

    console.print(f"[green]✓[/] Deleted {count} entries")


def _parse_date_option(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}", param_hint=name)


@app.command()
def dashboard(
    ctx: typer.Context,
    course: str = typer.Option("", "--course", help="Match course (substring)"),
    task_type: str = typer.Option("", "--task-type", help="Match task type (substring)"),
    tool: str = typer.Option(ALL, "--tool", "-t", help="Exact tool, or 'all'"),
    purpose: str = typer.Option(ALL, "--purpose", "-p", help="Exact purpose category, or 'all'"),
    time_range: Optional[TimeRange] = typer.Option(
        None,
        "--range",
        "-r",
        help="Time period (defaults to the configured range, or custom when --from/--to is given)"
    ),
    from_date: Optional[str] = typer.Option(None, "--from", help="Custom range start (YYYY-MM-DD)"),
    to_date: Optional[str] = typer.Option(None, "--to", help="Custom range end (YYYY-MM-DD)"),
):
    """Summarize usage with optional filters."""
    config = _config(ctx)
    start = _parse_date_option(from_date, "--from")
    end = _parse_date_option(to_date, "--to")
    if time_range is None:
        time_range = TimeRange.CUSTOM if (start or end) else config.dashboard.default_time_range

    try:
        spec = FilterSpec(
            course=course,
            task_type=task_type,
            tool=tool,
            purpose_category=purpose,
            time_range=time_range,
            from_date=start,
            to_date=end,
        )
    except ValueError as e:
        _fail(e)

    try:
        records = get_service(config).list()
    except GuidebookError as e:
        _fail(e)

    result = aggregate(records, spec, top_n=config.dashboard.top_tools_limit)
    _display_summary(result)


@app.command()
def declare(
    ctx: typer.Context,
    output_dir: Path = typer.Option(
        Path("."),
        "--output-dir",
        "-o",
        help="Directory to write the declaration to"
    )
):
    """Write the AI usage declaration for all entries."""
    config = _config(ctx)
    try:
        records = get_service(config).list()
        if not records:
            raise EmptyDeclarationError()
    except GuidebookError as e:
        _fail(e)

    declaration = generate_declaration(records, student_name=config.declaration.student_name)
    path = output_dir / declaration.filename
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(declaration.text, encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Error writing declaration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Declaration written to {path}")


@app.command(name="seed-demo")
def seed_demo(ctx: typer.Context):
    """Insert a handful of demo entries."""
    try:
        records = seed_demo_records(get_service(_config(ctx)))
    except GuidebookError as e:
        _fail(e)
    console.print(f"[green]✓[/] Inserted {len(records)} demo entries")


def _display_record(record: UsageRecord):
    parsed = parse_assignment_title(record.assignment_title)

    def text(value):
        return escape(value) if value else NO_VALUE

    console.print(f"\n[bold]{escape(parsed.assignment_name)}[/bold]  (entry {record.id})")
    console.print("-" * 40)
    console.print(f"Course: {text(parsed.course)}")
    console.print(f"Task type: {text(parsed.task_type)}")
    console.print(f"Date of use: {text(record.date_of_use)}")
    console.print(f"AI tool: {text(record.tool)}")
    console.print(f"Purpose category: {text(record.purpose_category)}")
    console.print(f"Purpose details: {text(record.optional_explanation)}")
    console.print(f"Prompt: {text(record.prompt_query_used)}")
    console.print(f"Output: {text(record.output_received)}")
    console.print(f"Modifications: {text(record.modified_output)}")
    console.print(f"Logged at: {record.created_at.isoformat(sep=' ', timespec='seconds')}")


def _display_summary(result):
    """Display dashboard totals, usage over time and top tools."""
    summary = result.summary
    console.print("\n[bold]Usage Dashboard[/bold]")
    console.print("-" * 40)
    console.print(f"Total logs: {summary.total}")
    console.print(f"Unique tools: {summary.unique_tools}")
    console.print(f"Assignments logged: {summary.unique_assignments}")
    console.print(f"Top purpose: {escape(summary.top_purpose_category or NO_VALUE)}")

    if summary.total == 0:
        console.print("\n[dim]No data for the selected filters.[/]")
        return

    # Records with unparseable dates count in totals but have no month
    if summary.monthly_usage:
        over_time = Table(title="Usage Over Time")
        over_time.add_column("Period")
        over_time.add_column("Logs", justify="right")
        for bucket in summary.monthly_usage:
            over_time.add_row(bucket.label, str(bucket.count))
        console.print(over_time)

    top_tools = Table(title="Top Tools")
    top_tools.add_column("Tool")
    top_tools.add_column("Logs", justify="right")
    for item in summary.top_tools:
        top_tools.add_row(escape(item.tool), str(item.count))
    console.print(top_tools)


if __name__ == "__main__":
    app()
