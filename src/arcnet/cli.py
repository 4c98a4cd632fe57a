"""Command-line interface for arcnet."""

from __future__ import annotations

import csv
import io
import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer

from .config import ArcnetConfig
from .exceptions import ArcnetError, CycleDetectedError
from .loader import Project, discover_config, load_project, write_tasks
from .logger import setup_logger
from .models import ScheduleResult, StartOverride, needs_conversion
from .network import PlanningService, check_acyclic, convert_aon_to_aoa
from .workload import daily_load, summarize_workload

app = typer.Typer(
    name="arcnet",
    help="Critical Path Method scheduling for activity-on-arc project networks",
    add_completion=False,
)

CSV_COLUMNS = [
    "id",
    "name",
    "duration",
    "early_start",
    "early_finish",
    "late_start",
    "late_finish",
    "total_float",
    "free_float",
    "is_critical",
]


class OutputFormat(str, Enum):
    """Formats for the schedule command."""

    TEXT = "text"
    JSON = "json"
    CSV = "csv"


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: arcnet_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for arcnet commands."""
    setup_logger(verbose)
    ctx.obj = config


def _load(ctx: typer.Context, file: Path) -> tuple[Project, ArcnetConfig]:
    """Load a project file and its config, exiting with code 1 on failure.

    The config comes from --config when given, else from discovery around the file.
    """
    try:
        return load_project(file), discover_config(file, ctx.obj)
    except (ArcnetError, FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _fail(errors: list[str]) -> NoReturn:
    for error in errors:
        typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1)


def _parse_overrides(values: list[str] | None) -> dict[str, StartOverride]:
    """Parse ``ID=START`` option values."""
    overrides: dict[str, StartOverride] = {}
    for value in values or []:
        task_id, sep, start = value.partition("=")
        try:
            if not sep:
                raise ValueError
            overrides[task_id.strip()] = StartOverride(float(start))
        except ValueError:
            typer.echo(f"Error: Invalid override '{value}'. Expected ID=START", err=True)
            raise typer.Exit(1) from None
    return overrides


def _format_text(name: str, result: ScheduleResult) -> str:
    lines = [f"Project: {name}", ""]
    header = (
        f"{'Task':<8} {'Name':<28} {'Dur':>6} "
        f"{'ES':>7} {'EF':>7} {'LS':>7} {'LF':>7} {'TF':>7} {'FF':>7}"
    )
    lines.append(header)
    lines.append("-" * len(header))
    for task in result.tasks:
        timing = result.timings[task.id]
        marker = " *" if timing.is_critical else ""
        lines.append(
            f"{task.id:<8} {task.name[:28]:<28} {task.duration:>6g} "
            f"{timing.early_start:>7g} {timing.early_finish:>7g} "
            f"{timing.late_start:>7g} {timing.late_finish:>7g} "
            f"{timing.total_float:>7g} {timing.free_float:>7g}{marker}"
        )
    lines.append("")
    lines.append(f"Project duration: {result.project_duration:g} days")
    lines.append(f"Critical path: {' -> '.join(str(node) for node in result.critical_path)}")
    for task_id, start in result.applied_overrides.items():
        lines.append(f"Override: {task_id} starts at day {start:g}")
    return "\n".join(lines)


def _format_json(name: str, result: ScheduleResult) -> str:
    data: dict[str, Any] = {
        "name": name,
        "project_duration": result.project_duration,
        "critical_path": result.critical_path,
        "tasks": result.to_records(),
        "events": [
            {"id": node, "early": early, "late": result.late_event_time[node]}
            for node, early in sorted(result.early_event_time.items())
        ],
    }
    if result.applied_overrides:
        data["overrides"] = result.applied_overrides
    return json.dumps(data, indent=2)


def _format_csv(result: ScheduleResult) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for record in result.to_records():
        writer.writerow(record)
    return buffer.getvalue()


def _emit(text: str, output: Path | None, what: str) -> None:
    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"{what} written to {output}")
    else:
        typer.echo(text)


@app.command()
def schedule(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")],
    *,
    override: Annotated[
        list[str] | None,
        typer.Option(
            "--override",
            help="Pin a task's early start, as ID=START (e.g. 2-4=6). Repeatable",
        ),
    ] = None,
    format: Annotated[  # noqa: A002 - 'format' is appropriate name for CLI option
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.TEXT,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Compute the CPM schedule of a project."""
    overrides = _parse_overrides(override)
    project, config = _load(ctx, file)

    result = PlanningService(config).plan(project.tasks, overrides or None)
    if not result.is_valid:
        _fail(result.errors)

    if format == OutputFormat.JSON:
        text = _format_json(project.name, result)
    elif format == OutputFormat.CSV:
        text = _format_csv(result)
    else:
        text = _format_text(project.name, result)
    _emit(text, output, "Schedule")


@app.command()
def convert(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Path to an AON project YAML file")],
    *,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    no_sink: Annotated[
        bool,
        typer.Option("--no-sink", help="Keep terminal events separate instead of joining them"),
    ] = False,
    hours_per_day: Annotated[
        float | None,
        typer.Option("--hours-per-day", help="Working hours per day. Overrides config", min=0.01),
    ] = None,
) -> None:
    """Convert an activity-on-node task list into an activity-on-arc network."""
    project, config = _load(ctx, file)

    if not needs_conversion(project.tasks):
        typer.echo("Error: Task list is already in activity-on-arc form", err=True)
        raise typer.Exit(1)

    updates: dict[str, Any] = {}
    if no_sink:
        updates["create_sink"] = False
    if hours_per_day is not None:
        updates["hours_per_day"] = hours_per_day
    options = config.conversion.model_copy(update=updates)

    try:
        check_acyclic(project.tasks)
    except CycleDetectedError as e:
        _fail([str(e)])

    tasks = convert_aon_to_aoa(project.tasks, options)
    if output:
        write_tasks(output, project.name, tasks)
        typer.echo(f"Converted network written to {output}")
        return

    buffer = io.StringIO()
    for task in tasks:
        label = "dummy" if task.is_dummy else task.name
        buffer.write(f"{task.id:<8} {task.duration:>6g}  {label}\n")
    typer.echo(buffer.getvalue().rstrip("\n"))


@app.command()
def validate(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")],
) -> None:
    """Check a project for structural problems."""
    project, config = _load(ctx, file)

    _, errors = PlanningService(config).prepare(project.tasks)
    if errors:
        _fail(errors)
    typer.echo("Network is valid")


@app.command()
def workload(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")],
) -> None:
    """Show the daily performer load with every task at its early start."""
    project, config = _load(ctx, file)

    result = PlanningService(config).plan(project.tasks)
    if not result.is_valid:
        _fail(result.errors)

    typer.echo(f"{'Day':>5} {'Load':>5}")
    for entry in daily_load(result):
        typer.echo(f"{entry.day:>5} {entry.load:>5} {'#' * entry.load}")

    summary = summarize_workload(result, config.workload)
    typer.echo("")
    typer.echo(f"Total labor intensity: {summary.total_labor_intensity:g} person-hours")
    typer.echo(f"Total performers: {summary.total_performers}")
    typer.echo(f"Average load: {summary.average_load:.1f}%")
    typer.echo(f"Peak load: {summary.peak_load}")
    typer.echo(f"Largest crew: {summary.largest_crew}")
    if summary.exceeds_limit:
        typer.echo(
            f"Warning: a task needs more than the {config.workload.resource_limit} "
            "performers available"
        )


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
