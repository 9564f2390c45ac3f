"""Typer CLI for mdplanner."""

from __future__ import annotations

import logging
from datetime import date
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from mdplanner.hierarchy import TreeStructureError
from mdplanner.models import HalfDayDuration, OwnerStat, ProjectConfig, Task
from mdplanner.persistence import DEFAULT_PLAN_FILE, PlanFileError, Store
from mdplanner.project import Project

app = typer.Typer(
    name="mdplanner",
    help="Schedule a sectioned task list on its owners' working calendars.",
    no_args_is_help=True,
)
console = Console()

UNASSIGNED_OWNER = ""


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"invalid date '{value}', expected YYYY-MM-DD")


@app.callback()
def main(
    ctx: typer.Context,
    plan_file: Annotated[
        str,
        typer.Option("--file", "-f", envvar="MDPLANNER_FILE", help="Path to the JSON plan file"),
    ] = DEFAULT_PLAN_FILE,
    today: Annotated[Optional[str], typer.Option(help="Pretend today is this date (YYYY-MM-DD)")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    ctx.obj = {
        "store": Store(plan_file),
        "today": _parse_date(today) if today else None,
    }


def _require_config(config: ProjectConfig | None) -> ProjectConfig:
    if config is None:
        console.print("[red]No project config found in the plan file.[/red]")
        raise typer.Exit(1)
    return config


def _load_project(ctx: typer.Context) -> Project:
    store: Store = ctx.obj["store"]
    try:
        config, tasks, vacations = store.load()
        config = _require_config(config)
        return Project.from_config(config, tasks, vacations, today=ctx.obj["today"])
    except (PlanFileError, TreeStructureError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def progress_text(task: Task) -> str:
    text = f"{task.progress:.0f}%"
    if task.is_delayed:
        text += f" (expected {task.expected_progress:.0f}%)"
    return text


def stat_row(label: str, stat: OwnerStat) -> tuple[str, str, str, str]:
    return (
        label,
        f"{HalfDayDuration(stat.total_cost).man_days:.1f}",
        f"{HalfDayDuration(stat.finished_cost).man_days:.1f}",
        f"{stat.progress:.0f}%",
    )


def status_style(task: Task) -> str:
    """Row style: started/completed/delayed combinations, as in the web view."""
    if task.is_started:
        if task.is_completed:
            return "green"
        return "yellow" if task.is_delayed else "blue"
    return "red" if task.is_delayed else "dim"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def schedule(
    ctx: typer.Context,
    owner: Annotated[Optional[str], typer.Option("--owner", "-o", help="Only show this owner's tasks")] = None,
    keyword: Annotated[Optional[list[str]], typer.Option("--keyword", "-k", help="Only show tasks whose name contains a keyword")] = None,
    exclude: Annotated[bool, typer.Option("--exclude", help="Invert --keyword: hide matching tasks")] = False,
    hide_completed: Annotated[bool, typer.Option("--hide-completed", "-r", help="Hide completed tasks")] = False,
) -> None:
    """Display the scheduled task tree."""
    project = _load_project(ctx)
    if owner:
        project = project.only_owner(owner)
    if keyword:
        project = project.filter_keywords(keyword, reverse=exclude)
    if hide_completed:
        project = project.hide_completed()

    if not project.leaves:
        console.print("No tasks to schedule.")
        return

    table = Table(title=project.name or "Schedule")
    table.add_column("ID")
    table.add_column("Task Name", no_wrap=True)
    table.add_column("Owner")
    table.add_column("Man-days")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Progress")

    for task in project.tasks:
        if task.is_root:
            continue
        indent = "  " * (project.depth(task) - 1)
        table.add_row(
            str(task.id),
            f"{indent}[bold]{task.name}[/bold]" if task.is_group else f"{indent}{task.name}",
            task.owner or "-",
            f"{HalfDayDuration(task.cost).man_days:.1f}",
            str(project.start_date_of(task)),
            str(project.end_date_of(task)),
            progress_text(task),
            style=status_style(task),
        )

    console.print(table)


@app.command()
def status(ctx: typer.Context) -> None:
    """Project dashboard: per-owner cost and progress, start and end dates."""
    project = _load_project(ctx)
    if not project.leaves:
        console.print("No tasks found.")
        return

    table = Table(title="Owners")
    table.add_column("Owner")
    table.add_column("Man-days")
    table.add_column("Finished")
    table.add_column("Progress")
    for name in project.owners:
        table.add_row(*stat_row(name, project.owner_stat(name)))

    unassigned = project.owner_stat(UNASSIGNED_OWNER)
    if unassigned.total_cost:
        table.add_row(*stat_row("(unassigned)", unassigned))

    table.add_row(*stat_row("[bold]Total[/bold]", project.total_stat))
    console.print(table)
    console.print(f"  Start: [bold]{project.start_date.isoformat()}[/bold]")
    console.print(f"  End:   [bold]{project.project_end_date.isoformat()}[/bold]")


@app.command()
def owners(ctx: typer.Context) -> None:
    """List the distinct task owners."""
    project = _load_project(ctx)
    for name in project.owners:
        console.print(name)
