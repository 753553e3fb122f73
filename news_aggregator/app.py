"""Typer CLI entrypoint for the news aggregator."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Sequence

import typer
from typer import BadParameter
from rich import box
from rich.console import Console
from rich.table import Table

from .config import Category, ConfigRepository, ScheduleConfig, ScheduleType, SourceConfig
from .engine import FilterOptions, NewsItem
from .errors import NewsAggregatorError
from .logging_conf import configure_logging, tail_log
from .orchestrator import Orchestrator
from .scheduler import RunResult

app = typer.Typer(
    help="AI news aggregator command line",
    no_args_is_help=True,
    rich_markup_mode=None,
)
source_app = typer.Typer(
    name="source",
    help="Feed source management",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Log inspection",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator: Orchestrator


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    configure_logging(verbose=verbose or global_config.verbose, log_dir=repository.locator.logs_dir)
    orchestrator = Orchestrator(config_repository=repository)
    return AppState(repository=repository, orchestrator=orchestrator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _parse_category(value: Optional[str]) -> Category | str | None:
    if value is None:
        return None
    text = value.strip()
    if text.lower() == "all":
        return "all"
    for category in Category:
        if text == category.value or text.upper() == category.name:
            return category
    choices = ", ".join(category.name for category in Category)
    raise BadParameter(f"Unknown category `{value}`. Use one of: all, {choices}")


def _format_schedule(schedule: ScheduleConfig) -> str:
    if schedule.type is ScheduleType.CRON:
        return f"cron ({schedule.value}, {schedule.timezone})"
    return f"interval ({schedule.value})"


def _render_run_result(result: RunResult) -> Table:
    table = Table(title="Collection result", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Status", "[green]success[/green]" if result.success else "[red]failed[/red]")
    table.add_row("Items ingested", str(result.items_ingested))
    table.add_row("Duration", f"{result.duration_ms} ms")
    if result.error:
        table.add_row("Error", result.error)
    return table


def _render_items_table(items: Sequence[NewsItem]) -> Table:
    table = Table(title=f"News items · {len(items)}", box=box.SIMPLE_HEAD)
    table.add_column("Published", style="green", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Source", style="cyan")
    table.add_column("Title", overflow="fold")
    for item in items:
        table.add_row(
            item.published_at.strftime("%Y-%m-%d %H:%M"),
            item.category.value,
            item.source_name,
            item.title,
        )
    return table


def _render_sources_table(sources: Sequence[SourceConfig]) -> Table:
    table = Table(title=f"Sources · {len(sources)}", box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Default category", style="magenta")
    table.add_column("Endpoint", style="green", overflow="fold")
    for source in sources:
        table.add_row(source.name, source.default_category.value, source.endpoint)
    return table


def _collect(state: AppState, quiet: bool = False) -> RunResult:
    result = state.orchestrator.collect_once()
    if not quiet:
        console.print(_render_run_result(result))
    return result


def _wait_for_interrupt() -> None:
    while True:
        time.sleep(1)


app.add_typer(source_app, name="source", help="Manage feed sources (list/add/remove)")
app.add_typer(log_app, name="log", help="Show log files")


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True)
) -> None:
    ctx.obj = build_state(verbose)
    ctx.call_on_close(ctx.obj.orchestrator.close)


@app.command("collect", help="Run one collection over every source now.")
def collect(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    result = _collect(state)
    report = getattr(state.orchestrator.coordinator, "last_report", None)
    if report is not None and report.outcomes:
        table = Table(title="Sources", box=box.SIMPLE_HEAD)
        table.add_column("Source", style="cyan")
        table.add_column("Items", justify="right")
        table.add_column("Error", style="red", overflow="fold")
        for outcome in report.outcomes:
            table.add_row(outcome.source_name, str(outcome.items), outcome.error or "")
        console.print(table)
    if not result.success:
        raise typer.Exit(code=1)


@app.command("items", help="Collect, then list stored items newest first.")
def items(
    ctx: typer.Context,
    category: Optional[str] = typer.Option(None, "--category", help="Category label, member name or `all`."),
    source: Optional[str] = typer.Option(None, "--source", help="Only items from this source."),
    limit: int = typer.Option(20, "--limit", min=0, help="Maximum rows (0 for all)."),
    offset: int = typer.Option(0, "--offset", min=0, help="Rows to skip."),
    collect_first: bool = typer.Option(True, "--collect/--no-collect", help="Run a collection before listing."),
) -> None:
    state = _get_state(ctx)
    options = FilterOptions(category=_parse_category(category), source=source, limit=limit, offset=offset)
    if collect_first:
        _collect(state, quiet=True)
    found = state.orchestrator.query_items(options)
    if not found:
        console.print("No items matched.", style="yellow")
        return
    console.print(_render_items_table(found))


@app.command("stats", help="Show store, category and scheduler statistics.")
def stats(
    ctx: typer.Context,
    collect_first: bool = typer.Option(True, "--collect/--no-collect", help="Run a collection first."),
) -> None:
    state = _get_state(ctx)
    if collect_first:
        _collect(state, quiet=True)
    store_stats = state.orchestrator.store_stats()
    run_stats = state.orchestrator.scheduler_stats()

    summary = Table(title="Store", box=box.SIMPLE_HEAD, show_header=False)
    summary.add_column("Field", style="cyan")
    summary.add_column("Value")
    summary.add_row("Total items", str(store_stats.total_items))
    summary.add_row("Oldest", str(store_stats.oldest_item or "-"))
    summary.add_row("Newest", str(store_stats.newest_item or "-"))
    summary.add_row("Estimated memory", f"{store_stats.estimated_memory_bytes} bytes")
    summary.add_row("Runs (ok/failed)", f"{run_stats.successful_runs}/{run_stats.failed_runs}")
    summary.add_row("Average run", f"{run_stats.average_run_duration_ms:.0f} ms")
    console.print(summary)

    categories = Table(title="Categories", box=box.SIMPLE_HEAD)
    categories.add_column("Category", style="magenta")
    categories.add_column("Count", justify="right")
    for entry in state.orchestrator.category_counts():
        categories.add_row(entry["category"].value, str(entry["count"]))
    console.print(categories)

    if store_stats.source_counts:
        sources = Table(title="Sources", box=box.SIMPLE_HEAD)
        sources.add_column("Source", style="cyan")
        sources.add_column("Count", justify="right")
        for name, count in sorted(store_stats.source_counts.items()):
            sources.add_row(name, str(count))
        console.print(sources)


@app.command("integrity", help="Check stored items for consistency.")
def integrity(
    ctx: typer.Context,
    collect_first: bool = typer.Option(True, "--collect/--no-collect", help="Run a collection first."),
) -> None:
    state = _get_state(ctx)
    if collect_first:
        _collect(state, quiet=True)
    report = state.orchestrator.integrity_report()
    console.print(f"Checked {report.total_items} items, {report.valid_items} valid.")
    if report.is_valid:
        console.print("Store is consistent.", style="green")
        return
    for issue in report.issues:
        console.print(f"- {issue}", style="red")
    raise typer.Exit(code=1)


@app.command("serve", help="Run the periodic scheduler until interrupted.")
def serve(
    ctx: typer.Context,
    cron: Optional[str] = typer.Option(None, "--cron", help="Five-field cron expression."),
    interval: Optional[float] = typer.Option(None, "--interval", help="Run every N seconds instead of cron."),
    collect_first: bool = typer.Option(True, "--collect/--no-collect", help="Run a collection before arming."),
) -> None:
    state = _get_state(ctx)
    if cron and interval:
        raise BadParameter("Use either --cron or --interval, not both.")
    schedule = state.orchestrator.global_config.schedule
    try:
        if cron:
            schedule = ScheduleConfig(
                type=ScheduleType.CRON,
                value=cron,
                auto_start=schedule.auto_start,
                timezone=schedule.timezone,
            )
        elif interval:
            schedule = ScheduleConfig(
                type=ScheduleType.INTERVAL,
                value=interval,
                auto_start=schedule.auto_start,
                timezone=schedule.timezone,
            )
    except ValueError as exc:
        raise BadParameter(str(exc)) from exc
    if collect_first:
        _collect(state)
    try:
        state.orchestrator.start(schedule)
    except NewsAggregatorError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    console.print(f"Scheduler armed: {_format_schedule(schedule)}. Press Ctrl+C to stop.", style="green")
    try:
        _wait_for_interrupt()
    except KeyboardInterrupt:
        console.print("Stopping scheduler.", style="yellow")
    finally:
        state.orchestrator.stop()


@source_app.command("list", help="List configured feed sources.")
def source_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    sources = state.repository.list_sources()
    if not sources:
        console.print("No sources configured. Use `news-aggregator source add`.", style="yellow")
        raise typer.Exit(code=0)
    console.print(_render_sources_table(sources))


@source_app.command("add", help="Add or replace a feed source.")
def source_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Source name."),
    endpoint: str = typer.Argument(..., help="Feed URL."),
    category: str = typer.Option(Category.AI_MODELS.name, "--category", help="Default category."),
) -> None:
    state = _get_state(ctx)
    default_category = _parse_category(category)
    if not isinstance(default_category, Category):
        raise BadParameter("A concrete category is required.")
    try:
        config = SourceConfig(name=name, endpoint=endpoint, default_category=default_category)
    except ValueError as exc:
        console.print(f"Invalid source: {exc}", style="red")
        raise typer.Exit(code=1)
    seeded = state.repository.seed_default_sources()
    if seeded:
        console.print(f"Wrote {seeded} built-in sources to {state.repository.locator.sources_dir}.", style="cyan")
    path = state.repository.save_source(config)
    console.print(f"Source `{config.name}` saved to {path}.", style="green")


@source_app.command("remove", help="Remove a configured feed source.")
def source_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Source name."),
    yes: bool = typer.Option(False, "--yes", help="Skip confirmation.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    if not yes and not typer.confirm(f"Remove source `{name}`?"):
        console.print("Cancelled.", style="yellow")
        raise typer.Exit(code=0)
    if not state.repository.delete_source(name):
        console.print(f"Source `{name}` not found.", style="red")
        raise typer.Exit(code=1)
    console.print(f"Source `{name}` removed.", style="green")


@log_app.command("show", help="Show the most recent log lines.")
def log_show(
    ctx: typer.Context,
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines."),
    errors: bool = typer.Option(False, "--errors", help="Show error.log instead.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    filename = "error.log" if errors else "aggregator.log"
    lines = tail_log(state.repository.locator.logs_dir / filename, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{filename} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
