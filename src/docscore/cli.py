"""Command-line interface for DocScore."""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Tuple

import click
import structlog
from pydantic import SecretStr
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from docscore import __version__
from docscore.batch import batch_to_dict, find_duplicates, render_batch_markdown, score_batch
from docscore.config import Config, load_config
from docscore.container import DependencyContainer, build_cache, build_history
from docscore.errors import ConfigError, ContentValidationError, SemanticEvaluationError
from docscore.export import batch_filename, export_report, get_exporter
from docscore.export.markdown import STATUS_LABELS, severity_icon
from docscore.observability import configure_logging
from docscore.protocols import ProgressEvent, ReportStatus, ScoreReport
from docscore.semantic import RemoteSemanticEvaluator
from docscore.utils import atomic_write_text, format_score

console = Console()
logger = structlog.get_logger(__name__)

EXIT_CONFIG_ERROR = 1
EXIT_INVALID_CONTENT = 2

STATUS_STYLES = {
    ReportStatus.GREEN: "green",
    ReportStatus.YELLOW: "yellow",
    ReportStatus.RED: "red",
}


def _load_settings(ctx: click.Context, api_key: Optional[str] = None) -> Config:
    """Load the config file named on the command line (or discovered), apply CLI overrides."""
    try:
        config = load_config(ctx.obj["config_path"])
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)

    if ctx.obj.get("log_level"):
        config.monitoring = config.monitoring.model_copy(update={"log_level": ctx.obj["log_level"]})
    if api_key:
        config.semantic = config.semantic.model_copy(update={"api_key": SecretStr(api_key)})
    configure_logging(config.monitoring)
    return config


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        sys.exit(EXIT_INVALID_CONTENT)


def _summary_table(report: ScoreReport) -> Table:
    table = Table(title=f"{report.meta.title or report.meta.url}")
    table.add_column("Category", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right")

    for category in sorted(report.categories.values(), key=lambda c: c.weight, reverse=True):
        if category.estimated or category.score is None:
            score = "[dim]N/A (estimated)[/dim]" if category.estimated else "[dim]N/A[/dim]"
        else:
            score = f"{format_score(category.score)}/10"
        table.add_row(category.name, score, f"{category.weight:.0%}")

    style = STATUS_STYLES[report.status]
    table.add_row(
        "[bold]Composite[/bold]",
        f"[bold {style}]{format_score(report.composite_score)}/10[/bold {style}]",
        "100%",
    )
    return table


def _print_report(report: ScoreReport) -> None:
    console.print(_summary_table(report))
    style = STATUS_STYLES[report.status]
    console.print(Panel(report.summary, title=STATUS_LABELS[report.status], border_style=style))
    if report.meta.semantic_error:
        console.print(f"[yellow]Semantic analysis fell back to estimates: {report.meta.semantic_error}[/yellow]")
    if report.top_issues:
        console.print("[bold]Top issues[/bold]")
        for position, issue in enumerate(report.top_issues, start=1):
            console.print(f"{position}. {severity_icon(issue.severity)} {issue.message}")
            if issue.fix:
                console.print(f"   [dim]Fix: {issue.fix}[/dim]")


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level (overrides the configuration file)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], log_level: Optional[str]) -> None:
    """DocScore - score documentation pages for AI-friendliness."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["log_level"] = log_level


@cli.command()
@click.argument("content_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--api-key", help="Anthropic API key; enables semantic scoring")
@click.option(
    "--format",
    "output_format",
    default=None,
    type=click.Choice(["markdown", "json", "csv"]),
    help="Render the report in this format (stdout unless --output is given)",
)
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output file or directory")
@click.option("--no-cache", is_flag=True, help="Ignore cached reports for unchanged content")
@click.pass_context
def score(
    ctx: click.Context,
    content_file: Path,
    api_key: Optional[str],
    output_format: Optional[str],
    output: Optional[Path],
    no_cache: bool,
) -> None:
    """Score one page from its extracted CONTENT_FILE (JSON)."""
    config = _load_settings(ctx, api_key)
    raw = _read_json(content_file)

    async def run_scoring() -> ScoreReport:
        container = DependencyContainer(ctx.obj["config_path"], config=config)
        async with container.lifecycle(watch=False):
            scorer = container.get_scorer()
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TimeElapsedColumn(),
                console=console,
                transient=True,
            )
            with progress:
                task = progress.add_task("Scoring", total=100)

                def on_progress(event: ProgressEvent) -> None:
                    progress.update(task, completed=event.percent, description=event.message)

                return await scorer.score(raw, on_progress=on_progress, use_report_cache=not no_cache)

    try:
        report = asyncio.run(run_scoring())
    except ContentValidationError as e:
        console.print("[red]Invalid content:[/red]")
        for error in e.errors:
            console.print(f"  - {error}")
        sys.exit(EXIT_INVALID_CONTENT)

    if output is not None:
        path = export_report(report, output_format or "markdown", output, config.scoring)
        console.print(f"[green]Report written to {path}[/green]")
    elif output_format is not None:
        click.echo(get_exporter(output_format, config.scoring).render(report))
    else:
        _print_report(report)


def _batch_inputs(paths: Tuple[Path, ...]) -> List[Any]:
    contents: List[Any] = []
    for path in paths:
        data = _read_json(path)
        if isinstance(data, list):
            contents.extend(data)
        else:
            contents.append(data)
    return contents


@cli.command()
@click.argument("content_files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--api-key", help="Anthropic API key; enables semantic scoring")
@click.option(
    "--format",
    "output_format",
    default="markdown",
    type=click.Choice(["markdown", "json"]),
    help="Batch report format",
)
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output file or directory")
@click.option("--threshold", default=0.8, type=click.FloatRange(0.0, 1.0), help="Duplicate similarity threshold")
@click.pass_context
def batch(
    ctx: click.Context,
    content_files: Tuple[Path, ...],
    api_key: Optional[str],
    output_format: str,
    output: Optional[Path],
    threshold: float,
) -> None:
    """Score several pages in sequence and flag likely duplicates.

    Each CONTENT_FILE holds one extracted page or a JSON list of pages.
    """
    config = _load_settings(ctx, api_key)
    contents = _batch_inputs(content_files)

    async def run_batch() -> Any:
        container = DependencyContainer(ctx.obj["config_path"], config=config)
        async with container.lifecycle(watch=False):
            return await score_batch(container.get_scorer(), contents)

    with console.status(f"Scoring {len(contents)} pages..."):
        results = asyncio.run(run_batch())
    duplicates = find_duplicates(results, threshold)

    if output_format == "json":
        rendered = json.dumps(batch_to_dict(results, duplicates), indent=2, ensure_ascii=False)
    else:
        rendered = render_batch_markdown(results, duplicates)

    if output is None:
        click.echo(rendered)
    else:
        if output.is_dir():
            output = output / batch_filename(date.today().isoformat(), output_format)
        atomic_write_text(output, rendered)
        console.print(f"[green]Batch report written to {output}[/green]")

    failed = sum(1 for result in results if not result.ok)
    console.print(f"Scored {len(results) - failed} pages, {failed} failed, {len(duplicates)} potential duplicates")


@cli.group()
def cache() -> None:
    """Inspect or clear the content-hash cache."""


@cache.command("stats")
@click.pass_context
def cache_stats(ctx: click.Context) -> None:
    """Show cache size and hit counters."""
    store = build_cache(_load_settings(ctx))
    table = Table(title="Cache")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    for key, value in store.stats().items():
        table.add_row(key, str(value))
    console.print(table)


@cache.command("clear")
@click.pass_context
def cache_clear(ctx: click.Context) -> None:
    """Remove every cached semantic result and report."""
    config = _load_settings(ctx)
    removed = build_cache(config).clear()
    console.print(f"[green]Cleared {removed} cache entries[/green]")


@cli.command()
@click.option("--limit", default=20, show_default=True, type=click.IntRange(min=1), help="Entries to show")
@click.option("--clear", "clear_history", is_flag=True, help="Delete all history entries")
@click.pass_context
def history(ctx: click.Context, limit: int, clear_history: bool) -> None:
    """List recently scored pages, newest first."""
    config = _load_settings(ctx)
    store = build_history(config)
    if clear_history:
        console.print(f"[green]Cleared {store.clear()} history entries[/green]")
        return

    entries = store.entries(limit)
    if not entries:
        console.print("[dim]No pages scored yet[/dim]")
        return

    table = Table(title="History")
    table.add_column("Scored", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("URL")
    table.add_column("Score", justify="right")
    table.add_column("Mode")
    for entry in entries:
        status = ReportStatus(entry.get("status", ReportStatus.RED.value))
        style = STATUS_STYLES[status]
        table.add_row(
            str(entry.get("timestamp", ""))[:19],
            entry.get("title") or "-",
            entry.get("url", ""),
            f"[{style}]{format_score(entry.get('composite_score', 0))}[/{style}]",
            entry.get("mode", ""),
        )
    console.print(table)


@cli.command("verify-key")
@click.option("--api-key", help="Anthropic API key (defaults to the configured one)")
@click.pass_context
def verify_key(ctx: click.Context, api_key: Optional[str]) -> None:
    """Check that the API key is accepted by the semantic model."""
    config = _load_settings(ctx, api_key)
    if not config.semantic.has_credentials:
        console.print("[red]No API key configured[/red]")
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        valid = asyncio.run(RemoteSemanticEvaluator(config.semantic).verify_api_key())
    except SemanticEvaluationError as e:
        console.print(f"[red]Could not verify API key: {e}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)

    if not valid:
        console.print("[red]API key was rejected[/red]")
        sys.exit(EXIT_CONFIG_ERROR)
    console.print("[green]API key verified[/green]")


if __name__ == "__main__":
    cli()
